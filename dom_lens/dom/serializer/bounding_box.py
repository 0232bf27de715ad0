import logging
import math
from dataclasses import dataclass

from dom_lens.dom.views import DOMRect, EnhancedDOMTreeNode, NodeType, SimplifiedNode

logger = logging.getLogger(__name__)

# (tag, role) pairs whose click target swallows their descendants
PROPAGATING_ELEMENTS = [
	{'tag': 'a', 'role': None},
	{'tag': 'button', 'role': None},
	{'tag': 'div', 'role': 'button'},
	{'tag': 'div', 'role': 'combobox'},
	{'tag': 'input', 'role': 'combobox'},
	{'tag': 'span', 'role': 'button'},
	{'tag': 'span', 'role': 'combobox'},
]

FORM_TAGS = {'input', 'select', 'textarea', 'label', 'option'}
INTERACTIVE_CHILD_ROLES = {'button', 'link', 'checkbox', 'radio', 'menuitem', 'tab', 'option'}

EXCLUDED_BY_SIZE = 'size'
EXCLUDED_BY_CONTAINMENT = 'contained'


@dataclass
class BoundingBoxStats:
	visited: int = 0
	size_filtered: int = 0
	contained: int = 0

	@property
	def excluded(self) -> int:
		return self.size_filtered + self.contained


def is_propagating_element(node: EnhancedDOMTreeNode) -> bool:
	if node.node_type != NodeType.ELEMENT_NODE:
		return False
	tag = node.tag_name
	role = node.attributes.get('role')
	role = role.lower() if role else None
	return any(element['tag'] == tag and element['role'] == role for element in PROPAGATING_ELEMENTS)


def is_within_valid_size(bounds: DOMRect | None) -> bool:
	"""Both CSS-pixel dimensions finite and at least 1. Missing bounds carry no signal."""
	if bounds is None:
		return True
	return math.isfinite(bounds.width) and math.isfinite(bounds.height) and bounds.width >= 1 and bounds.height >= 1


def containment_ratio(child: DOMRect, parent: DOMRect) -> float:
	"""Share of the child's area that lies inside the parent."""
	child_area = child.width * child.height
	if child_area <= 0:
		return 0.0
	x_overlap = max(0.0, min(child.x2, parent.x2) - max(child.x, parent.x))
	y_overlap = max(0.0, min(child.y2, parent.y2) - max(child.y, parent.y))
	return (x_overlap * y_overlap) / child_area


def should_keep_contained_element(node: EnhancedDOMTreeNode) -> bool:
	"""Exceptions that survive full containment inside a propagating ancestor."""
	if node.tag_name in FORM_TAGS:
		return True

	# nested propagating elements have their own handlers
	if is_propagating_element(node):
		return True

	if node.attributes.get('onclick', '').strip():
		return True

	if node.attributes.get('aria-label', '').strip():
		return True

	role = (node.attributes.get('role') or '').lower()
	return role in INTERACTIVE_CHILD_ROLES


class BoundingBoxFilter:
	"""
	Marks nodes that are too small to act on, or that sit entirely inside a
	clickable ancestor so clicking them is the same as clicking the ancestor.

	Only flags are set. Excluded nodes keep their children, and an excluded
	propagating element still shadows its own descendants.
	"""

	def __init__(self, root: SimplifiedNode, containment_threshold: float = 0.99):
		self.root = root
		self.containment_threshold = containment_threshold
		self.stats = BoundingBoxStats()

	def apply(self) -> BoundingBoxStats:
		self.stats = BoundingBoxStats()
		self._visit(self.root, None)
		logger.debug(
			f'Bounding box filtering: {self.stats.excluded}/{self.stats.visited} nodes excluded '
			f'({self.stats.size_filtered} size, {self.stats.contained} contained)'
		)
		return self.stats

	def _visit(self, node: SimplifiedNode, propagating_bounds: DOMRect | None) -> None:
		self.stats.visited += 1
		original = node.original_node

		# text nodes are never excluded, they only inherit their parent's context
		if original.node_type == NodeType.ELEMENT_NODE:
			bounds = original.snapshot_node.bounds if original.snapshot_node else None

			if not is_within_valid_size(bounds):
				node.excluded_by_size = True
				node.exclusion_reason = EXCLUDED_BY_SIZE
				self.stats.size_filtered += 1
			elif (
				propagating_bounds is not None
				and bounds is not None
				and containment_ratio(bounds, propagating_bounds) >= self.containment_threshold
				and not should_keep_contained_element(original)
			):
				node.excluded_by_parent = True
				node.exclusion_reason = EXCLUDED_BY_CONTAINMENT
				self.stats.contained += 1

			if is_propagating_element(original) and bounds is not None:
				propagating_bounds = bounds

		for child in node.children:
			self._visit(child, propagating_bounds)
