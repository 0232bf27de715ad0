import logging

from dom_lens.dom.views import EnhancedDOMTreeNode, NodeType, SimplifiedNode

logger = logging.getLogger(__name__)

SEMANTIC_ROLES = {
	'button',
	'link',
	'navigation',
	'main',
	'banner',
	'contentinfo',
	'search',
	'complementary',
	'form',
	'region',
	'heading',
	'list',
	'listitem',
	'table',
	'row',
	'cell',
	'grid',
	'gridcell',
	'tab',
	'tabpanel',
	'dialog',
	'alert',
	'status',
	'timer',
	'marquee',
	'application',
	'document',
	'article',
	'section',
	'group',
}

IDENTIFYING_ATTRIBUTES = ('id', 'data-testid', 'data-cy', 'role', 'aria-label', 'title')

STRUCTURAL_TAGS = {
	'header',
	'footer',
	'nav',
	'main',
	'section',
	'article',
	'aside',
	'form',
	'input',
	'button',
	'select',
	'textarea',
	'option',
	'a',
	'img',
	'video',
	'audio',
	'canvas',
	'svg',
	'iframe',
	'frame',
}

FRAME_TAGS = {'iframe', 'frame'}


def has_semantic_meaning(node: EnhancedDOMTreeNode) -> bool:
	"""Whether the element says something about page structure on its own."""
	if node.node_type != NodeType.ELEMENT_NODE:
		return False

	if node.ax_node and node.ax_node.role and node.ax_node.role.lower() in SEMANTIC_ROLES:
		return True

	attributes = node.attributes
	for attr in IDENTIFYING_ATTRIBUTES:
		if attributes.get(attr, '').strip():
			return True

	if any(key.startswith('aria-') and value.strip() for key, value in attributes.items()):
		return True

	return node.tag_name in STRUCTURAL_TAGS


def is_meaningful_text(node: EnhancedDOMTreeNode) -> bool:
	return node.node_type == NodeType.TEXT_NODE and len((node.node_value or '').strip()) > 1


class TreeOptimizer:
	"""Bottom-up pruning of branches that carry nothing worth showing."""

	def __init__(self, root: SimplifiedNode):
		self.root = root
		self.removed = 0

	def optimize(self) -> SimplifiedNode | None:
		self.removed = 0
		optimized = self._optimize(self.root)
		logger.debug(f'Tree optimization removed {self.removed} nodes')
		return optimized

	def _optimize(self, node: SimplifiedNode) -> SimplifiedNode | None:
		kept_children = []
		for child in node.children:
			optimized_child = self._optimize(child)
			if optimized_child is not None:
				kept_children.append(optimized_child)
		node.children = kept_children

		if self.should_keep(node):
			return node

		self.removed += 1
		return None

	@staticmethod
	def should_keep(node: SimplifiedNode) -> bool:
		original = node.original_node
		return (
			node.is_interactive
			or node.is_scrollable
			or bool(node.children)
			or is_meaningful_text(original)
			or original.tag_name in FRAME_TAGS
			or node.is_shadow_host
			or has_semantic_meaning(original)
		)
