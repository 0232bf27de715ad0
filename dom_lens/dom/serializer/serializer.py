# @file purpose: Serializes enhanced DOM trees to the index-addressed text view consumed by agents

import logging
import time

from dom_lens.dom.serializer.bounding_box import BoundingBoxFilter
from dom_lens.dom.serializer.clickable_elements import ClickableElementDetector
from dom_lens.dom.serializer.compound import build_compound_components, format_compound_components
from dom_lens.dom.serializer.optimizer import TreeOptimizer
from dom_lens.dom.serializer.paint_order import PaintOrderRemover
from dom_lens.dom.utils import cap_text_length, children_and_shadow_roots, content_document_of, should_show_scroll_info
from dom_lens.dom.views import (
	DOMSelectorMap,
	EnhancedDOMTree,
	EnhancedDOMTreeNode,
	NodeType,
	SerializationConfig,
	SerializationStats,
	SerializationTiming,
	SerializedDOMState,
	SimplifiedNode,
)
from dom_lens.utils import time_execution_sync

logger = logging.getLogger(__name__)

SKIPPED_TAGS = {'style', 'script', 'head', 'meta', 'link', 'title', 'noscript'}

DATE_TIME_FORMATS = {
	'date': 'YYYY-MM-DD',
	'time': 'HH:MM',
	'datetime-local': 'YYYY-MM-DDTHH:MM',
	'month': 'YYYY-MM',
	'week': 'YYYY-W##',
}
DATEPICKER_CLASSES = ('datepicker', 'datetimepicker', 'daterangepicker')
DEFAULT_DATEPICKER_FORMAT = 'mm/dd/yyyy'

# never dropped as duplicates of another attribute, they mean different things
PROTECTED_ATTRIBUTES = {'format', 'expected_format', 'placeholder', 'value', 'aria-label', 'title'}
MAX_ATTRIBUTE_LENGTH = 100
# present-means-true HTML attributes, kept even when their value is empty
BOOLEAN_ATTRIBUTES = {'checked', 'multiple', 'required', 'disabled', 'selected', 'readonly', 'contenteditable'}


class DOMTreeSerializer:
	"""Runs the filter passes over one enhanced tree and renders the result."""

	def __init__(
		self,
		tree: EnhancedDOMTree,
		previous_cached_state: SerializedDOMState | None = None,
		config: SerializationConfig | None = None,
	):
		self.tree = tree
		self.table = tree.table
		self.config = config or SerializationConfig()
		self._selector_map: DOMSelectorMap = {}
		self._previous_backend_node_ids: set[int] | None = None
		if previous_cached_state is not None:
			self._previous_backend_node_ids = {
				node.backend_node_id for node in previous_cached_state.selector_map.values()
			}
		self.timing = SerializationTiming()
		self.stats = SerializationStats()

	@time_execution_sync('--serialize_accessible_elements')
	def serialize_accessible_elements(self) -> tuple[SerializedDOMState, SerializationTiming, SerializationStats]:
		start_total = time.time()
		self._selector_map = {}
		self.timing = SerializationTiming()
		self.stats = SerializationStats(total_nodes=len(self.table))

		# Step 1: Create simplified tree (includes clickable element detection)
		start = time.time()
		simplified_tree = self._create_simplified_tree(self.tree.root_index)
		self.timing.create_simplified_tree = time.time() - start
		self.stats.simplified_nodes = self._count(simplified_tree)
		self.stats.filtered_nodes = self.stats.total_nodes - self.stats.simplified_nodes

		# Step 2: Flag nodes hidden under things painted above them
		start = time.time()
		if simplified_tree and self.config.enable_paint_order_filtering:
			self.stats.occluded_nodes = PaintOrderRemover(
				simplified_tree, opacity_threshold=self.config.opacity_threshold
			).calculate_paint_order()
		self.timing.paint_order_filtering = time.time() - start

		# Step 3: Drop branches with nothing worth showing
		start = time.time()
		optimized_tree = TreeOptimizer(simplified_tree).optimize() if simplified_tree else None
		self.timing.optimize_tree = time.time() - start

		# Step 4: Flag tiny elements and ones swallowed by a clickable ancestor
		start = time.time()
		if optimized_tree and self.config.enable_bbox_filtering:
			bbox_stats = BoundingBoxFilter(optimized_tree, self.config.containment_threshold).apply()
			self.stats.contained_nodes = bbox_stats.contained
			self.stats.size_filtered_nodes = bbox_stats.size_filtered
		self.timing.bounding_box_filtering = time.time() - start

		# Step 5: Number what is left
		start = time.time()
		if optimized_tree:
			self._assign_interactive_indices_and_mark_new_nodes(optimized_tree, 1)
		self.timing.assign_interactive_indices = time.time() - start

		self.stats.interactive_elements = len(self._selector_map)
		self.stats.new_elements = self._count_new(optimized_tree)
		self.stats.compound_components = self._count_compound(optimized_tree)

		state = SerializedDOMState(
			_root=optimized_tree,
			selector_map=self._selector_map,
			include_attributes=list(self.config.include_attributes),
		)
		self.timing.total = time.time() - start_total

		logger.debug(
			f'🌳 Serialized {self.stats.total_nodes} nodes -> {self.stats.interactive_elements} interactive '
			f'({self.stats.new_elements} new, {self.stats.occluded_nodes} occluded, '
			f'{self.stats.contained_nodes} contained, {self.stats.size_filtered_nodes} too small)'
		)
		return state, self.timing, self.stats

	def _is_rendered(self, node: EnhancedDOMTreeNode) -> bool:
		return node.snapshot_node is not None and node.is_visible

	def _create_simplified_tree(self, index: int) -> SimplifiedNode | None:
		"""Step 1: Copy the parts of the enhanced tree that can carry content."""
		node = self.table[index]

		if node.node_type in (NodeType.DOCUMENT_NODE, NodeType.DOCUMENT_FRAGMENT_NODE):
			container = SimplifiedNode(original_node=node, should_display=node.node_type != NodeType.DOCUMENT_NODE)
			container.children = self._simplified_children(index)
			return container if container.children else None

		if node.node_type == NodeType.TEXT_NODE:
			text = (node.node_value or '').strip()
			if self._is_rendered(node) and len(text) > 1:
				return SimplifiedNode(original_node=node)
			return None

		if node.node_type != NodeType.ELEMENT_NODE:
			return None

		if node.tag_name in SKIPPED_TAGS:
			return None

		simplified = SimplifiedNode(
			original_node=node,
			is_interactive=self._is_rendered(node) and ClickableElementDetector.is_interactive(node),
			is_scrollable=node.is_actually_scrollable,
			show_scroll_info=should_show_scroll_info(self.table, index),
			is_shadow_host=bool(node.shadow_root_indices),
		)

		if simplified.is_interactive:
			simplified.compound_components = build_compound_components(self.table, node)

		# svg internals are never useful, the element itself is enough
		if node.tag_name != 'svg':
			simplified.children = self._simplified_children(index)

			content_document = content_document_of(self.table, index)
			if content_document is not None:
				frame_content = self._create_simplified_tree(content_document.index)
				if frame_content:
					simplified.children.append(frame_content)

		return simplified

	def _simplified_children(self, index: int) -> list[SimplifiedNode]:
		children = []
		for child in children_and_shadow_roots(self.table, index):
			simplified_child = self._create_simplified_tree(child.index)
			if simplified_child:
				children.append(simplified_child)
		return children

	def _assign_interactive_indices_and_mark_new_nodes(self, node: SimplifiedNode, counter: int) -> int:
		"""Number interactive nodes in document order. Returns the next free index."""
		if (
			node.is_interactive
			and not node.is_excluded
			and counter <= self.config.max_interactive_elements
		):
			node.interactive_index = counter
			self._selector_map[counter] = node.original_node
			counter += 1

			if (
				self._previous_backend_node_ids is not None
				and node.original_node.backend_node_id not in self._previous_backend_node_ids
			):
				node.is_new = True

		for child in node.children:
			counter = self._assign_interactive_indices_and_mark_new_nodes(child, counter)
		return counter

	def _count(self, node: SimplifiedNode | None) -> int:
		if node is None:
			return 0
		return 1 + sum(self._count(child) for child in node.children)

	def _count_new(self, node: SimplifiedNode | None) -> int:
		if node is None:
			return 0
		return int(node.is_new) + sum(self._count_new(child) for child in node.children)

	def _count_compound(self, node: SimplifiedNode | None) -> int:
		if node is None:
			return 0
		own = len(node.compound_components) if node.interactive_index is not None else 0
		return own + sum(self._count_compound(child) for child in node.children)

	@staticmethod
	def _shadow_prefix(node: SimplifiedNode) -> str:
		if not node.is_shadow_host:
			return ''
		has_closed_shadow = any(
			child.original_node.node_type == NodeType.DOCUMENT_FRAGMENT_NODE
			and (child.original_node.shadow_root_type or '').lower() == 'closed'
			for child in node.children
		)
		return '|SHADOW(closed)|' if has_closed_shadow else '|SHADOW(open)|'

	@staticmethod
	def _text_of(node: SimplifiedNode) -> str:
		return ' '.join(
			child.original_node.node_value.strip()
			for child in node.children
			if child.original_node.node_type == NodeType.TEXT_NODE and child.original_node.node_value
		)

	@staticmethod
	def serialize_tree(node: SimplifiedNode | None, include_attributes: list[str], depth: int = 0) -> str:
		"""Serialize the optimized tree to string format."""
		if not node:
			return ''

		formatted_text = []
		depth_str = depth * '\t'
		next_depth = depth
		original = node.original_node

		def render_children(child_depth: int) -> None:
			for child in node.children:
				child_text = DOMTreeSerializer.serialize_tree(child, include_attributes, child_depth)
				if child_text:
					formatted_text.append(child_text)

		if original.node_type == NodeType.ELEMENT_NODE:
			# Transparent nodes and filtered nodes hide their own line but not their children
			if not node.should_display or node.is_excluded:
				render_children(depth)
				return '\n'.join(formatted_text)

			shadow_prefix = DOMTreeSerializer._shadow_prefix(node)
			attributes_html_str = DOMTreeSerializer._build_attributes_string(
				original, include_attributes, DOMTreeSerializer._text_of(node)
			)
			if node.interactive_index is not None:
				compound_attr = format_compound_components(node.compound_components)
				if compound_attr:
					attributes_html_str = f'{attributes_html_str} {compound_attr}' if attributes_html_str else compound_attr

			new_prefix = '*' if node.is_new else ''

			if original.tag_name == 'svg':
				line = f'{depth_str}{shadow_prefix}'
				if node.interactive_index is not None:
					line += f'{new_prefix}[{node.interactive_index}]'
				line += '<svg'
				if attributes_html_str:
					line += f' {attributes_html_str}'
				line += ' /> <!-- SVG content collapsed -->'
				formatted_text.append(line)
				return '\n'.join(formatted_text)

			is_frame = original.tag_name in ('iframe', 'frame')
			if node.interactive_index is not None or node.is_scrollable or is_frame:
				next_depth += 1

				if node.interactive_index is not None:
					scroll_prefix = '|SCROLL[' if node.is_scrollable else '['
					line = f'{depth_str}{shadow_prefix}{new_prefix}{scroll_prefix}{node.interactive_index}]<{original.tag_name}'
				elif node.is_scrollable:
					line = f'{depth_str}{shadow_prefix}|SCROLL|<{original.tag_name}'
				else:
					line = f'{depth_str}{shadow_prefix}|{original.tag_name.upper()}|<{original.tag_name}'

				if attributes_html_str:
					line += f' {attributes_html_str}'
				line += ' />'

				if node.show_scroll_info and (node.is_scrollable or is_frame):
					scroll_info_text = original.get_scroll_info_text()
					if scroll_info_text:
						line += f' ({scroll_info_text})'

				formatted_text.append(line)

			render_children(next_depth)

		elif original.node_type == NodeType.DOCUMENT_FRAGMENT_NODE:
			# Shadow DOM representation
			if (original.shadow_root_type or '').lower() == 'closed':
				formatted_text.append(f'{depth_str}Closed Shadow')
			else:
				formatted_text.append(f'{depth_str}Open Shadow')

			render_children(depth + 1)

			if node.children:
				formatted_text.append(f'{depth_str}Shadow End')

		elif original.node_type == NodeType.TEXT_NODE:
			text = (original.node_value or '').strip()
			if original.is_visible and not node.is_excluded and len(text) > 1:
				formatted_text.append(f'{depth_str}{text}')

		else:
			# documents are transparent
			render_children(depth)

		return '\n'.join(formatted_text)

	@staticmethod
	def _format_hint_attributes(node: EnhancedDOMTreeNode, include_attributes: list[str], attributes: dict[str, str]) -> None:
		"""Add synthetic format/placeholder hints for date, time, tel and datepicker inputs."""
		input_type = (node.attributes.get('type') or '').lower()

		if input_type in DATE_TIME_FORMATS:
			attributes['format'] = DATE_TIME_FORMATS[input_type]

		if 'placeholder' not in include_attributes or 'placeholder' in attributes:
			return

		if input_type in DATE_TIME_FORMATS:
			attributes['placeholder'] = DATE_TIME_FORMATS[input_type]
		elif input_type == 'tel' and 'pattern' not in attributes:
			attributes['placeholder'] = '123-456-7890'
		elif input_type in ('text', ''):
			class_attr = (node.attributes.get('class') or '').lower()

			# AngularJS UI Bootstrap datepicker states its format explicitly
			if 'uib-datepicker-popup' in node.attributes:
				date_format = node.attributes.get('uib-datepicker-popup', '')
				if date_format:
					attributes['expected_format'] = date_format
					attributes['format'] = date_format
			elif any(indicator in class_attr for indicator in DATEPICKER_CLASSES) or 'data-datepicker' in node.attributes:
				date_format = node.attributes.get('data-date-format', '') or DEFAULT_DATEPICKER_FORMAT
				attributes['placeholder'] = date_format
				attributes['format'] = date_format

	@staticmethod
	def _build_attributes_string(node: EnhancedDOMTreeNode, include_attributes: list[str], text: str) -> str:
		"""Build the attributes string for an element."""
		attributes_to_include = {
			key: str(value).strip()
			for key, value in node.attributes.items()
			if key in include_attributes and (str(value).strip() != '' or key in BOOLEAN_ATTRIBUTES)
		}

		if node.tag_name == 'input':
			DOMTreeSerializer._format_hint_attributes(node, include_attributes, attributes_to_include)

		# Include accessibility properties
		if node.ax_node and node.ax_node.properties:
			for prop in node.ax_node.properties:
				if prop.name not in include_attributes or prop.value is None:
					continue
				if isinstance(prop.value, bool):
					attributes_to_include[prop.name] = str(prop.value).lower()
				else:
					prop_value_str = str(prop.value).strip()
					if prop_value_str:
						attributes_to_include[prop.name] = prop_value_str

		# The AX tree reflects what was typed, the DOM attribute may be stale
		if node.tag_name in ('input', 'textarea', 'select') and node.ax_node and node.ax_node.properties:
			for prop in node.ax_node.properties:
				if prop.name in ('valuetext', 'value') and prop.value:
					value_str = str(prop.value).strip()
					if value_str:
						attributes_to_include['value'] = value_str
						break

		if not attributes_to_include:
			return ''

		# Remove duplicate values
		ordered_keys = [key for key in include_attributes if key in attributes_to_include]

		if len(ordered_keys) > 1:
			keys_to_remove = set()
			seen_values: dict[str, str] = {}

			for key in ordered_keys:
				value = attributes_to_include[key]
				if len(value) > 5:
					if value in seen_values and key not in PROTECTED_ATTRIBUTES:
						keys_to_remove.add(key)
					else:
						seen_values[value] = key

			for key in keys_to_remove:
				del attributes_to_include[key]

		# Remove attributes that restate something already visible
		role = node.ax_node.role if node.ax_node else None
		if role and node.node_name.lower() == role.lower():
			attributes_to_include.pop('role', None)
		if attributes_to_include.get('role', '').lower() == node.tag_name:
			del attributes_to_include['role']

		if 'type' in attributes_to_include and attributes_to_include['type'].lower() == node.tag_name:
			del attributes_to_include['type']

		if attributes_to_include.get('invalid', '').lower() == 'false':
			del attributes_to_include['invalid']

		if 'required' in attributes_to_include and attributes_to_include['required'].lower() in {'false', '0', 'no'}:
			del attributes_to_include['required']

		if 'expanded' in attributes_to_include and 'aria-expanded' in attributes_to_include:
			del attributes_to_include['aria-expanded']

		if text.strip():
			for attr in ('aria-label', 'placeholder', 'title'):
				if attributes_to_include.get(attr, '').strip().lower() == text.strip().lower():
					del attributes_to_include[attr]

		formatted_attrs = []
		for key, value in attributes_to_include.items():
			capped_value = cap_text_length(value, MAX_ATTRIBUTE_LENGTH)
			# empty values read as key='' rather than a dangling key=
			formatted_attrs.append(f"{key}=''" if not capped_value else f'{key}={capped_value}')
		return ' '.join(formatted_attrs)
