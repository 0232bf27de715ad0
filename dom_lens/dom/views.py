from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Attributes (and AX properties) rendered into the text view when present
DEFAULT_INCLUDE_ATTRIBUTES = [
	'title',
	'type',
	'checked',
	'id',
	'name',
	'role',
	'value',
	'placeholder',
	'data-date-format',
	'alt',
	'aria-label',
	'aria-expanded',
	'data-state',
	'aria-checked',
	'aria-valuemin',
	'aria-valuemax',
	'aria-valuenow',
	'aria-placeholder',
	'pattern',
	'min',
	'max',
	'minlength',
	'maxlength',
	'step',
	'accept',
	'multiple',
	'inputmode',
	'autocomplete',
	'data-mask',
	'data-inputmask',
	'data-datepicker',
	'format',
	'expected_format',
	'contenteditable',
	'pseudo',
	# accessibility properties
	'selected',
	'expanded',
	'pressed',
	'disabled',
	'invalid',
	'valuemin',
	'valuemax',
	'valuenow',
	'keyshortcuts',
	'haspopup',
	'multiselectable',
	'required',
	'valuetext',
	'level',
	'busy',
	'live',
]


class NodeType(int, Enum):
	"""DOM node types as reported by DOM.getDocument"""

	ELEMENT_NODE = 1
	ATTRIBUTE_NODE = 2
	TEXT_NODE = 3
	CDATA_SECTION_NODE = 4
	ENTITY_REFERENCE_NODE = 5
	ENTITY_NODE = 6
	PROCESSING_INSTRUCTION_NODE = 7
	COMMENT_NODE = 8
	DOCUMENT_NODE = 9
	DOCUMENT_TYPE_NODE = 10
	DOCUMENT_FRAGMENT_NODE = 11
	NOTATION_NODE = 12


@dataclass(slots=True)
class DOMRect:
	x: float
	y: float
	width: float
	height: float

	@property
	def x2(self) -> float:
		return self.x + self.width

	@property
	def y2(self) -> float:
		return self.y + self.height


@dataclass(slots=True)
class EnhancedAXProperty:
	name: str
	value: str | bool | None


@dataclass(slots=True)
class EnhancedAXNode:
	ax_node_id: str
	ignored: bool
	role: str | None
	name: str | None
	description: str | None
	properties: list[EnhancedAXProperty] | None


@dataclass(slots=True)
class EnhancedSnapshotNode:
	"""Layout and style facts for one node, in CSS pixels."""

	is_clickable: bool | None
	cursor_style: str | None
	bounds: DOMRect | None
	"""Document coordinates of the layout box"""
	client_rects: DOMRect | None
	"""Client area: x/y are the border offsets, width/height the visible size"""
	scroll_rects: DOMRect | None
	"""Scroll area: x/y are scrollLeft/scrollTop, width/height the scrollable size"""
	computed_styles: dict[str, str] | None
	paint_order: int | None
	stacking_contexts: int | None

	@property
	def opacity(self) -> float:
		try:
			return float((self.computed_styles or {}).get('opacity', '1'))
		except ValueError:
			return 1.0

	@property
	def background_color(self) -> str:
		return (self.computed_styles or {}).get('background-color', 'rgba(0, 0, 0, 0)')


@dataclass(eq=False)
class EnhancedDOMTreeNode:
	"""
	One DOM node fused with its accessibility and layout facts.

	Relationships are offsets into the owning DOMNodeTable, see the accessor
	functions in dom_lens.dom.utils.
	"""

	index: int
	node_id: int
	backend_node_id: int
	node_type: NodeType
	node_name: str
	node_value: str
	attributes: dict[str, str]
	is_scrollable: bool | None
	is_visible: bool
	frame_id: str | None = None
	shadow_root_type: str | None = None

	parent_index: int | None = None
	children_indices: list[int] = field(default_factory=list)
	shadow_root_indices: list[int] = field(default_factory=list)
	content_document_index: int | None = None

	ax_node: EnhancedAXNode | None = None
	snapshot_node: EnhancedSnapshotNode | None = None

	@property
	def tag_name(self) -> str:
		return self.node_name.lower()

	@property
	def is_actually_scrollable(self) -> bool:
		"""Scrollable according to the DOM flag or to the snapshot's scroll and client areas."""
		if self.is_scrollable:
			return True

		if not self.snapshot_node:
			return False

		scroll_rects = self.snapshot_node.scroll_rects
		client_rects = self.snapshot_node.client_rects

		if scroll_rects and client_rects:
			has_vertical_scroll = scroll_rects.height > client_rects.height + 1
			has_horizontal_scroll = scroll_rects.width > client_rects.width + 1

			if has_vertical_scroll or has_horizontal_scroll:
				if self.snapshot_node.computed_styles:
					styles = self.snapshot_node.computed_styles
					overflow = styles.get('overflow', 'visible').lower()
					overflow_x = styles.get('overflow-x', overflow).lower()
					overflow_y = styles.get('overflow-y', overflow).lower()

					return (
						overflow in ('auto', 'scroll', 'overlay')
						or overflow_x in ('auto', 'scroll', 'overlay')
						or overflow_y in ('auto', 'scroll', 'overlay')
					)
				return self.tag_name in {'div', 'main', 'section', 'article', 'aside', 'body', 'html'}
		return False

	@property
	def scroll_percentages(self) -> tuple[float, float] | None:
		"""(vertical, horizontal) scroll position in percent, one decimal."""
		if not self.snapshot_node:
			return None
		scroll_rects = self.snapshot_node.scroll_rects
		client_rects = self.snapshot_node.client_rects
		if not scroll_rects or not client_rects:
			return None

		vertical = 0.0
		max_vertical = scroll_rects.height - client_rects.height
		if max_vertical > 0:
			vertical = scroll_rects.y / max_vertical * 100

		horizontal = 0.0
		max_horizontal = scroll_rects.width - client_rects.width
		if max_horizontal > 0:
			horizontal = scroll_rects.x / max_horizontal * 100

		return round(vertical, 1), round(horizontal, 1)

	def get_scroll_info_text(self) -> str:
		percentages = self.scroll_percentages
		if percentages is None:
			return ''
		vertical, horizontal = percentages
		return f'scroll: {vertical}% vertical, {horizontal}% horizontal'

	def __repr__(self) -> str:
		return f'<{self.tag_name} backend_node_id={self.backend_node_id} index={self.index}>'


@dataclass
class DOMNodeTable:
	"""Arena holding every node of one extraction. Node.index is the offset into `nodes`."""

	nodes: list[EnhancedDOMTreeNode] = field(default_factory=list)

	def add(self, node: EnhancedDOMTreeNode) -> int:
		node.index = len(self.nodes)
		self.nodes.append(node)
		return node.index

	def __getitem__(self, index: int) -> EnhancedDOMTreeNode:
		return self.nodes[index]

	def __len__(self) -> int:
		return len(self.nodes)

	def __iter__(self) -> Iterator[EnhancedDOMTreeNode]:
		return iter(self.nodes)


@dataclass
class EnhancedDOMTree:
	table: DOMNodeTable
	root_index: int

	@property
	def root(self) -> EnhancedDOMTreeNode:
		return self.table[self.root_index]

	def __len__(self) -> int:
		return len(self.table)


@dataclass(slots=True)
class CompoundComponent:
	"""Virtual sub-control of a composite widget (slider thumb, dropdown toggle, ...)."""

	role: str
	name: str
	valuemin: float | None = None
	valuemax: float | None = None
	valuenow: float | str | None = None
	options_count: int | None = None
	first_options: list[str] | None = None
	format_hint: str | None = None
	readonly: bool = False


@dataclass
class SimplifiedNode:
	"""Per-pass wrapper around an enhanced node. Flags only live for one serialization."""

	original_node: EnhancedDOMTreeNode
	children: list['SimplifiedNode'] = field(default_factory=list)
	should_display: bool = True
	is_interactive: bool = False
	is_scrollable: bool = False
	show_scroll_info: bool = False
	interactive_index: int | None = None
	is_new: bool = False
	ignored_by_paint_order: bool = False
	excluded_by_parent: bool = False
	excluded_by_size: bool = False
	exclusion_reason: str | None = None
	is_shadow_host: bool = False
	compound_components: list[CompoundComponent] = field(default_factory=list)

	@property
	def is_excluded(self) -> bool:
		return self.ignored_by_paint_order or self.excluded_by_parent or self.excluded_by_size

	def __repr__(self) -> str:
		return f'<SimplifiedNode {self.original_node.tag_name} index={self.interactive_index} children={len(self.children)}>'


DOMSelectorMap = dict[int, EnhancedDOMTreeNode]


class SerializationConfig(BaseModel):
	model_config = ConfigDict(frozen=True, extra='forbid')

	enable_paint_order_filtering: bool = True
	enable_bbox_filtering: bool = True
	opacity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
	containment_threshold: float = Field(default=0.99, gt=0.0, le=1.0)
	max_interactive_elements: int = Field(default=1000, ge=0)
	include_attributes: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_ATTRIBUTES))


class SerializationStats(BaseModel):
	total_nodes: int = 0
	simplified_nodes: int = 0
	filtered_nodes: int = 0
	interactive_elements: int = 0
	new_elements: int = 0
	occluded_nodes: int = 0
	contained_nodes: int = 0
	size_filtered_nodes: int = 0
	compound_components: int = 0


class SerializationTiming(BaseModel):
	"""Seconds spent per serializer stage"""

	create_simplified_tree: float = 0.0
	paint_order_filtering: float = 0.0
	optimize_tree: float = 0.0
	bounding_box_filtering: float = 0.0
	assign_interactive_indices: float = 0.0
	serialize_tree: float = 0.0
	total: float = 0.0


@dataclass
class SerializedDOMState:
	_root: SimplifiedNode | None
	selector_map: DOMSelectorMap
	include_attributes: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_ATTRIBUTES))

	@property
	def root(self) -> SimplifiedNode | None:
		return self._root

	def llm_representation(self, include_attributes: list[str] | None = None) -> str:
		"""Text view consumed by the agent."""
		from dom_lens.dom.serializer.serializer import DOMTreeSerializer

		if not self._root:
			return 'Empty DOM tree (you might have to wait for the page to load)'

		return DOMTreeSerializer.serialize_tree(self._root, include_attributes or self.include_attributes)


@dataclass
class SerializedView:
	state: SerializedDOMState
	text: str
	timing: SerializationTiming
	stats: SerializationStats

	@property
	def selector_map(self) -> DOMSelectorMap:
		return self.state.selector_map


@dataclass
class ChangeDetectionResult:
	tree: EnhancedDOMTree
	state: SerializedDOMState
	has_changes: bool
	change_count: int
