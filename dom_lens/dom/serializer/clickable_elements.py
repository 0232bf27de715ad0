from collections.abc import Callable

from dom_lens.dom.views import EnhancedDOMTreeNode, NodeType

INTERACTIVE_TAGS = {
	'button',
	'input',
	'select',
	'textarea',
	'a',
	'option',
	'iframe',
	'frame',
	'details',
	'summary',
	'optgroup',
}

EVENT_HANDLERS = [
	'onclick',
	'onmousedown',
	'onmouseup',
	'onkeydown',
	'onkeyup',
	'onkeypress',
	'onfocus',
	'onblur',
	'onchange',
	'onsubmit',
	'onreset',
	'onselect',
]
# these are often stamped out by frameworks with placeholder values
STRICT_EVENT_HANDLERS = {'onclick', 'onmousedown', 'onmouseup'}
EMPTY_HANDLER_VALUES = {'', 'null', 'undefined'}

INTERACTIVE_ROLES = {
	'button',
	'link',
	'menuitem',
	'option',
	'radio',
	'checkbox',
	'tab',
	'textbox',
	'combobox',
	'slider',
	'spinbutton',
	'search',
	'searchbox',
}
# widget roles as reported by the accessibility tree; landmark and container roles stay out
INTERACTIVE_AX_ROLES = INTERACTIVE_ROLES | {'gridcell', 'treeitem', 'switch', 'listbox'}

DIRECT_INTERACTIVITY = {'focusable', 'editable', 'settable'}
INTERACTIVE_STATES = {'checked', 'expanded', 'pressed', 'selected'}
FORM_PROPERTIES = {'required', 'autocomplete', 'keyshortcuts'}
BLOCKER_PROPERTIES = {'disabled', 'hidden'}

SEARCH_INDICATORS = [
	'search',
	'magnify',
	'glass',
	'lookup',
	'find',
	'query',
	'search-icon',
	'search-btn',
	'search-button',
	'searchbox',
	'filter',
	'filter-icon',
	'filter-btn',
	'find-button',
	'lookup-box',
	'query-input',
	'typeahead',
	'autocomplete',
	'suggest',
	'suggestion',
	'lookup-field',
	'search-field',
	'search-input',
	'search-form',
	'search-bar',
	'search-area',
]

COMPOUND_INPUT_TYPES = {'range', 'number', 'color', 'file', 'date', 'time', 'datetime-local', 'month', 'week'}
COMPOUND_ELEMENT_TAGS = {'select', 'details', 'audio', 'video'}
COMPOUND_ARIA_ROLES = {'combobox', 'slider', 'spinbutton', 'listbox'}

ICON_ATTRIBUTES = [
	'class',
	'role',
	'onclick',
	'data-action',
	'aria-label',
	'title',
	'data-icon',
	'data-testid',
	'data-cy',
	'data-qa',
	'id',
]
ICON_INTERACTIVE_KEYWORDS = [
	'click',
	'action',
	'button',
	'btn',
	'trigger',
	'toggle',
	'close',
	'open',
	'menu',
	'search',
	'filter',
	'play',
	'pause',
	'stop',
	'next',
	'prev',
	'back',
	'forward',
	'up',
	'down',
]
ICON_CLASS_PATTERNS = ['icon', 'btn', 'button', 'click', 'action', 'trigger', 'svg', 'img', 'glyph', 'symbol', 'logo', 'brand']
INTERACTIVE_ARIA_HINTS = ['aria-label', 'aria-role', 'aria-pressed', 'aria-expanded']

MIN_ICON_SIZE = 10
MAX_ICON_SIZE = 50
MIN_IFRAME_SIZE = 100
# anything fainter than this is treated as not meant to be acted on
MIN_VISIBLE_OPACITY = 0.8


def can_virtualize(node: EnhancedDOMTreeNode) -> bool:
	"""Whether the element is a composite control we describe with virtual sub-components."""
	if node.node_type != NodeType.ELEMENT_NODE:
		return False

	tag = node.tag_name
	if tag == 'input' and (node.attributes.get('type') or '').lower() in COMPOUND_INPUT_TYPES:
		return True
	if tag in COMPOUND_ELEMENT_TAGS:
		return True
	return (node.attributes.get('role') or '').lower() in COMPOUND_ARIA_ROLES


class ClickableElementDetector:
	"""
	Ordered-tier interactivity classifier.

	Each tier returns True (accept), False (reject) or None (no opinion).
	The first definite verdict wins and later tiers are not consulted.
	"""

	@staticmethod
	def is_interactive(node: EnhancedDOMTreeNode) -> bool:
		for tier in TIERS:
			verdict = tier(node)
			if verdict is not None:
				return verdict
		return False

	@staticmethod
	def _css_size(node: EnhancedDOMTreeNode) -> tuple[float, float] | None:
		if not (node.snapshot_node and node.snapshot_node.bounds):
			return None
		bounds = node.snapshot_node.bounds
		return bounds.width, bounds.height

	# Tier 0
	@staticmethod
	def _check_visual(node: EnhancedDOMTreeNode) -> bool | None:
		snapshot_node = node.snapshot_node
		if not (snapshot_node and snapshot_node.computed_styles):
			return None
		if not node.is_visible or snapshot_node.opacity < MIN_VISIBLE_OPACITY:
			return False
		return None

	# Tier 1
	@staticmethod
	def _check_node_type(node: EnhancedDOMTreeNode) -> bool | None:
		if node.node_type != NodeType.ELEMENT_NODE:
			return False
		if node.tag_name in ('html', 'body'):
			return False
		return None

	# Tier 2
	@staticmethod
	def _check_iframe_size(node: EnhancedDOMTreeNode) -> bool | None:
		if node.tag_name != 'iframe':
			return None
		size = ClickableElementDetector._css_size(node)
		if size and size[0] >= MIN_IFRAME_SIZE and size[1] >= MIN_IFRAME_SIZE:
			return True
		return None

	# Tier 3
	@staticmethod
	def _check_compound_control(node: EnhancedDOMTreeNode) -> bool | None:
		return True if can_virtualize(node) else None

	# Tier 4
	@staticmethod
	def _check_interactive_tag(node: EnhancedDOMTreeNode) -> bool | None:
		return True if node.tag_name in INTERACTIVE_TAGS else None

	# Tier 5
	@staticmethod
	def _check_search_indicators(node: EnhancedDOMTreeNode) -> bool | None:
		values = [node.attributes.get('class', ''), node.attributes.get('id', '')]
		values.extend(value for key, value in node.attributes.items() if key.startswith('data-'))

		for value in values:
			if not value:
				continue
			lowered = value.lower()
			if any(indicator in lowered for indicator in SEARCH_INDICATORS):
				return True
		return None

	@staticmethod
	def _has_event_handler(node: EnhancedDOMTreeNode) -> bool:
		for handler in EVENT_HANDLERS:
			value = node.attributes.get(handler)
			if value is None:
				continue
			if handler in STRICT_EVENT_HANDLERS:
				if value.strip() not in EMPTY_HANDLER_VALUES:
					return True
			elif value:
				return True
		# any tabindex, even -1 or 0, makes the element focusable
		return 'tabindex' in node.attributes

	# Tier 6
	@staticmethod
	def _check_event_handlers(node: EnhancedDOMTreeNode) -> bool | None:
		return True if ClickableElementDetector._has_event_handler(node) else None

	# Tier 7
	@staticmethod
	def _check_aria_role(node: EnhancedDOMTreeNode) -> bool | None:
		role = (node.attributes.get('role') or '').lower()
		if role in INTERACTIVE_ROLES:
			return True
		if node.attributes.get('contenteditable') == 'true':
			return True
		return None

	# Tier 8
	@staticmethod
	def _check_accessibility_properties(node: EnhancedDOMTreeNode) -> bool | None:
		if not (node.ax_node and node.ax_node.properties):
			return None

		properties = {prop.name.lower(): prop.value for prop in node.ax_node.properties}

		# a disabled or hidden element is not actionable whatever else it says
		if any(properties.get(name) is True for name in BLOCKER_PROPERTIES):
			return False

		if any(properties.get(name) is True for name in DIRECT_INTERACTIVITY):
			return True
		if any(properties.get(name) is True for name in INTERACTIVE_STATES):
			return True
		if any(name in properties and properties[name] is not None for name in FORM_PROPERTIES):
			return True
		return None

	# Tier 8, computed role
	@staticmethod
	def _check_accessibility_role(node: EnhancedDOMTreeNode) -> bool | None:
		if node.ax_node and node.ax_node.role and node.ax_node.role.lower() in INTERACTIVE_AX_ROLES:
			return True
		return None

	@staticmethod
	def _has_interactive_indication(node: EnhancedDOMTreeNode) -> bool:
		if any(node.attributes.get(handler) for handler in EVENT_HANDLERS):
			return True
		if node.snapshot_node and node.snapshot_node.cursor_style == 'pointer':
			return True
		return any(node.attributes.get(attr) for attr in INTERACTIVE_ARIA_HINTS)

	# Tier 9
	@staticmethod
	def _check_icon(node: EnhancedDOMTreeNode) -> bool | None:
		size = ClickableElementDetector._css_size(node)
		if not size:
			return None
		width, height = size
		if not (MIN_ICON_SIZE <= width <= MAX_ICON_SIZE and MIN_ICON_SIZE <= height <= MAX_ICON_SIZE):
			return None

		for attr in ICON_ATTRIBUTES:
			value = (node.attributes.get(attr) or '').lower()
			if value and any(keyword in value for keyword in ICON_INTERACTIVE_KEYWORDS):
				return True

		class_name = (node.attributes.get('class') or '').lower()
		if any(pattern in class_name for pattern in ICON_CLASS_PATTERNS):
			if ClickableElementDetector._has_interactive_indication(node):
				return True
		return None

	# Tier 10
	@staticmethod
	def _check_cursor(node: EnhancedDOMTreeNode) -> bool | None:
		if node.snapshot_node and node.snapshot_node.cursor_style == 'pointer':
			return True
		return None


TIERS: list[Callable[[EnhancedDOMTreeNode], bool | None]] = [
	ClickableElementDetector._check_visual,
	ClickableElementDetector._check_node_type,
	ClickableElementDetector._check_iframe_size,
	ClickableElementDetector._check_compound_control,
	ClickableElementDetector._check_interactive_tag,
	ClickableElementDetector._check_search_indicators,
	ClickableElementDetector._check_event_handlers,
	ClickableElementDetector._check_aria_role,
	ClickableElementDetector._check_accessibility_properties,
	ClickableElementDetector._check_accessibility_role,
	ClickableElementDetector._check_icon,
	ClickableElementDetector._check_cursor,
]
