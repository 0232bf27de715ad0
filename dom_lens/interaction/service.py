import logging
import math
import time
from dataclasses import dataclass
from typing import Any

from dom_lens.cdp.gateway import CDPGateway
from dom_lens.cdp.views import CDPError, ElementResolutionError, TargetNotAttachedError
from dom_lens.dom.views import EnhancedDOMTreeNode
from dom_lens.interaction.keyboard import ENTER, can_type, get_char_info
from dom_lens.interaction.views import (
	BoundingBox,
	ClickOptions,
	ClickResult,
	CoordinateMethod,
	DragOptions,
	DragResult,
	ElementBasicInfo,
	FillOptions,
	FillResult,
	GetAttributeResult,
	GetBasicInfoResult,
	HoverOptions,
	HoverResult,
	InputMethod,
	Position,
	ScrollAtCoordinateOptions,
	ScrollDirection,
	ScrollOptions,
	ScrollResult,
	SelectOptionCandidate,
	SelectOptionOptions,
	SelectOptionResult,
)
from dom_lens.utils import sleep_ms

logger = logging.getLogger(__name__)

NodeRef = EnhancedDOMTreeNode | int

MODIFIER_BITS = {'Alt': 1, 'Control': 2, 'Meta': 4, 'Shift': 8}

BOUNDING_RECT_JS = """
function() {
	const rect = this.getBoundingClientRect();
	return {x: rect.left, y: rect.top, width: rect.width, height: rect.height};
}
"""

CLEAR_VALUE_JS = """
function() {
	try {
		this.select();
	} catch (e) {
		// date, color, number... inputs have no select()
	}
	this.value = "";
	this.dispatchEvent(new Event("input", {bubbles: true}));
	this.dispatchEvent(new Event("change", {bubbles: true}));
	return this.value;
}
"""

SET_VALUE_JS = """
function(text) {
	this.value = text;
	this.dispatchEvent(new Event("input", {bubbles: true}));
	this.dispatchEvent(new Event("change", {bubbles: true}));
	return this.value;
}
"""

SELECT_OPTION_JS = """
function() {
	this.selected = true;
	this.dispatchEvent(new Event("input", {bubbles: true}));
	this.dispatchEvent(new Event("change", {bubbles: true}));
	return true;
}
"""

BASIC_INFO_JS = """
function() {
	const rect = this.getBoundingClientRect();
	const style = getComputedStyle(this);
	return {
		textContent: this.textContent ? this.textContent.substring(0, 500) : null,
		isVisible: style.display !== "none" && style.visibility !== "hidden" && style.opacity !== "0"
			&& rect.width > 0 && rect.height > 0,
		isInteractive: ["a", "button", "input", "select", "textarea", "option"].includes(this.tagName.toLowerCase()),
	};
}
"""

SCROLL_AT_POINT_JS = """
(() => {
	const element = document.elementFromPoint(%(x)s, %(y)s);
	const target = element && (element.scrollWidth > element.clientWidth || element.scrollHeight > element.clientHeight)
		? element
		: window;
	target.scrollBy({left: %(dx)s, top: %(dy)s, behavior: "smooth"});
})()
"""


@dataclass(slots=True)
class Viewport:
	width: float
	height: float

	def clamp(self, x: float, y: float) -> Position:
		return Position(x=max(0.0, min(self.width - 1, x)), y=max(0.0, min(self.height - 1, y)))


def backend_node_id_of(ref: NodeRef) -> int:
	if isinstance(ref, EnhancedDOMTreeNode):
		return ref.backend_node_id
	return ref


def modifier_bitmask(modifiers: list[str] | None) -> int:
	"""CDP modifier bits: Alt=1, Control=2, Meta=4, Shift=8."""
	bitmask = 0
	for modifier in modifiers or []:
		bitmask |= MODIFIER_BITS.get(modifier, 0)
	return bitmask


def _quad_bounds(quad: list[float]) -> tuple[float, float, float, float]:
	xs = [quad[0], quad[2], quad[4], quad[6]]
	ys = [quad[1], quad[3], quad[5], quad[7]]
	return min(xs), min(ys), max(xs), max(ys)


def _quad_center(quad: list[float]) -> Position:
	return Position(x=(quad[0] + quad[2] + quad[4] + quad[6]) / 4, y=(quad[1] + quad[3] + quad[5] + quad[7]) / 4)


def _elapsed_ms(start: float) -> float:
	return (time.time() - start) * 1000


class ElementInteractionService:
	"""
	Clicks, typing, selection and scrolling against elements of the attached page.

	Elements are addressed by backend node id (or a node from a selector map).
	Coordinates are resolved fresh for every call. Element-level failures are
	reported in the returned result; only a missing debugger session raises.
	"""

	def __init__(self, gateway: CDPGateway):
		self.gateway = gateway

	async def initialize(self) -> None:
		if not self.gateway.is_attached:
			await self.gateway.connect()

	async def destroy(self) -> None:
		if self.gateway.owns_connection:
			await self.gateway.disconnect()

	def _ensure_attached(self) -> None:
		if not self.gateway.is_attached:
			raise TargetNotAttachedError()

	# ------------------------------------------------------------------
	# protocol helpers
	# ------------------------------------------------------------------

	async def _get_viewport(self) -> Viewport:
		metrics = await self.gateway.send('Page.getLayoutMetrics')
		layout_viewport = metrics.get('cssLayoutViewport') or metrics.get('layoutViewport') or {}
		return Viewport(
			width=float(layout_viewport.get('clientWidth', 1920)),
			height=float(layout_viewport.get('clientHeight', 1080)),
		)

	async def _resolve_object_id(self, backend_node_id: int) -> str:
		result = await self.gateway.send('DOM.resolveNode', {'backendNodeId': backend_node_id})
		object_id = (result.get('object') or {}).get('objectId')
		if not object_id:
			raise ElementResolutionError(backend_node_id, 'no remote object for node (detached?)')
		return object_id

	async def _call_function_on(self, object_id: str, function_declaration: str, arguments: list[Any] | None = None) -> Any:
		params: dict[str, Any] = {
			'functionDeclaration': function_declaration,
			'objectId': object_id,
			'returnByValue': True,
		}
		if arguments is not None:
			params['arguments'] = [{'value': argument} for argument in arguments]

		result = await self.gateway.send('Runtime.callFunctionOn', params)
		if result.get('exceptionDetails'):
			raise CDPError('JavaScript evaluation failed', {'exception': result['exceptionDetails'].get('text')})
		return (result.get('result') or {}).get('value')

	async def _scroll_into_view(self, backend_node_id: int, settle_ms: float = 50) -> None:
		try:
			await self.gateway.send('DOM.scrollIntoViewIfNeeded', {'backendNodeId': backend_node_id})
			await sleep_ms(settle_ms)
		except CDPError as e:
			logger.debug(f'scrollIntoViewIfNeeded failed for {backend_node_id}, continuing: {e}')

	async def _dispatch_mouse(self, event_type: str, position: Position, **extra: Any) -> None:
		await self.gateway.send('Input.dispatchMouseEvent', {'type': event_type, 'x': position.x, 'y': position.y, **extra})

	async def _dispatch_key(self, event_type: str, **params: Any) -> None:
		await self.gateway.send('Input.dispatchKeyEvent', {'type': event_type, **params})

	async def _get_element_coordinates(self, backend_node_id: int, viewport: Viewport) -> tuple[Position, CoordinateMethod]:
		"""Center of the element: content quads, then box model, then getBoundingClientRect."""
		# Method 1: largest quad by visible area, handles wrapped inline elements
		try:
			result = await self.gateway.send('DOM.getContentQuads', {'backendNodeId': backend_node_id})
			best_quad = None
			best_area = 0.0
			for quad in result.get('quads') or []:
				if len(quad) < 8:
					continue
				min_x, min_y, max_x, max_y = _quad_bounds(quad)
				if max_x < 0 or max_y < 0 or min_x > viewport.width or min_y > viewport.height:
					continue
				visible_width = min(viewport.width, max_x) - max(0.0, min_x)
				visible_height = min(viewport.height, max_y) - max(0.0, min_y)
				visible_area = visible_width * visible_height
				if visible_area > best_area:
					best_area = visible_area
					best_quad = quad
			if best_quad is not None:
				return _quad_center(best_quad), 'content_quads'
		except CDPError as e:
			logger.debug(f'DOM.getContentQuads failed for {backend_node_id}: {e}')

		# Method 2: content box of the box model
		try:
			result = await self.gateway.send('DOM.getBoxModel', {'backendNodeId': backend_node_id})
			content = (result.get('model') or {}).get('content') or []
			if len(content) >= 8:
				return _quad_center(content), 'box_model'
		except CDPError as e:
			logger.debug(f'DOM.getBoxModel failed for {backend_node_id}: {e}')

		# Method 3: ask the page
		try:
			object_id = await self._resolve_object_id(backend_node_id)
			rect = await self._call_function_on(object_id, BOUNDING_RECT_JS)
			if rect:
				return Position(x=rect['x'] + rect['width'] / 2, y=rect['y'] + rect['height'] / 2), 'bounding_rect'
		except CDPError as e:
			logger.debug(f'getBoundingClientRect failed for {backend_node_id}: {e}')

		raise ElementResolutionError(backend_node_id)

	# ------------------------------------------------------------------
	# click / hover
	# ------------------------------------------------------------------

	async def click_element(self, ref: NodeRef, options: ClickOptions | None = None) -> ClickResult:
		self._ensure_attached()
		options = options or ClickOptions()
		backend_node_id = backend_node_id_of(ref)
		start = time.time()

		try:
			# coordinates are only valid after the scroll settles
			await self._scroll_into_view(backend_node_id)
			viewport = await self._get_viewport()
			coordinates, method = await self._get_element_coordinates(backend_node_id, viewport)
			point = viewport.clamp(coordinates.x, coordinates.y)

			modifiers = modifier_bitmask(options.modifiers)
			try:
				await self._dispatch_mouse('mouseMoved', point)
				await sleep_ms(50)
				await self._dispatch_mouse(
					'mousePressed', point, button=options.button, clickCount=options.click_count, modifiers=modifiers
				)
				await sleep_ms(80)
				await self._dispatch_mouse(
					'mouseReleased', point, button=options.button, clickCount=options.click_count, modifiers=modifiers
				)
			except CDPError as cdp_error:
				logger.debug(f'Native click failed for {backend_node_id}, falling back to element.click(): {cdp_error}')
				try:
					object_id = await self._resolve_object_id(backend_node_id)
					await self._call_function_on(object_id, 'function() { this.click(); }')
					await sleep_ms(100)
				except CDPError as js_error:
					raise CDPError(f'Both CDP and JavaScript click failed. CDP: {cdp_error}, JavaScript: {js_error}')
				method = 'javascript'

			logger.debug(f'✅ Clicked element {backend_node_id} at ({point.x:.0f}, {point.y:.0f}) via {method}')
			return ClickResult(success=True, coordinates=point, method=method, duration=_elapsed_ms(start))
		except CDPError as e:
			logger.debug(f'❌ Click on element {backend_node_id} failed: {e}')
			return ClickResult(success=False, error=str(e), duration=_elapsed_ms(start))

	async def hover_element(self, ref: NodeRef, options: HoverOptions | None = None) -> HoverResult:
		self._ensure_attached()
		backend_node_id = backend_node_id_of(ref)
		start = time.time()

		try:
			# coordinates are only valid after the scroll settles
			await self._scroll_into_view(backend_node_id)
			viewport = await self._get_viewport()
			coordinates, method = await self._get_element_coordinates(backend_node_id, viewport)
			point = viewport.clamp(coordinates.x, coordinates.y)
			await self._dispatch_mouse('mouseMoved', point)
			return HoverResult(success=True, coordinates=point, method=method, duration=_elapsed_ms(start))
		except CDPError as e:
			logger.debug(f'❌ Hover on element {backend_node_id} failed: {e}')
			return HoverResult(success=False, error=str(e), duration=_elapsed_ms(start))

	# ------------------------------------------------------------------
	# fill
	# ------------------------------------------------------------------

	async def _focus_element(self, backend_node_id: int, object_id: str | None = None) -> bool:
		"""First strategy that works wins: DOM.focus, element.focus(), click at center."""
		try:
			await self.gateway.send('DOM.focus', {'backendNodeId': backend_node_id})
			return True
		except CDPError as e:
			logger.debug(f'DOM.focus failed: {e}, trying JavaScript focus')

		if object_id:
			try:
				await self._call_function_on(object_id, 'function() { this.focus(); }')
				return True
			except CDPError as e:
				logger.debug(f'JavaScript focus failed: {e}, trying click focus')

		try:
			viewport = await self._get_viewport()
			coordinates, _ = await self._get_element_coordinates(backend_node_id, viewport)
			await self._dispatch_mouse('mousePressed', coordinates, button='left', clickCount=1)
			await sleep_ms(50)
			await self._dispatch_mouse('mouseReleased', coordinates, button='left', clickCount=1)
			return True
		except CDPError as e:
			logger.warning(f'All focus strategies failed: {e}')
			return False

	async def _clear_text_field(self, object_id: str) -> bool:
		try:
			remaining = await self._call_function_on(object_id, CLEAR_VALUE_JS)
			if remaining == '':
				return True
			logger.debug(f'JavaScript clear left "{remaining}" in the field')
		except CDPError as e:
			logger.debug(f'JavaScript clear failed: {e}')

		# select everything with a triple click, then delete it
		try:
			rect = await self._call_function_on(object_id, BOUNDING_RECT_JS)
			if rect:
				center = Position(x=rect['x'] + rect['width'] / 2, y=rect['y'] + rect['height'] / 2)
				await self._dispatch_mouse('mousePressed', center, button='left', clickCount=3)
				await self._dispatch_mouse('mouseReleased', center, button='left', clickCount=3)
				await self._dispatch_key('keyDown', key='Delete', code='Delete')
				await self._dispatch_key('keyUp', key='Delete', code='Delete')
				return True
		except CDPError as e:
			logger.debug(f'Triple-click clear failed: {e}')

		logger.warning('All text clearing strategies failed')
		return False

	async def _type_text(self, text: str, keystroke_delay: int) -> None:
		for char in text:
			info = get_char_info(char)
			if info is None:
				raise CDPError(f"Character '{char}' cannot be typed via keyboard simulation")

			if info is ENTER:
				char_params = {'text': '\r', 'key': 'Enter'}
			else:
				char_params = {'text': char, 'key': char}

			key_params = {
				'key': info.key,
				'code': info.code,
				'modifiers': info.modifiers,
				'windowsVirtualKeyCode': info.windows_virtual_key_code,
			}
			await self._dispatch_key('keyDown', **key_params)
			await sleep_ms(1)
			await self._dispatch_key('char', **char_params)
			await self._dispatch_key('keyUp', **key_params)
			await sleep_ms(keystroke_delay)

	async def fill_element(self, ref: NodeRef, options: FillOptions) -> FillResult:
		self._ensure_attached()
		backend_node_id = backend_node_id_of(ref)
		value = options.value
		start = time.time()

		try:
			await self._scroll_into_view(backend_node_id, settle_ms=10)
			object_id = await self._resolve_object_id(backend_node_id)

			if not await self._focus_element(backend_node_id, object_id):
				logger.warning('Element focus failed, typing may not work correctly')

			if options.clear and not await self._clear_text_field(object_id):
				logger.warning('Text field clearing failed, typing may append to existing text')

			if not can_type(value):
				raise CDPError('Value contains characters outside the keyboard map')

			await self._type_text(value, options.keystroke_delay)
			return FillResult(success=True, characters_typed=len(value), method='cdp', duration=_elapsed_ms(start))
		except CDPError as cdp_error:
			logger.debug(f'Typing into {backend_node_id} failed: {cdp_error}, assigning the value with JavaScript')
			try:
				object_id = await self._resolve_object_id(backend_node_id)
				await self._call_function_on(object_id, SET_VALUE_JS, [value])
				return FillResult(success=True, characters_typed=len(value), method='javascript', duration=_elapsed_ms(start))
			except CDPError as js_error:
				return FillResult(
					success=False,
					error=f'Both CDP and JavaScript fill failed. CDP: {cdp_error}, JavaScript: {js_error}',
					duration=_elapsed_ms(start),
				)

	# ------------------------------------------------------------------
	# select
	# ------------------------------------------------------------------

	async def _get_select_options(self, backend_node_id: int) -> tuple[list[SelectOptionCandidate], bool]:
		"""All options below the select (through optgroups) and whether it is a multi-select."""
		result = await self.gateway.send('DOM.describeNode', {'backendNodeId': backend_node_id, 'depth': -1})
		select_node = result.get('node') or {}

		def attributes_of(node: dict[str, Any]) -> dict[str, str]:
			raw = node.get('attributes') or []
			return {raw[i]: raw[i + 1] for i in range(0, len(raw) - 1, 2)}

		def text_of(node: dict[str, Any]) -> str:
			parts = []
			for child in node.get('children') or []:
				if child.get('nodeType') == 3:
					parts.append(child.get('nodeValue') or '')
				else:
					parts.append(text_of(child))
			return ''.join(parts)

		candidates: list[SelectOptionCandidate] = []

		def visit(node: dict[str, Any]) -> None:
			for child in node.get('children') or []:
				name = (child.get('nodeName') or '').lower()
				if name == 'option' and child.get('backendNodeId'):
					attributes = attributes_of(child)
					text = text_of(child).strip()
					candidates.append(
						SelectOptionCandidate(
							backend_node_id=child['backendNodeId'],
							value=attributes.get('value', text),
							text=text,
							selected='selected' in attributes,
							disabled='disabled' in attributes,
						)
					)
				elif name == 'optgroup':
					visit(child)

		visit(select_node)
		return candidates, 'multiple' in attributes_of(select_node)

	async def _select_option_by_javascript(self, backend_node_id: int) -> bool:
		try:
			object_id = await self._resolve_object_id(backend_node_id)
			await self._call_function_on(object_id, SELECT_OPTION_JS)
			return True
		except CDPError as e:
			logger.debug(f'JavaScript option selection failed: {e}')
			return False

	async def select_option(self, ref: NodeRef, options: SelectOptionOptions) -> SelectOptionResult:
		self._ensure_attached()
		backend_node_id = backend_node_id_of(ref)
		start = time.time()

		try:
			await self._scroll_into_view(backend_node_id, settle_ms=10)
			if not await self._focus_element(backend_node_id):
				logger.warning('Element focus failed, selection may not work correctly')

			candidates, is_multi_select = await self._get_select_options(backend_node_id)
			if not candidates:
				raise CDPError('No options found in select element')

			targets = list(options.values) if is_multi_select else options.values[:1]
			matching = [option for option in candidates if not option.disabled and option.matches(targets)]
			if not matching:
				raise CDPError(f'No matching options found for values: {", ".join(targets)}')

			selected: list[SelectOptionCandidate] = []
			method: InputMethod = 'cdp'
			for option in matching:
				click = await self.click_element(option.backend_node_id)
				if click.success:
					selected.append(option)
				elif await self._select_option_by_javascript(option.backend_node_id):
					selected.append(option)
					method = 'javascript'
				else:
					logger.warning(f'Failed to select option {option.value!r}: {click.error}')
				await sleep_ms(50)

			matched_values = [target for target in targets if any(option.matches([target]) for option in selected)]
			return SelectOptionResult(
				success=bool(selected),
				options_selected=len(selected),
				matched_values=matched_values,
				method=method,
				duration=_elapsed_ms(start),
			)
		except CDPError as e:
			logger.debug(f'❌ Selecting {options.values} in element {backend_node_id} failed: {e}')
			return SelectOptionResult(success=False, error=str(e), duration=_elapsed_ms(start))

	# ------------------------------------------------------------------
	# geometry / drag
	# ------------------------------------------------------------------

	async def get_bounding_box(self, ref: NodeRef) -> BoundingBox | None:
		"""Box model first, then getBoundingClientRect. None when the element has no box."""
		self._ensure_attached()
		backend_node_id = backend_node_id_of(ref)

		try:
			result = await self.gateway.send('DOM.getBoxModel', {'backendNodeId': backend_node_id})
			content = (result.get('model') or {}).get('content') or []
			if len(content) >= 8:
				min_x, min_y, max_x, max_y = _quad_bounds(content)
				return BoundingBox(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)
		except CDPError as e:
			logger.debug(f'DOM.getBoxModel failed for {backend_node_id}: {e}')

		try:
			object_id = await self._resolve_object_id(backend_node_id)
			rect = await self._call_function_on(object_id, BOUNDING_RECT_JS)
			if rect:
				return BoundingBox(x=rect['x'], y=rect['y'], width=rect['width'], height=rect['height'])
		except CDPError as e:
			logger.debug(f'getBoundingClientRect failed for {backend_node_id}: {e}')

		return None

	async def drag_to_element(self, ref: NodeRef, options: DragOptions) -> DragResult:
		self._ensure_attached()
		source_id = backend_node_id_of(ref)
		start = time.time()

		try:
			# boxes are read only after both ends have been scrolled
			await self._scroll_into_view(source_id)
			if not isinstance(options.target, Position):
				await self._scroll_into_view(options.target)

			source_box = await self.get_bounding_box(source_id)
			if source_box is None:
				raise CDPError('Source element is not visible or has no bounding box')
			source = source_box.center

			if isinstance(options.target, Position):
				target = options.target
			else:
				target_box = await self.get_bounding_box(options.target)
				if target_box is None:
					raise CDPError('Target element is not visible or has no bounding box')
				if options.target_position:
					target = Position(x=target_box.x + options.target_position.x, y=target_box.y + options.target_position.y)
				else:
					target = target_box.center

			viewport = await self._get_viewport()
			source = viewport.clamp(source.x, source.y)
			target = viewport.clamp(target.x, target.y)

			await self._dispatch_mouse('mouseMoved', source)
			await sleep_ms(50)
			await self._dispatch_mouse('mousePressed', source, button='left')
			await sleep_ms(50)
			await self._dispatch_mouse('mouseMoved', target)
			await sleep_ms(50)
			await self._dispatch_mouse('mouseReleased', target, button='left')

			logger.debug(f'✅ Dragged element {source_id} to ({target.x:.0f}, {target.y:.0f})')
			return DragResult(
				success=True,
				source_coordinates=source,
				target_coordinates=target,
				method='box_model',
				duration=_elapsed_ms(start),
			)
		except CDPError as e:
			return DragResult(success=False, error=str(e), duration=_elapsed_ms(start))

	# ------------------------------------------------------------------
	# attributes / scrolling
	# ------------------------------------------------------------------

	async def get_attribute(self, ref: NodeRef, attribute_name: str) -> GetAttributeResult:
		self._ensure_attached()
		backend_node_id = backend_node_id_of(ref)
		start = time.time()

		try:
			pushed = await self.gateway.send('DOM.pushNodesByBackendIdsToFrontend', {'backendNodeIds': [backend_node_id]})
			node_ids = pushed.get('nodeIds') or []
			if not node_ids:
				raise CDPError('Failed to get node id from backend node id')
			result = await self.gateway.send('DOM.getAttributes', {'nodeId': node_ids[0]})
			raw = result.get('attributes') or []
			for i in range(0, len(raw) - 1, 2):
				if raw[i] == attribute_name:
					return GetAttributeResult(success=True, value=raw[i + 1], exists=True, duration=_elapsed_ms(start))
			return GetAttributeResult(success=True, value=None, exists=False, duration=_elapsed_ms(start))
		except CDPError as e:
			logger.debug(f'DOM.getAttributes failed: {e}, trying JavaScript fallback')

		try:
			object_id = await self._resolve_object_id(backend_node_id)
			value = await self._call_function_on(
				object_id, 'function(attributeName) { return this.getAttribute(attributeName); }', [attribute_name]
			)
			return GetAttributeResult(success=True, value=value, exists=value is not None, duration=_elapsed_ms(start))
		except CDPError as e:
			return GetAttributeResult(success=False, error=str(e), duration=_elapsed_ms(start))

	async def get_basic_info(self, ref: NodeRef) -> GetBasicInfoResult:
		"""
		Describe an element: node name and type, parsed attributes, bounding box,
		plus text content and visibility as seen by the page.

		Only the node description is essential. A missing box or page-side data
		leaves those fields None, and a failed description is recorded on
		`info.error` while the call still succeeds.
		"""
		self._ensure_attached()
		backend_node_id = backend_node_id_of(ref)
		start = time.time()
		info = ElementBasicInfo(backend_node_id=backend_node_id)

		try:
			result = await self.gateway.send('DOM.describeNode', {'backendNodeId': backend_node_id, 'depth': 1})
			node = result.get('node') or {}
			raw = node.get('attributes') or []
			attributes = {raw[i]: raw[i + 1] for i in range(0, len(raw) - 1, 2)}

			info.node_name = node.get('nodeName', '')
			info.node_type = node.get('nodeType', 0)
			info.node_value = node.get('nodeValue') or None
			info.attributes = attributes
			info.tag_name = info.node_name.lower()
			info.id = attributes.get('id')
			info.classes = attributes.get('class', '').split()
		except CDPError as e:
			logger.debug(f'DOM.describeNode failed for {backend_node_id}: {e}')
			info.error = str(e)

		info.bounding_box = await self.get_bounding_box(backend_node_id)

		try:
			object_id = await self._resolve_object_id(backend_node_id)
			page_data = await self._call_function_on(object_id, BASIC_INFO_JS)
			if page_data:
				info.text_content = page_data.get('textContent')
				info.is_visible = page_data.get('isVisible')
				info.is_interactive = page_data.get('isInteractive')
		except CDPError as e:
			logger.debug(f'Page-side element info failed for {backend_node_id}: {e}')

		return GetBasicInfoResult(success=True, info=info, duration=_elapsed_ms(start))

	async def _perform_scroll_gesture(self, delta_x: float, delta_y: float, smooth: bool = True, x: float = 0, y: float = 0) -> None:
		params: dict[str, Any] = {
			'x': x,
			'y': y,
			'xDistance': -delta_x,
			'yDistance': -delta_y,
			'repeatCount': 1,
			'repeatDelayMs': 0,
			'interactionMarkerName': 'scroll',
		}
		if smooth:
			params['speed'] = 800
			params['gestureSourceType'] = 'touch'
		else:
			params['gestureSourceType'] = 'mouse'
		await self.gateway.send('Input.synthesizeScrollGesture', params)

	async def scroll_pages(self, options: ScrollOptions | None = None) -> ScrollResult:
		"""Scroll the page by (fractional) viewport heights."""
		self._ensure_attached()
		options = options or ScrollOptions()
		sign = -1 if options.direction == 'up' else 1
		start = time.time()

		try:
			viewport = await self._get_viewport()
		except CDPError as e:
			return ScrollResult(success=False, error=str(e), duration=_elapsed_ms(start))

		try:
			full_pages = int(options.pages)
			remaining_fraction = options.pages - full_pages
			scrolled = 0
			for page in range(full_pages):
				await self._perform_scroll_gesture(0, sign * viewport.height, options.smooth)
				scrolled += int(viewport.height)
				if page < full_pages - 1:
					await sleep_ms(options.scroll_delay)
			if remaining_fraction > 0:
				fraction_pixels = round(remaining_fraction * viewport.height)
				await self._perform_scroll_gesture(0, sign * fraction_pixels, options.smooth)
				scrolled += fraction_pixels
			return ScrollResult(
				success=True, pixels_scrolled=scrolled, direction=options.direction, method='cdp', duration=_elapsed_ms(start)
			)
		except CDPError as cdp_error:
			logger.debug(f'Scroll gesture failed: {cdp_error}, trying window.scrollBy')

			pixels = round(options.pages * viewport.height)
			try:
				await self.gateway.send('Runtime.evaluate', {'expression': f'window.scrollBy(0, {sign * pixels})'})
			except CDPError as js_error:
				return ScrollResult(
					success=False,
					error=f'Both CDP and JavaScript scroll failed. CDP: {cdp_error}, JavaScript: {js_error}',
					duration=_elapsed_ms(start),
				)
			return ScrollResult(
				success=True, pixels_scrolled=pixels, direction=options.direction, method='javascript', duration=_elapsed_ms(start)
			)

	async def scroll_at_coordinate(self, options: ScrollAtCoordinateOptions) -> ScrollResult:
		"""Scroll whatever sits under a viewport point, e.g. an inner scroll container."""
		self._ensure_attached()
		start = time.time()

		if options.delta_x == 0 and options.delta_y == 0:
			return ScrollResult(
				success=False,
				error='No scroll delta provided (both delta_x and delta_y are zero)',
				duration=_elapsed_ms(start),
			)

		direction: ScrollDirection | None = None
		if options.delta_y:
			direction = 'down' if options.delta_y > 0 else 'up'
		pixels = round(math.hypot(options.delta_x, options.delta_y))

		try:
			viewport = await self._get_viewport()
		except CDPError as e:
			return ScrollResult(success=False, error=str(e), duration=_elapsed_ms(start))
		point = viewport.clamp(options.x, options.y)

		try:
			await self._perform_scroll_gesture(options.delta_x, options.delta_y, options.smooth, x=point.x, y=point.y)
			return ScrollResult(
				success=True, pixels_scrolled=pixels, direction=direction, method='cdp', duration=_elapsed_ms(start)
			)
		except CDPError as e:
			gesture_error = e
			logger.debug(f'Scroll gesture at ({point.x:.0f}, {point.y:.0f}) failed: {e}, trying element.scrollBy')

		expression = SCROLL_AT_POINT_JS % {'x': point.x, 'y': point.y, 'dx': options.delta_x, 'dy': options.delta_y}
		try:
			await self.gateway.send('Runtime.evaluate', {'expression': expression})
		except CDPError as js_error:
			return ScrollResult(
				success=False,
				error=f'Both CDP and JavaScript scroll failed. CDP: {gesture_error}, JavaScript: {js_error}',
				duration=_elapsed_ms(start),
			)
		return ScrollResult(
			success=True, pixels_scrolled=pixels, direction=direction, method='javascript', duration=_elapsed_ms(start)
		)
