"""
ElementInteractionService against a scripted gateway.

Input timing is patched out, so the tests assert on the exact protocol
traffic each operation produces.
"""

from unittest.mock import AsyncMock, call

import pytest
from conftest import ScriptedGateway, build_table, cdp_failure, el
from pydantic import ValidationError

from dom_lens.cdp.views import TargetNotAttachedError
from dom_lens.interaction.service import ElementInteractionService, modifier_bitmask
from dom_lens.interaction.views import (
	BoundingBox,
	ClickOptions,
	DragOptions,
	FillOptions,
	Position,
	ScrollAtCoordinateOptions,
	ScrollOptions,
	SelectOptionOptions,
)

VIEWPORT = {'cssLayoutViewport': {'clientWidth': 800, 'clientHeight': 600}}
QUAD = [10, 20, 110, 20, 110, 60, 10, 60]
RESOLVED = {'object': {'objectId': 'obj-1'}}


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
	sleep = AsyncMock()
	monkeypatch.setattr('dom_lens.interaction.service.sleep_ms', sleep)
	return sleep


def service_with(**responses) -> tuple[ElementInteractionService, ScriptedGateway]:
	gateway = ScriptedGateway({'Page.getLayoutMetrics': VIEWPORT, **responses})
	return ElementInteractionService(gateway), gateway


def mouse_events(gateway: ScriptedGateway) -> list[tuple[str, float, float]]:
	return [(p['type'], p['x'], p['y']) for p in gateway.params_of('Input.dispatchMouseEvent')]


def key_events(gateway: ScriptedGateway, event_type: str) -> list[dict]:
	return [p for p in gateway.params_of('Input.dispatchKeyEvent') if p['type'] == event_type]


def by_backend_id(replies: dict):
	return lambda params: replies[params['backendNodeId']]


def box_after_scroll(gateway: ScriptedGateway, before: dict, after: dict):
	"""Box model reply that changes once the element has been scrolled into view."""
	return lambda params: after if 'DOM.scrollIntoViewIfNeeded' in gateway.methods() else before


BELOW_FOLD = {'model': {'content': [10, 2000, 110, 2000, 110, 2040, 10, 2040]}}
SCROLLED_INTO_VIEW = {'model': {'content': [10, 300, 110, 300, 110, 340, 10, 340]}}


class TestLifecycle:
	async def test_initialize_attaches(self):
		gateway = ScriptedGateway(attached=False)
		await ElementInteractionService(gateway).initialize()
		assert gateway.connect_calls == 1

	async def test_destroy_keeps_borrowed_connection(self):
		service, gateway = service_with()
		await service.destroy()
		assert gateway.is_attached

	async def test_operations_require_a_session(self):
		service = ElementInteractionService(ScriptedGateway(attached=False))

		with pytest.raises(TargetNotAttachedError, match='Debugger not attached - call initialize\\(\\) first'):
			await service.click_element(1)


class TestClick:
	async def test_click_at_content_quad_center(self):
		service, gateway = service_with(**{'DOM.getContentQuads': {'quads': [QUAD]}})

		result = await service.click_element(5)

		assert result.success
		assert result.method == 'content_quads'
		assert result.coordinates == Position(x=60, y=40)
		assert mouse_events(gateway) == [('mouseMoved', 60, 40), ('mousePressed', 60, 40), ('mouseReleased', 60, 40)]
		pressed = gateway.params_of('Input.dispatchMouseEvent')[1]
		assert (pressed['button'], pressed['clickCount'], pressed['modifiers']) == ('left', 1, 0)
		assert gateway.params_of('DOM.scrollIntoViewIfNeeded') == [{'backendNodeId': 5}]
		assert result.duration >= 0

	async def test_click_options(self):
		service, gateway = service_with(**{'DOM.getContentQuads': {'quads': [QUAD]}})

		await service.click_element(5, ClickOptions(button='right', click_count=2, modifiers=['Control', 'Shift']))

		released = gateway.params_of('Input.dispatchMouseEvent')[2]
		assert (released['button'], released['clickCount'], released['modifiers']) == ('right', 2, 10)

	async def test_accepts_a_node(self):
		service, gateway = service_with(**{'DOM.getContentQuads': {'quads': [QUAD]}})
		node = build_table(el('button', backend_node_id=42)).root

		assert (await service.click_element(node)).success
		assert gateway.params_of('DOM.getContentQuads') == [{'backendNodeId': 42}]

	async def test_largest_visible_quad_wins(self):
		offscreen = [-200, -200, -100, -200, -100, -100, -200, -100]
		small = [0, 0, 10, 0, 10, 10, 0, 10]
		large = [100, 100, 300, 100, 300, 200, 100, 200]
		service, _ = service_with(**{'DOM.getContentQuads': {'quads': [offscreen, small, large]}})

		result = await service.click_element(5)

		assert result.coordinates == Position(x=200, y=150)

	async def test_box_model_fallback(self):
		service, _ = service_with(
			**{
				'DOM.getContentQuads': cdp_failure('DOM.getContentQuads'),
				'DOM.getBoxModel': {'model': {'content': [0, 0, 100, 0, 100, 50, 0, 50]}},
			}
		)

		result = await service.click_element(5)

		assert result.method == 'box_model'
		assert result.coordinates == Position(x=50, y=25)

	async def test_bounding_rect_fallback(self):
		service, _ = service_with(
			**{
				'DOM.getBoxModel': cdp_failure('DOM.getBoxModel'),
				'DOM.resolveNode': RESOLVED,
				'Runtime.callFunctionOn': {'result': {'value': {'x': 10, 'y': 10, 'width': 20, 'height': 20}}},
			}
		)

		result = await service.click_element(5)

		assert result.method == 'bounding_rect'
		assert result.coordinates == Position(x=20, y=20)

	async def test_point_is_clamped_to_viewport(self):
		service, _ = service_with(**{'DOM.getBoxModel': {'model': {'content': [700, 500, 1000, 500, 1000, 800, 700, 800]}}})

		result = await service.click_element(5)

		assert result.coordinates == Position(x=799, y=599)

	async def test_point_is_read_after_scrolling(self):
		service, gateway = service_with()
		gateway.responses['DOM.getBoxModel'] = box_after_scroll(gateway, BELOW_FOLD, SCROLLED_INTO_VIEW)

		result = await service.click_element(5)

		assert result.method == 'box_model'
		assert result.coordinates == Position(x=60, y=320)
		assert ('mousePressed', 60, 320) in mouse_events(gateway)
		assert gateway.methods().index('DOM.scrollIntoViewIfNeeded') < gateway.methods().index('DOM.getBoxModel')

	async def test_hover_point_is_read_after_scrolling(self):
		service, gateway = service_with()
		gateway.responses['DOM.getBoxModel'] = box_after_scroll(gateway, BELOW_FOLD, SCROLLED_INTO_VIEW)

		result = await service.hover_element(5)

		assert result.coordinates == Position(x=60, y=320)
		assert mouse_events(gateway) == [('mouseMoved', 60, 320)]

	async def test_javascript_click_fallback(self):
		service, gateway = service_with(
			**{
				'DOM.getContentQuads': {'quads': [QUAD]},
				'Input.dispatchMouseEvent': cdp_failure('Input.dispatchMouseEvent'),
				'DOM.resolveNode': RESOLVED,
			}
		)

		result = await service.click_element(5)

		assert result.success
		assert result.method == 'javascript'
		assert 'this.click()' in gateway.params_of('Runtime.callFunctionOn')[0]['functionDeclaration']

	async def test_unresolvable_element_is_reported(self):
		service, gateway = service_with(**{'DOM.resolveNode': cdp_failure('DOM.resolveNode')})

		result = await service.click_element(7)

		assert not result.success
		assert 'Could not resolve element 7' in result.error
		assert mouse_events(gateway) == []

	async def test_hover_moves_only(self):
		service, gateway = service_with(**{'DOM.getContentQuads': {'quads': [QUAD]}})

		result = await service.hover_element(5)

		assert result.success
		assert mouse_events(gateway) == [('mouseMoved', 60, 40)]


class TestFill:
	def fill_service(self, **responses):
		return service_with(
			**{'DOM.resolveNode': RESOLVED, 'Runtime.callFunctionOn': {'result': {'value': ''}}, **responses}
		)

	async def test_typing_sends_every_character(self):
		service, gateway = self.fill_service()

		result = await service.fill_element(3, FillOptions(value='ab1!'))

		assert result.success
		assert result.method == 'cdp'
		assert result.characters_typed == 4
		assert ''.join(event['text'] for event in key_events(gateway, 'char')) == 'ab1!'
		assert len(key_events(gateway, 'keyDown')) == len(key_events(gateway, 'keyUp')) == 4
		bang = key_events(gateway, 'keyDown')[3]
		assert (bang['key'], bang['code'], bang['modifiers'], bang['windowsVirtualKeyCode']) == ('1', 'Digit1', 8, 49)
		assert gateway.params_of('DOM.focus') == [{'backendNodeId': 3}]

	async def test_existing_value_is_cleared_first(self):
		service, gateway = self.fill_service()

		await service.fill_element(3, FillOptions(value='x'))

		calls = gateway.params_of('Runtime.callFunctionOn')
		assert len(calls) == 1
		assert 'this.value = ""' in calls[0]['functionDeclaration']
		assert gateway.methods().index('Runtime.callFunctionOn') < gateway.methods().index('Input.dispatchKeyEvent')

	async def test_clear_can_be_skipped(self):
		service, gateway = self.fill_service()

		await service.fill_element(3, FillOptions(value='x', clear=False))

		assert gateway.params_of('Runtime.callFunctionOn') == []

	async def test_newline_presses_enter(self):
		service, gateway = self.fill_service()

		await service.fill_element(3, FillOptions(value='a\n', clear=False))

		assert key_events(gateway, 'char')[1] == {'type': 'char', 'text': '\r', 'key': 'Enter'}

	async def test_keystroke_delay(self, no_sleep):
		service, _ = self.fill_service()

		await service.fill_element(3, FillOptions(value='ab', clear=False, keystroke_delay=25))

		assert no_sleep.await_args_list.count(call(25)) == 2

	async def test_unmapped_characters_use_javascript(self):
		service, gateway = self.fill_service()

		result = await service.fill_element(3, FillOptions(value='café', clear=False))

		assert result.success
		assert result.method == 'javascript'
		assert key_events(gateway, 'keyDown') == []
		assert gateway.params_of('Runtime.callFunctionOn')[-1]['arguments'] == [{'value': 'café'}]

	async def test_focus_falls_back_to_javascript(self):
		service, gateway = self.fill_service(**{'DOM.focus': cdp_failure('DOM.focus')})

		result = await service.fill_element(3, FillOptions(value='x', clear=False))

		assert result.method == 'cdp'
		assert 'this.focus()' in gateway.params_of('Runtime.callFunctionOn')[0]['functionDeclaration']

	async def test_both_strategies_failing_is_reported(self):
		service, _ = service_with(**{'DOM.resolveNode': cdp_failure('DOM.resolveNode')})

		result = await service.fill_element(3, FillOptions(value='x'))

		assert not result.success
		assert result.error.startswith('Both CDP and JavaScript fill failed')


def select_node(*options, multiple=False):
	return {
		'node': {
			'nodeName': 'SELECT',
			'backendNodeId': 10,
			'attributes': ['multiple', ''] if multiple else [],
			'children': list(options),
		}
	}


def option_node(backend_node_id, label, value=None, disabled=False):
	attributes = []
	if value is not None:
		attributes += ['value', value]
	if disabled:
		attributes += ['disabled', '']
	return {
		'nodeName': 'OPTION',
		'backendNodeId': backend_node_id,
		'attributes': attributes,
		'children': [{'nodeType': 3, 'nodeName': '#text', 'nodeValue': label}],
	}


STATES = [
	{
		'nodeName': 'OPTGROUP',
		'attributes': ['label', 'East'],
		'children': [option_node(11, 'New York (NY)', 'NY'), option_node(12, 'Texas', 'TX', disabled=True)],
	},
	option_node(13, 'California', 'CA'),
]


class TestSelect:
	def select_service(self, describe, **responses):
		return service_with(**{'DOM.describeNode': describe, 'DOM.getContentQuads': {'quads': [QUAD]}, **responses})

	async def test_values_and_texts_match(self):
		service, gateway = self.select_service(select_node(*STATES, multiple=True))

		result = await service.select_option(10, SelectOptionOptions(values=['NY', 'new york']))

		assert result.success
		assert result.options_selected == 1
		assert result.matched_values == ['NY', 'new york']
		assert result.method == 'cdp'
		assert gateway.params_of('DOM.describeNode') == [{'backendNodeId': 10, 'depth': -1}]
		assert gateway.params_of('DOM.getContentQuads') == [{'backendNodeId': 11}]

	async def test_single_select_uses_first_value(self):
		service, gateway = self.select_service(select_node(*STATES))

		result = await service.select_option(10, SelectOptionOptions(values=['CA', 'NY']))

		assert result.options_selected == 1
		assert result.matched_values == ['CA']
		assert gateway.params_of('DOM.getContentQuads') == [{'backendNodeId': 13}]

	async def test_multi_select_selects_every_match(self):
		service, _ = self.select_service(select_node(*STATES, multiple=True))

		result = await service.select_option(10, SelectOptionOptions(values=['CA', 'NY']))

		assert result.options_selected == 2
		assert result.matched_values == ['CA', 'NY']

	async def test_disabled_options_are_skipped(self):
		service, _ = self.select_service(select_node(*STATES))

		result = await service.select_option(10, SelectOptionOptions(values=['TX']))

		assert not result.success
		assert result.error == 'No matching options found for values: TX'

	async def test_option_value_defaults_to_text(self):
		service, _ = self.select_service(select_node(option_node(21, 'Red'), option_node(22, 'Blue')))

		result = await service.select_option(10, SelectOptionOptions(values=['Blue']))

		assert result.matched_values == ['Blue']

	async def test_empty_select(self):
		service, _ = self.select_service(select_node())

		result = await service.select_option(10, SelectOptionOptions(values=['x']))

		assert result.error == 'No options found in select element'

	async def test_javascript_selection_fallback(self):
		def call_function_on(params):
			if 'this.click()' in params['functionDeclaration']:
				raise cdp_failure('Runtime.callFunctionOn')
			return {'result': {'value': True}}

		service, _ = self.select_service(
			select_node(*STATES),
			**{
				'Input.dispatchMouseEvent': cdp_failure('Input.dispatchMouseEvent'),
				'DOM.resolveNode': RESOLVED,
				'Runtime.callFunctionOn': call_function_on,
			},
		)

		result = await service.select_option(10, SelectOptionOptions(values=['CA']))

		assert result.success
		assert result.method == 'javascript'

	def test_at_least_one_value_is_required(self):
		with pytest.raises(ValidationError):
			SelectOptionOptions(values=[])


class TestGeometry:
	async def test_bounding_box_from_box_model(self):
		service, _ = service_with(**{'DOM.getBoxModel': {'model': {'content': QUAD}}})
		assert await service.get_bounding_box(5) == BoundingBox(x=10, y=20, width=100, height=40)

	async def test_bounding_box_from_javascript(self):
		service, _ = service_with(
			**{
				'DOM.getBoxModel': cdp_failure('DOM.getBoxModel'),
				'DOM.resolveNode': RESOLVED,
				'Runtime.callFunctionOn': {'result': {'value': {'x': 1, 'y': 2, 'width': 3, 'height': 4}}},
			}
		)
		assert await service.get_bounding_box(5) == BoundingBox(x=1, y=2, width=3, height=4)

	async def test_bounding_box_missing(self):
		service, _ = service_with(
			**{'DOM.getBoxModel': cdp_failure('DOM.getBoxModel'), 'DOM.resolveNode': cdp_failure('DOM.resolveNode')}
		)
		assert await service.get_bounding_box(5) is None


BOXES = {
	1: {'model': {'content': [0, 0, 100, 0, 100, 100, 0, 100]}},
	2: {'model': {'content': [200, 200, 300, 200, 300, 300, 200, 300]}},
}


class TestDrag:
	async def test_drag_between_elements(self):
		service, gateway = service_with(**{'DOM.getBoxModel': by_backend_id(BOXES)})

		result = await service.drag_to_element(1, DragOptions(target=2))

		assert result.success
		assert result.source_coordinates == Position(x=50, y=50)
		assert result.target_coordinates == Position(x=250, y=250)
		assert mouse_events(gateway) == [
			('mouseMoved', 50, 50),
			('mousePressed', 50, 50),
			('mouseMoved', 250, 250),
			('mouseReleased', 250, 250),
		]
		assert gateway.params_of('DOM.scrollIntoViewIfNeeded') == [{'backendNodeId': 1}, {'backendNodeId': 2}]

	async def test_offset_inside_target(self):
		service, _ = service_with(**{'DOM.getBoxModel': by_backend_id(BOXES)})

		result = await service.drag_to_element(1, DragOptions(target=2, target_position=Position(x=10, y=5)))

		assert result.target_coordinates == Position(x=210, y=205)

	async def test_drag_to_position(self):
		service, gateway = service_with(**{'DOM.getBoxModel': by_backend_id(BOXES)})

		result = await service.drag_to_element(1, DragOptions(target=Position(x=300, y=400)))

		assert result.target_coordinates == Position(x=300, y=400)
		assert gateway.params_of('DOM.scrollIntoViewIfNeeded') == [{'backendNodeId': 1}]

	async def test_boxes_are_read_after_scrolling(self):
		service, gateway = service_with()
		source_box = box_after_scroll(gateway, BELOW_FOLD, SCROLLED_INTO_VIEW)
		gateway.responses['DOM.getBoxModel'] = lambda params: source_box(params) if params['backendNodeId'] == 1 else BOXES[2]

		result = await service.drag_to_element(1, DragOptions(target=2))

		assert result.source_coordinates == Position(x=60, y=320)
		assert mouse_events(gateway)[1] == ('mousePressed', 60, 320)
		methods = gateway.methods()
		assert methods[:2] == ['DOM.scrollIntoViewIfNeeded', 'DOM.scrollIntoViewIfNeeded']
		assert methods.index('DOM.getBoxModel') == 2

	async def test_invisible_source(self):
		service, gateway = service_with(
			**{'DOM.getBoxModel': cdp_failure('DOM.getBoxModel'), 'DOM.resolveNode': cdp_failure('DOM.resolveNode')}
		)

		result = await service.drag_to_element(1, DragOptions(target=2))

		assert not result.success
		assert result.error == 'Source element is not visible or has no bounding box'
		assert mouse_events(gateway) == []


class TestGetAttribute:
	def attribute_service(self, **responses):
		return service_with(
			**{
				'DOM.pushNodesByBackendIdsToFrontend': {'nodeIds': [17]},
				'DOM.getAttributes': {'attributes': ['href', '/about', 'class', 'nav']},
				**responses,
			}
		)

	async def test_existing_attribute(self):
		service, gateway = self.attribute_service()

		result = await service.get_attribute(5, 'href')

		assert (result.success, result.exists, result.value) == (True, True, '/about')
		assert gateway.params_of('DOM.getAttributes') == [{'nodeId': 17}]

	async def test_missing_attribute(self):
		service, _ = self.attribute_service()

		result = await service.get_attribute(5, 'target')

		assert (result.success, result.exists, result.value) == (True, False, None)

	async def test_javascript_fallback(self):
		service, gateway = self.attribute_service(
			**{
				'DOM.pushNodesByBackendIdsToFrontend': {'nodeIds': []},
				'DOM.resolveNode': RESOLVED,
				'Runtime.callFunctionOn': {'result': {'value': 'nav'}},
			}
		)

		result = await service.get_attribute(5, 'class')

		assert (result.success, result.exists, result.value) == (True, True, 'nav')
		assert gateway.params_of('Runtime.callFunctionOn')[0]['arguments'] == [{'value': 'class'}]

	async def test_failure_is_reported(self):
		service, _ = self.attribute_service(
			**{
				'DOM.pushNodesByBackendIdsToFrontend': cdp_failure('DOM.pushNodesByBackendIdsToFrontend'),
				'DOM.resolveNode': cdp_failure('DOM.resolveNode'),
			}
		)

		result = await service.get_attribute(5, 'class')

		assert not result.success
		assert not result.exists


DESCRIBED = {
	'node': {
		'nodeId': 0,
		'backendNodeId': 5,
		'nodeType': 1,
		'nodeName': 'BUTTON',
		'attributes': ['id', 'save', 'class', 'btn  primary', 'type', 'submit'],
	}
}


class TestBasicInfo:
	async def test_description_box_and_page_data(self):
		service, gateway = service_with(
			**{
				'DOM.describeNode': DESCRIBED,
				'DOM.getBoxModel': {'model': {'content': QUAD}},
				'DOM.resolveNode': RESOLVED,
				'Runtime.callFunctionOn': {'result': {'value': {'textContent': 'Save', 'isVisible': True, 'isInteractive': True}}},
			}
		)

		result = await service.get_basic_info(5)

		assert result.success
		info = result.info
		assert (info.node_name, info.node_type, info.tag_name, info.id) == ('BUTTON', 1, 'button', 'save')
		assert info.attributes == {'id': 'save', 'class': 'btn  primary', 'type': 'submit'}
		assert info.classes == ['btn', 'primary']
		assert info.bounding_box == BoundingBox(x=10, y=20, width=100, height=40)
		assert (info.text_content, info.is_visible, info.is_interactive) == ('Save', True, True)
		assert info.error is None
		assert gateway.params_of('DOM.describeNode') == [{'backendNodeId': 5, 'depth': 1}]

	async def test_missing_box_and_page_data_stay_empty(self):
		service, _ = service_with(
			**{
				'DOM.describeNode': DESCRIBED,
				'DOM.getBoxModel': cdp_failure('DOM.getBoxModel'),
				'DOM.resolveNode': cdp_failure('DOM.resolveNode'),
			}
		)

		result = await service.get_basic_info(5)

		assert result.success
		assert result.info.tag_name == 'button'
		assert result.info.bounding_box is None
		assert result.info.is_visible is None

	async def test_failed_description_is_recorded(self):
		service, _ = service_with(
			**{
				'DOM.describeNode': cdp_failure('DOM.describeNode', 'No node with given id found'),
				'DOM.getBoxModel': {'model': {'content': QUAD}},
				'DOM.resolveNode': cdp_failure('DOM.resolveNode'),
			}
		)

		result = await service.get_basic_info(9)

		assert result.success
		assert result.info.backend_node_id == 9
		assert result.info.node_name == ''
		assert result.info.attributes == {}
		assert 'No node with given id found' in result.info.error
		assert result.info.bounding_box is not None


class TestScroll:
	async def test_fractional_pages(self, no_sleep):
		service, gateway = service_with()

		result = await service.scroll_pages(ScrollOptions(pages=2.5))

		assert result.success
		assert result.method == 'cdp'
		assert result.direction == 'down'
		assert result.pixels_scrolled == 1500
		gestures = gateway.params_of('Input.synthesizeScrollGesture')
		assert [g['yDistance'] for g in gestures] == [-600, -600, -300]
		assert gestures[0]['gestureSourceType'] == 'touch'
		assert gestures[0]['speed'] == 800
		# only between full pages
		assert no_sleep.await_args_list.count(call(300)) == 1

	async def test_scroll_up(self):
		service, gateway = service_with()

		await service.scroll_pages(ScrollOptions(direction='up'))

		assert [g['yDistance'] for g in gateway.params_of('Input.synthesizeScrollGesture')] == [600]

	async def test_instant_scroll(self):
		service, gateway = service_with()

		await service.scroll_pages(ScrollOptions(smooth=False))

		gesture = gateway.params_of('Input.synthesizeScrollGesture')[0]
		assert gesture['gestureSourceType'] == 'mouse'
		assert 'speed' not in gesture

	async def test_javascript_fallback(self):
		service, gateway = service_with(**{'Input.synthesizeScrollGesture': cdp_failure('Input.synthesizeScrollGesture')})

		result = await service.scroll_pages(ScrollOptions(pages=1, direction='up'))

		assert result.success
		assert result.method == 'javascript'
		assert result.pixels_scrolled == 600
		assert gateway.params_of('Runtime.evaluate') == [{'expression': 'window.scrollBy(0, -600)'}]

	async def test_viewport_failure_is_reported(self):
		service, _ = service_with(**{'Page.getLayoutMetrics': cdp_failure('Page.getLayoutMetrics')})

		result = await service.scroll_pages()

		assert not result.success


class TestScrollAtCoordinate:
	async def test_gesture_starts_at_the_point(self):
		service, gateway = service_with()

		result = await service.scroll_at_coordinate(ScrollAtCoordinateOptions(x=200, y=150, delta_x=30, delta_y=40))

		assert result.success
		assert (result.method, result.pixels_scrolled, result.direction) == ('cdp', 50, 'down')
		gesture = gateway.params_of('Input.synthesizeScrollGesture')[0]
		assert (gesture['x'], gesture['y']) == (200, 150)
		assert (gesture['xDistance'], gesture['yDistance']) == (-30, -40)

	async def test_point_is_clamped_to_viewport(self):
		service, gateway = service_with()

		result = await service.scroll_at_coordinate(ScrollAtCoordinateOptions(x=-50, y=5000, delta_y=-100))

		assert result.direction == 'up'
		gesture = gateway.params_of('Input.synthesizeScrollGesture')[0]
		assert (gesture['x'], gesture['y']) == (0, 599)

	async def test_zero_delta_is_rejected(self):
		service, gateway = service_with()

		result = await service.scroll_at_coordinate(ScrollAtCoordinateOptions(x=10, y=10))

		assert not result.success
		assert 'No scroll delta' in result.error
		assert gateway.calls == []

	async def test_javascript_fallback_scrolls_element_under_point(self):
		service, gateway = service_with(**{'Input.synthesizeScrollGesture': cdp_failure('Input.synthesizeScrollGesture')})

		result = await service.scroll_at_coordinate(ScrollAtCoordinateOptions(x=900, y=100, delta_y=250))

		assert result.success
		assert result.method == 'javascript'
		assert result.pixels_scrolled == 250
		expression = gateway.params_of('Runtime.evaluate')[0]['expression']
		assert 'document.elementFromPoint(799.0, 100.0)' in expression
		assert 'top: 250' in expression

	async def test_both_strategies_failing_is_reported(self):
		service, _ = service_with(
			**{
				'Input.synthesizeScrollGesture': cdp_failure('Input.synthesizeScrollGesture'),
				'Runtime.evaluate': cdp_failure('Runtime.evaluate'),
			}
		)

		result = await service.scroll_at_coordinate(ScrollAtCoordinateOptions(x=10, y=10, delta_x=5))

		assert not result.success
		assert result.direction is None
		assert result.error.startswith('Both CDP and JavaScript scroll failed')


class TestOptions:
	def test_modifier_bitmask(self):
		assert modifier_bitmask(['Alt', 'Control', 'Meta', 'Shift']) == 15
		assert modifier_bitmask(None) == 0

	@pytest.mark.parametrize(
		'factory',
		[
			lambda: ClickOptions(click_count=0),
			lambda: ClickOptions(button='back'),
			lambda: ScrollOptions(pages=0),
			lambda: FillOptions(value='x', keystroke_delay=-1),
			lambda: FillOptions(value='x', typo=True),
			lambda: ScrollAtCoordinateOptions(x=1),
		],
	)
	def test_invalid_options(self, factory):
		with pytest.raises(ValidationError):
			factory()
