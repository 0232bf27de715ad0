from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from dom_lens.config import CONFIG

MouseButton = Literal['left', 'right', 'middle']
Modifier = Literal['Alt', 'Control', 'Meta', 'Shift']
CoordinateMethod = Literal['content_quads', 'box_model', 'bounding_rect', 'javascript']
InputMethod = Literal['cdp', 'javascript']
ScrollDirection = Literal['up', 'down']


class Position(BaseModel):
	x: float
	y: float


class BoundingBox(BaseModel):
	"""Element box in CSS pixels, viewport coordinates"""

	x: float
	y: float
	width: float
	height: float

	@property
	def center(self) -> Position:
		return Position(x=self.x + self.width / 2, y=self.y + self.height / 2)


# =============================================================================
# Options
# =============================================================================


class ClickOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')

	button: MouseButton = Field(default='left', description='Mouse button to click')
	click_count: int = Field(default=1, ge=1, description='Number of clicks (1=single, 2=double, etc.)')
	modifiers: list[Modifier] = Field(default_factory=list, description='Modifier keys to hold during click')


class FillOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')

	value: str = Field(..., description='Text to type into the element')
	clear: bool = Field(default=True, description='Clear the existing value before typing')
	keystroke_delay: int = Field(
		default_factory=lambda: CONFIG.DOM_LENS_KEYSTROKE_DELAY_MS,
		ge=0,
		description='Delay between keystrokes in milliseconds',
	)


class SelectOptionOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')

	values: list[str] = Field(..., min_length=1, description='Option values or visible texts to select')


class HoverOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')


class DragOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')

	target: int | Position = Field(..., description='Backend node id of the drop element, or a viewport position')
	target_position: Position | None = Field(
		default=None, description='Offset inside the target element, defaults to its center'
	)


class ScrollOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')

	direction: ScrollDirection = 'down'
	pages: float = Field(default=1.0, gt=0, description='Number of viewport heights, fractions allowed')
	scroll_delay: int = Field(default=300, ge=0, description='Pause between full-page scrolls in milliseconds')
	smooth: bool = True


class ScrollAtCoordinateOptions(BaseModel):
	model_config = ConfigDict(extra='forbid')

	x: float = Field(..., description='Viewport x of the scroll origin, clamped to the viewport')
	y: float = Field(..., description='Viewport y of the scroll origin, clamped to the viewport')
	delta_x: float = Field(default=0, description='Horizontal pixels, positive scrolls right')
	delta_y: float = Field(default=0, description='Vertical pixels, positive scrolls down')
	smooth: bool = True


# =============================================================================
# Results
# =============================================================================


class InteractionResult(BaseModel):
	success: bool
	error: str | None = None
	duration: float = Field(default=0.0, description='Milliseconds spent on the call')


class ClickResult(InteractionResult):
	coordinates: Position | None = None
	method: CoordinateMethod | None = None


class HoverResult(InteractionResult):
	coordinates: Position | None = None
	method: CoordinateMethod | None = None


class FillResult(InteractionResult):
	characters_typed: int = 0
	method: InputMethod | None = None


class SelectOptionResult(InteractionResult):
	options_selected: int = 0
	matched_values: list[str] = Field(default_factory=list)
	method: InputMethod | None = None


class DragResult(InteractionResult):
	source_coordinates: Position | None = None
	target_coordinates: Position | None = None
	method: CoordinateMethod | None = None


class GetAttributeResult(InteractionResult):
	value: str | None = None
	exists: bool = False


class ScrollResult(InteractionResult):
	pixels_scrolled: int = 0
	direction: ScrollDirection | None = None
	method: InputMethod | None = None


class ElementBasicInfo(BaseModel):
	"""Description of a single element; fields the page could not supply stay None"""

	backend_node_id: int
	node_name: str = ''
	node_type: int = 0
	node_value: str | None = None
	tag_name: str | None = None
	id: str | None = None
	classes: list[str] = Field(default_factory=list)
	attributes: dict[str, str] = Field(default_factory=dict)
	bounding_box: BoundingBox | None = None
	text_content: str | None = None
	is_visible: bool | None = None
	is_interactive: bool | None = None
	error: str | None = Field(default=None, description='Why the node description is missing, if it is')


class GetBasicInfoResult(InteractionResult):
	info: ElementBasicInfo | None = None


class SelectOptionCandidate(BaseModel):
	"""An <option> found below a select element"""

	backend_node_id: int
	value: str
	text: str
	selected: bool = False
	disabled: bool = False

	def matches(self, targets: list[str]) -> bool:
		text = self.text.lower()
		for target in targets:
			wanted = target.lower()
			if self.value == target or self.text == target:
				return True
			if text and wanted and (wanted in text or text in wanted):
				return True
		return False
