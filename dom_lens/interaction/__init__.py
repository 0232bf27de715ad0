from dom_lens.interaction.service import ElementInteractionService
from dom_lens.interaction.views import (
	BoundingBox,
	ClickOptions,
	ClickResult,
	DragOptions,
	DragResult,
	ElementBasicInfo,
	FillOptions,
	FillResult,
	GetAttributeResult,
	GetBasicInfoResult,
	HoverOptions,
	HoverResult,
	Position,
	ScrollAtCoordinateOptions,
	ScrollOptions,
	ScrollResult,
	SelectOptionOptions,
	SelectOptionResult,
)

__all__ = [
	'ElementInteractionService',
	'BoundingBox',
	'ClickOptions',
	'ClickResult',
	'DragOptions',
	'DragResult',
	'ElementBasicInfo',
	'FillOptions',
	'FillResult',
	'GetAttributeResult',
	'GetBasicInfoResult',
	'HoverOptions',
	'HoverResult',
	'Position',
	'ScrollAtCoordinateOptions',
	'ScrollOptions',
	'ScrollResult',
	'SelectOptionOptions',
	'SelectOptionResult',
]
