from dom_lens.dom.service import DomService
from dom_lens.dom.views import (
	ChangeDetectionResult,
	DOMNodeTable,
	DOMSelectorMap,
	EnhancedDOMTree,
	EnhancedDOMTreeNode,
	SerializationConfig,
	SerializationStats,
	SerializationTiming,
	SerializedDOMState,
	SerializedView,
)

__all__ = [
	'DomService',
	'ChangeDetectionResult',
	'DOMNodeTable',
	'DOMSelectorMap',
	'EnhancedDOMTree',
	'EnhancedDOMTreeNode',
	'SerializationConfig',
	'SerializationStats',
	'SerializationTiming',
	'SerializedDOMState',
	'SerializedView',
]
