"""
Parsing of DOMSnapshot.captureSnapshot output into per-node layout facts.

The snapshot is a set of parallel arrays per document. Layout arrays are
indexed by layout position and point back into the node arrays through
`layout.nodeIndex`, so we invert that mapping once per document.
"""

import logging
from typing import Any

from dom_lens.dom.views import DOMRect, EnhancedSnapshotNode

logger = logging.getLogger(__name__)

# Order matters: captureSnapshot returns style values in the order requested
REQUIRED_COMPUTED_STYLES = [
	'display',
	'visibility',
	'opacity',
	'overflow',
	'overflow-x',
	'overflow-y',
	'cursor',
	'pointer-events',
	'position',
	'background-color',
]


def _parse_rare_boolean_data(rare_data: dict[str, Any] | None, index: int) -> bool | None:
	if not rare_data:
		return None
	return index in rare_data.get('index', [])


def _parse_computed_styles(strings: list[str], style_indices: list[int]) -> dict[str, str]:
	styles: dict[str, str] = {}
	for i, style_index in enumerate(style_indices):
		if i < len(REQUIRED_COMPUTED_STYLES) and 0 <= style_index < len(strings):
			styles[REQUIRED_COMPUTED_STYLES[i]] = strings[style_index]
	return styles


def _parse_rect(values: list[float] | None, device_pixel_ratio: float) -> DOMRect | None:
	if not values or len(values) < 4:
		return None
	x, y, width, height = values[:4]
	return DOMRect(
		x=x / device_pixel_ratio,
		y=y / device_pixel_ratio,
		width=width / device_pixel_ratio,
		height=height / device_pixel_ratio,
	)


def _layout_entry(layout: dict[str, Any], key: str, layout_idx: int) -> Any:
	values = layout.get(key) or []
	if layout_idx < len(values):
		return values[layout_idx]
	return None


def build_snapshot_lookup(snapshot: dict[str, Any], device_pixel_ratio: float = 1.0) -> dict[int, EnhancedSnapshotNode]:
	"""Map backend node id -> layout facts, with geometry converted to CSS pixels."""
	snapshot_lookup: dict[int, EnhancedSnapshotNode] = {}

	if not snapshot or not snapshot.get('documents'):
		return snapshot_lookup

	if device_pixel_ratio <= 0:
		device_pixel_ratio = 1.0

	strings: list[str] = snapshot.get('strings', [])

	for document in snapshot['documents']:
		nodes = document.get('nodes', {})
		layout = document.get('layout', {})

		layout_index_map: dict[int, int] = {}
		for layout_idx, node_index in enumerate(layout.get('nodeIndex', [])):
			# first layout entry wins, later ones are continuation boxes
			if node_index not in layout_index_map:
				layout_index_map[node_index] = layout_idx

		stacking_contexts = layout.get('stackingContexts')

		for snapshot_index, backend_node_id in enumerate(nodes.get('backendNodeId', [])):
			is_clickable = _parse_rare_boolean_data(nodes.get('isClickable'), snapshot_index)

			bounds = None
			client_rects = None
			scroll_rects = None
			computed_styles = None
			cursor_style = None
			paint_order = None
			stacking = None

			layout_idx = layout_index_map.get(snapshot_index)
			if layout_idx is not None:
				bounds = _parse_rect(_layout_entry(layout, 'bounds', layout_idx), device_pixel_ratio)
				client_rects = _parse_rect(_layout_entry(layout, 'clientRects', layout_idx), device_pixel_ratio)
				scroll_rects = _parse_rect(_layout_entry(layout, 'scrollRects', layout_idx), device_pixel_ratio)

				style_indices = _layout_entry(layout, 'styles', layout_idx)
				if style_indices:
					computed_styles = _parse_computed_styles(strings, style_indices)
					cursor_style = computed_styles.get('cursor')

				paint_order = _layout_entry(layout, 'paintOrders', layout_idx)

				if stacking_contexts:
					stacking = 1 if layout_idx in stacking_contexts.get('index', []) else 0

			snapshot_lookup[backend_node_id] = EnhancedSnapshotNode(
				is_clickable=is_clickable,
				cursor_style=cursor_style,
				bounds=bounds,
				client_rects=client_rects,
				scroll_rects=scroll_rects,
				computed_styles=computed_styles,
				paint_order=paint_order,
				stacking_contexts=stacking,
			)

	logger.debug(f'Parsed layout for {len(snapshot_lookup)} snapshot nodes')
	return snapshot_lookup


def is_visible_by_style(computed_styles: dict[str, str] | None) -> bool:
	"""display != none, visibility != hidden and opacity > 0. No styles means visible."""
	if not computed_styles:
		return True

	display = computed_styles.get('display', '').lower()
	visibility = computed_styles.get('visibility', '').lower()
	try:
		opacity = float(computed_styles.get('opacity', '1') or '1')
	except ValueError:
		opacity = 1.0

	return display != 'none' and visibility != 'hidden' and opacity > 0
