import asyncio
import logging
import time
from typing import Any

from cdp_use.cdp.accessibility.commands import GetFullAXTreeReturns
from cdp_use.cdp.accessibility.types import AXNode
from cdp_use.cdp.dom.commands import GetDocumentReturns
from cdp_use.cdp.dom.types import Node
from cdp_use.cdp.domsnapshot.commands import CaptureSnapshotReturns

from dom_lens.cdp.gateway import CDPGateway
from dom_lens.cdp.views import CDPTimeoutError, DOMCaptureError, TargetNotAttachedError
from dom_lens.dom.enhanced_snapshot import REQUIRED_COMPUTED_STYLES, build_snapshot_lookup, is_visible_by_style
from dom_lens.dom.serializer.serializer import DOMTreeSerializer
from dom_lens.dom.utils import count_nodes
from dom_lens.dom.views import (
	ChangeDetectionResult,
	DOMNodeTable,
	EnhancedAXNode,
	EnhancedAXProperty,
	EnhancedDOMTree,
	EnhancedDOMTreeNode,
	NodeType,
	SerializationConfig,
	SerializedDOMState,
	SerializedView,
)
from dom_lens.utils import time_execution_async

logger = logging.getLogger(__name__)

REQUIRED_DOMAINS = ('DOM', 'DOMSnapshot', 'Accessibility', 'Page', 'Runtime')


class DomService:
	"""
	Builds enhanced DOM trees and serialized views for one attached page.

	Each call captures fresh data, nothing but the previous view is kept
	between calls.
	"""

	def __init__(self, gateway: CDPGateway):
		self.gateway = gateway
		self.previous_state: SerializedDOMState | None = None
		self._initialized = False

	@property
	def is_ready(self) -> bool:
		return self._initialized and self.gateway.is_attached

	async def initialize(self) -> None:
		"""Attach to the page (if needed) and enable every protocol domain we read from."""
		if not self.gateway.is_attached:
			await self.gateway.connect()

		start = time.time()
		for domain in REQUIRED_DOMAINS:
			await self.gateway.send(f'{domain}.enable')
		logger.debug(f'⏱️ CDP domain enables took {time.time() - start:.3f} seconds')

		self._initialized = True

	async def destroy(self) -> None:
		self.previous_state = None
		self._initialized = False
		if self.gateway.owns_connection:
			await self.gateway.disconnect()

	async def __aenter__(self) -> 'DomService':
		await self.initialize()
		return self

	async def __aexit__(self, exc_type, exc_value, traceback) -> None:
		await self.destroy()

	def _extract_ax_property_value(self, value: Any) -> str | bool | None:
		"""Extract value from various formats returned by the accessibility API."""
		if isinstance(value, dict):
			extracted = value.get('value', value)
			if isinstance(extracted, (str, bool)) or extracted is None:
				return extracted
			return str(extracted)
		elif isinstance(value, list) and len(value) > 0:
			# Sometimes values are returned as a list with one element
			return self._extract_ax_property_value(value[0])
		elif isinstance(value, (str, bool)) or value is None:
			return value
		else:
			return str(value)

	def _build_enhanced_ax_node(self, ax_node: AXNode) -> EnhancedAXNode:
		"""Build enhanced accessibility node from CDP AX node."""
		properties = None
		if ax_node.get('properties'):
			properties = []
			for prop in ax_node['properties']:
				prop_name = prop.get('name')
				prop_value = self._extract_ax_property_value(prop.get('value'))
				if prop_name and prop_value is not None:
					properties.append(EnhancedAXProperty(name=prop_name, value=prop_value))

		return EnhancedAXNode(
			ax_node_id=ax_node.get('nodeId', ''),
			ignored=ax_node.get('ignored', False),
			role=ax_node.get('role', {}).get('value') if ax_node.get('role') else None,
			name=ax_node.get('name', {}).get('value') if ax_node.get('name') else None,
			description=ax_node.get('description', {}).get('value') if ax_node.get('description') else None,
			properties=properties,
		)

	async def _get_viewport_size(self) -> tuple[float, float, float]:
		"""Get CSS viewport width/height and the device pixel ratio."""
		try:
			metrics = await self.gateway.send('Page.getLayoutMetrics')

			visual_viewport = metrics.get('visualViewport', {})
			css_visual_viewport = metrics.get('cssVisualViewport', {})
			css_layout_viewport = metrics.get('cssLayoutViewport', {})

			# Use CSS pixels (what JavaScript sees) instead of device pixels
			width = css_visual_viewport.get('clientWidth', css_layout_viewport.get('clientWidth', 1920.0))
			height = css_visual_viewport.get('clientHeight', css_layout_viewport.get('clientHeight', 1080.0))

			device_width = visual_viewport.get('clientWidth', width)
			css_width = css_visual_viewport.get('clientWidth', width)
			device_pixel_ratio = device_width / css_width if css_width > 0 else 1.0

			return float(width), float(height), float(device_pixel_ratio)
		except Exception as e:
			logger.debug(f'⚠️ Viewport size detection failed, assuming 1920x1080 @1x: {type(e).__name__}: {e}')
			return 1920.0, 1080.0, 1.0

	@time_execution_async('--get_all_trees')
	async def _get_all_trees(self) -> tuple[GetDocumentReturns, CaptureSnapshotReturns, GetFullAXTreeReturns]:
		"""Fetch DOM, snapshot and accessibility captures concurrently."""
		if not self.gateway.is_attached:
			raise TargetNotAttachedError()

		start = time.time()
		snapshot, dom_tree, ax_tree = await asyncio.gather(
			self.gateway.send(
				'DOMSnapshot.captureSnapshot',
				{
					'computedStyles': REQUIRED_COMPUTED_STYLES,
					'includePaintOrder': True,
					'includeDOMRects': True,
					'includeBlendedBackgroundColors': False,
					'includeTextColorOpacities': False,
				},
			),
			# Pierce=true includes iframe content documents and shadow roots
			self.gateway.send('DOM.getDocument', {'depth': -1, 'pierce': True}),
			self.gateway.send('Accessibility.getFullAXTree'),
			return_exceptions=True,
		)
		logger.debug(f'⏱️ CDP captures took {time.time() - start:.3f} seconds')

		# transport failures keep their own type so callers can retry or reattach
		if isinstance(dom_tree, (CDPTimeoutError, TargetNotAttachedError)):
			raise dom_tree
		if isinstance(dom_tree, BaseException):
			raise DOMCaptureError(f'DOM.getDocument failed: {dom_tree}') from dom_tree
		if not dom_tree or 'root' not in dom_tree:
			raise DOMCaptureError('DOM.getDocument returned no root node')

		if isinstance(snapshot, BaseException):
			logger.debug(f'DOMSnapshot.captureSnapshot failed, continuing without layout: {snapshot}')
			snapshot = {'documents': [], 'strings': []}
		if isinstance(ax_tree, BaseException):
			logger.debug(f'Accessibility.getFullAXTree failed, continuing without AX data: {ax_tree}')
			ax_tree = {'nodes': []}

		return dom_tree, snapshot, ax_tree

	def _build_enhanced_dom_tree(
		self,
		dom_tree: GetDocumentReturns,
		snapshot: CaptureSnapshotReturns,
		ax_tree: GetFullAXTreeReturns,
		device_pixel_ratio: float = 1.0,
	) -> EnhancedDOMTree:
		"""Fuse the three captures into a fresh node table."""
		ax_tree_lookup: dict[int, AXNode] = {
			ax_node['backendDOMNodeId']: ax_node for ax_node in ax_tree.get('nodes', []) if 'backendDOMNodeId' in ax_node
		}
		snapshot_lookup = build_snapshot_lookup(snapshot, device_pixel_ratio)

		table = DOMNodeTable()
		index_by_backend_id: dict[int, int] = {}

		def _construct_enhanced_node(node: Node, parent_index: int | None) -> int:
			backend_node_id = node['backendNodeId']
			# the same node can be reachable twice, e.g. through a pierced frame
			if backend_node_id in index_by_backend_id:
				return index_by_backend_id[backend_node_id]

			ax_node = ax_tree_lookup.get(backend_node_id)
			snapshot_node = snapshot_lookup.get(backend_node_id)

			# To make attributes more readable
			attributes: dict[str, str] = {}
			raw_attributes = node.get('attributes') or []
			for i in range(0, len(raw_attributes) - 1, 2):
				attributes[raw_attributes[i]] = raw_attributes[i + 1]

			enhanced = EnhancedDOMTreeNode(
				index=-1,
				node_id=node['nodeId'],
				backend_node_id=backend_node_id,
				node_type=NodeType(node['nodeType']),
				node_name=node['nodeName'],
				node_value=node.get('nodeValue', ''),
				attributes=attributes,
				is_scrollable=node.get('isScrollable', None),
				is_visible=is_visible_by_style(snapshot_node.computed_styles if snapshot_node else None),
				frame_id=node.get('frameId', None),
				shadow_root_type=node.get('shadowRootType') or None,
				parent_index=parent_index,
				ax_node=self._build_enhanced_ax_node(ax_node) if ax_node else None,
				snapshot_node=snapshot_node,
			)
			index = table.add(enhanced)
			index_by_backend_id[backend_node_id] = index

			if node.get('contentDocument'):
				enhanced.content_document_index = _construct_enhanced_node(node['contentDocument'], index)

			for shadow_root in node.get('shadowRoots') or []:
				enhanced.shadow_root_indices.append(_construct_enhanced_node(shadow_root, index))

			for child in node.get('children') or []:
				enhanced.children_indices.append(_construct_enhanced_node(child, index))

			return index

		root_index = _construct_enhanced_node(dom_tree['root'], None)
		return EnhancedDOMTree(table=table, root_index=root_index)

	@time_execution_async('--get_dom_tree')
	async def get_dom_tree(self) -> EnhancedDOMTree:
		"""Capture and fuse a fresh enhanced DOM tree."""
		dom_tree, snapshot, ax_tree = await self._get_all_trees()
		_, _, device_pixel_ratio = await self._get_viewport_size()

		start = time.time()
		tree = self._build_enhanced_dom_tree(dom_tree, snapshot, ax_tree, device_pixel_ratio)
		logger.debug(f'🌳 Built enhanced tree with {len(tree)} nodes in {time.time() - start:.3f} seconds')
		return tree

	@time_execution_async('--get_serialized_view')
	async def get_serialized_view(
		self,
		previous_state: SerializedDOMState | None = None,
		config: SerializationConfig | None = None,
	) -> SerializedView:
		"""Index-addressed text view plus selector map, stage timings and stats."""
		tree = await self.get_dom_tree()
		return self._serialize(tree, previous_state, config)

	def _serialize(
		self,
		tree: EnhancedDOMTree,
		previous_state: SerializedDOMState | None,
		config: SerializationConfig | None,
	) -> SerializedView:
		state, timing, stats = DOMTreeSerializer(tree, previous_state, config).serialize_accessible_elements()

		start = time.time()
		text = state.llm_representation()
		timing.serialize_tree = time.time() - start
		timing.total += timing.serialize_tree

		self.previous_state = state
		return SerializedView(state=state, text=text, timing=timing, stats=stats)

	async def get_dom_tree_with_change_detection(
		self,
		previous_state: SerializedDOMState | None = None,
		config: SerializationConfig | None = None,
	) -> ChangeDetectionResult:
		"""Serialize against the previous view (or the last one produced) and report what is new."""
		previous_state = previous_state or self.previous_state
		tree = await self.get_dom_tree()
		view = self._serialize(tree, previous_state, config)

		if previous_state is None:
			change_count = count_nodes(tree.table, tree.root_index)
		else:
			change_count = view.stats.new_elements

		return ChangeDetectionResult(
			tree=tree,
			state=view.state,
			has_changes=change_count > 0,
			change_count=change_count,
		)
