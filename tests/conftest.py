"""
Shared helpers for building node arenas in tests.

Trees are described with nested `el()` / `text()` / `shadow()` / `document()`
shapes and turned into a real DOMNodeTable by `build_table()`, so the passes
under test see the same structure the DOM service produces.
"""

import itertools
from typing import Any

import pytest

from dom_lens.cdp.views import CDPCommandError, TargetNotAttachedError
from dom_lens.dom.enhanced_snapshot import is_visible_by_style
from dom_lens.dom.views import (
	DOMNodeTable,
	DOMRect,
	EnhancedAXNode,
	EnhancedAXProperty,
	EnhancedDOMTree,
	EnhancedDOMTreeNode,
	EnhancedSnapshotNode,
	NodeType,
	SimplifiedNode,
)

OPAQUE_STYLES = {'display': 'block', 'visibility': 'visible', 'opacity': '1', 'background-color': 'rgb(255, 255, 255)'}


def el(
	tag: str,
	attributes: dict[str, str] | None = None,
	children: list[dict[str, Any]] | None = None,
	*,
	bounds: tuple[float, float, float, float] | None = (0, 0, 100, 20),
	paint_order: int | None = None,
	computed_styles: dict[str, str] | None = None,
	cursor: str | None = None,
	ax_role: str | None = None,
	ax_properties: dict[str, Any] | None = None,
	is_scrollable: bool | None = None,
	client_rects: tuple[float, float, float, float] | None = None,
	scroll_rects: tuple[float, float, float, float] | None = None,
	shadow_roots: list[dict[str, Any]] | None = None,
	content_document: dict[str, Any] | None = None,
	snapshot: bool = True,
	backend_node_id: int | None = None,
) -> dict[str, Any]:
	return {
		'node_type': NodeType.ELEMENT_NODE,
		'node_name': tag.upper(),
		'attributes': attributes or {},
		'children': children or [],
		'bounds': bounds,
		'paint_order': paint_order,
		'computed_styles': computed_styles,
		'cursor': cursor,
		'ax_role': ax_role,
		'ax_properties': ax_properties,
		'is_scrollable': is_scrollable,
		'client_rects': client_rects,
		'scroll_rects': scroll_rects,
		'shadow_roots': shadow_roots or [],
		'content_document': content_document,
		'snapshot': snapshot,
		'backend_node_id': backend_node_id,
	}


def text(value: str, *, bounds: tuple[float, float, float, float] | None = (0, 0, 50, 10), snapshot: bool = True) -> dict[str, Any]:
	shape = el('#text', bounds=bounds, snapshot=snapshot)
	shape['node_type'] = NodeType.TEXT_NODE
	shape['node_name'] = '#text'
	shape['node_value'] = value
	return shape


def shadow(children: list[dict[str, Any]], mode: str = 'open') -> dict[str, Any]:
	shape = el('#document-fragment', children=children, snapshot=False)
	shape['node_type'] = NodeType.DOCUMENT_FRAGMENT_NODE
	shape['node_name'] = '#document-fragment'
	shape['shadow_root_type'] = mode
	return shape


def document(children: list[dict[str, Any]]) -> dict[str, Any]:
	shape = el('#document', children=children, snapshot=False)
	shape['node_type'] = NodeType.DOCUMENT_NODE
	shape['node_name'] = '#document'
	return shape


def _rect(values: tuple[float, float, float, float] | None) -> DOMRect | None:
	if values is None:
		return None
	return DOMRect(*values)


def build_table(shape: dict[str, Any], first_backend_node_id: int = 1) -> EnhancedDOMTree:
	"""Turn a nested shape into an arena. Backend node ids are assigned in document order unless given."""
	table = DOMNodeTable()
	ids = itertools.count(first_backend_node_id)

	def add(node_shape: dict[str, Any], parent_index: int | None) -> int:
		snapshot_node = None
		if node_shape['snapshot']:
			styles = node_shape['computed_styles']
			if styles is None and node_shape['cursor']:
				styles = {'cursor': node_shape['cursor']}
			snapshot_node = EnhancedSnapshotNode(
				is_clickable=None,
				cursor_style=node_shape['cursor'] or (styles or {}).get('cursor'),
				bounds=_rect(node_shape['bounds']),
				client_rects=_rect(node_shape['client_rects']),
				scroll_rects=_rect(node_shape['scroll_rects']),
				computed_styles=styles,
				paint_order=node_shape['paint_order'],
				stacking_contexts=None,
			)

		ax_node = None
		if node_shape['ax_role'] or node_shape['ax_properties']:
			ax_node = EnhancedAXNode(
				ax_node_id=str(len(table)),
				ignored=False,
				role=node_shape['ax_role'],
				name=None,
				description=None,
				properties=[EnhancedAXProperty(name=k, value=v) for k, v in (node_shape['ax_properties'] or {}).items()],
			)

		backend_node_id = node_shape['backend_node_id'] or next(ids)
		node = EnhancedDOMTreeNode(
			index=-1,
			node_id=backend_node_id,
			backend_node_id=backend_node_id,
			node_type=node_shape['node_type'],
			node_name=node_shape['node_name'],
			node_value=node_shape.get('node_value', ''),
			attributes=dict(node_shape['attributes']),
			is_scrollable=node_shape['is_scrollable'],
			is_visible=is_visible_by_style(snapshot_node.computed_styles if snapshot_node else None),
			shadow_root_type=node_shape.get('shadow_root_type'),
			parent_index=parent_index,
			ax_node=ax_node,
			snapshot_node=snapshot_node,
		)
		index = table.add(node)

		if node_shape['content_document']:
			node.content_document_index = add(node_shape['content_document'], index)
		for root in node_shape['shadow_roots']:
			node.shadow_root_indices.append(add(root, index))
		for child in node_shape['children']:
			node.children_indices.append(add(child, index))
		return index

	root_index = add(shape, None)
	return EnhancedDOMTree(table=table, root_index=root_index)


def node_of(tree: EnhancedDOMTree, tag: str, nth: int = 0) -> EnhancedDOMTreeNode:
	matches = [node for node in tree.table if node.tag_name == tag]
	return matches[nth]


@pytest.fixture
def simple_page() -> EnhancedDOMTree:
	"""Small page with a heading, a link and a form."""
	return build_table(
		document(
			[
				el(
					'html',
					children=[
						el(
							'body',
							children=[
								el('h1', children=[text('Welcome')]),
								el('a', {'href': '/about'}, [text('About us')]),
								el(
									'form',
									children=[
										el('input', {'type': 'text', 'name': 'q', 'placeholder': 'Search'}),
										el('button', {'type': 'submit'}, [text('Go now')]),
									],
								),
							],
							bounds=(0, 0, 1280, 800),
						)
					],
					bounds=(0, 0, 1280, 800),
				)
			]
		)
	)


def simplify(tree: EnhancedDOMTree) -> SimplifiedNode:
	"""Wrap every node of the arena one to one, keeping structure."""

	def wrap(index: int) -> SimplifiedNode:
		wrapped = SimplifiedNode(original_node=tree.table[index])
		wrapped.children = [wrap(i) for i in tree.table[index].children_indices]
		return wrapped

	return wrap(tree.root_index)


def find(root: SimplifiedNode, tag: str) -> SimplifiedNode:
	stack = [root]
	while stack:
		node = stack.pop()
		if node.original_node.tag_name == tag:
			return node
		stack.extend(reversed(node.children))
	raise AssertionError(f'no <{tag}> in tree')


class ScriptedGateway:
	"""
	Stand-in for CDPGateway that records every command and replays canned replies.

	`responses` maps a method name to a reply dict, an exception instance, a
	callable taking the params, or a list of those consumed in order (the last
	entry repeats).
	"""

	def __init__(self, responses: dict[str, Any] | None = None, attached: bool = True):
		self.responses = responses or {}
		self.calls: list[tuple[str, dict[str, Any]]] = []
		self.session_id: str | None = 'session-1' if attached else None
		self.owns_connection = False
		self.connect_calls = 0

	@property
	def is_attached(self) -> bool:
		return self.session_id is not None

	async def connect(self, target_id: str | None = None) -> str:
		self.connect_calls += 1
		self.session_id = 'session-1'
		return self.session_id

	async def disconnect(self) -> None:
		self.session_id = None

	async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
		if not self.is_attached:
			raise TargetNotAttachedError()
		self.calls.append((method, params or {}))

		response = self.responses.get(method, {})
		if isinstance(response, list):
			response = response.pop(0) if len(response) > 1 else response[0]
		if isinstance(response, BaseException):
			raise response
		if callable(response):
			response = response(params or {})
		return response

	def methods(self) -> list[str]:
		return [method for method, _ in self.calls]

	def params_of(self, method: str) -> list[dict[str, Any]]:
		return [params for called, params in self.calls if called == method]


def cdp_failure(method: str, reason: str = 'boom') -> CDPCommandError:
	return CDPCommandError(method, 0, reason)
