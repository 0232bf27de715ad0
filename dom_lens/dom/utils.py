from dom_lens.dom.views import DOMNodeTable, EnhancedDOMTreeNode, NodeType


def cap_text_length(text: str, max_length: int) -> str:
	"""Cap text length for display."""
	if len(text) <= max_length:
		return text
	return text[:max_length] + '...'


def children_of(table: DOMNodeTable, index: int) -> list[EnhancedDOMTreeNode]:
	return [table[i] for i in table[index].children_indices]


def shadow_roots_of(table: DOMNodeTable, index: int) -> list[EnhancedDOMTreeNode]:
	return [table[i] for i in table[index].shadow_root_indices]


def children_and_shadow_roots(table: DOMNodeTable, index: int) -> list[EnhancedDOMTreeNode]:
	"""Regular children first, then shadow roots."""
	return children_of(table, index) + shadow_roots_of(table, index)


def parent_of(table: DOMNodeTable, index: int) -> EnhancedDOMTreeNode | None:
	parent_index = table[index].parent_index
	if parent_index is None:
		return None
	return table[parent_index]


def content_document_of(table: DOMNodeTable, index: int) -> EnhancedDOMTreeNode | None:
	content_index = table[index].content_document_index
	if content_index is None:
		return None
	return table[content_index]


def should_show_scroll_info(table: DOMNodeTable, index: int) -> bool:
	"""Scroll position is only worth showing on the outermost scroll container (and frames)."""
	node = table[index]
	if node.tag_name == 'iframe':
		return True
	if not node.is_actually_scrollable:
		return False
	if node.tag_name in {'body', 'html'}:
		return True
	parent = parent_of(table, index)
	if parent is not None and parent.node_type == NodeType.ELEMENT_NODE and parent.is_actually_scrollable:
		return False
	return True


def count_nodes(table: DOMNodeTable, index: int) -> int:
	"""Nodes reachable from index through children, shadow roots and content documents."""
	total = 0
	stack = [index]
	while stack:
		current = table[stack.pop()]
		total += 1
		stack.extend(current.children_indices)
		stack.extend(current.shadow_root_indices)
		if current.content_document_index is not None:
			stack.append(current.content_document_index)
	return total
