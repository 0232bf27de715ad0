import logging
from collections import defaultdict
from dataclasses import dataclass

from dom_lens.dom.views import SimplifiedNode

logger = logging.getLogger(__name__)

TRANSPARENT_BACKGROUND = 'rgba(0, 0, 0, 0)'


@dataclass(frozen=True, slots=True)
class Rect:
	"""Closed axis-aligned rectangle [x1,x2] x [y1,y2]."""

	x1: float
	y1: float
	x2: float
	y2: float

	def area(self) -> float:
		return (self.x2 - self.x1) * (self.y2 - self.y1)

	def intersects(self, other: 'Rect') -> bool:
		return not (self.x2 <= other.x1 or other.x2 <= self.x1 or self.y2 <= other.y1 or other.y2 <= self.y1)

	def contains(self, other: 'Rect') -> bool:
		return self.x1 <= other.x1 and self.y1 <= other.y1 and self.x2 >= other.x2 and self.y2 >= other.y2


class RectUnionPure:
	"""
	Maintains a *disjoint* set of rectangles.
	No external dependencies - fine for a few thousand rectangles.
	"""

	__slots__ = ('_rects',)

	def __init__(self):
		self._rects: list[Rect] = []

	def _split_diff(self, a: Rect, b: Rect) -> list[Rect]:
		"""
		Return list of up to 4 rectangles = a \\ b.
		Assumes a intersects b.
		"""
		parts = []

		# Bottom slice
		if a.y1 < b.y1:
			parts.append(Rect(a.x1, a.y1, a.x2, b.y1))
		# Top slice
		if b.y2 < a.y2:
			parts.append(Rect(a.x1, b.y2, a.x2, a.y2))

		# Middle (vertical) strip: y overlap is [max(a.y1,b.y1), min(a.y2,b.y2)]
		y_lo = max(a.y1, b.y1)
		y_hi = min(a.y2, b.y2)

		# Left slice
		if a.x1 < b.x1:
			parts.append(Rect(a.x1, y_lo, b.x1, y_hi))
		# Right slice
		if b.x2 < a.x2:
			parts.append(Rect(b.x2, y_lo, a.x2, y_hi))

		return parts

	def contains(self, r: Rect) -> bool:
		"""True iff r is fully covered by the current union."""
		if not self._rects:
			return False

		stack = [r]
		for s in self._rects:
			new_stack = []
			for piece in stack:
				if s.contains(piece):
					# piece completely gone
					continue
				if piece.intersects(s):
					new_stack.extend(self._split_diff(piece, s))
				else:
					new_stack.append(piece)
			if not new_stack:  # everything eaten - covered
				return True
			stack = new_stack
		return False  # something survived

	def add(self, r: Rect) -> bool:
		"""
		Insert r unless it is already covered.
		Returns True if the union grew.
		"""
		if self.contains(r):
			return False

		pending = [r]
		for s in self._rects:
			new_pending = []
			for piece in pending:
				if piece.intersects(s):
					new_pending.extend(self._split_diff(piece, s))
				else:
					new_pending.append(piece)
			pending = new_pending

		# Any left-over pieces are new, non-overlapping areas
		self._rects.extend(pending)
		return True

	def __len__(self) -> int:
		return len(self._rects)


class PaintOrderRemover:
	"""
	Flags nodes that are completely covered by things painted above them.

	Nothing is removed from the tree. Covered nodes get ignored_by_paint_order
	so the serializer can hide their line while still visiting their children.
	"""

	def __init__(self, root: SimplifiedNode, opacity_threshold: float = 0.8):
		self.root = root
		self.opacity_threshold = opacity_threshold

	def _is_see_through(self, node: SimplifiedNode) -> bool:
		snapshot_node = node.original_node.snapshot_node
		if not snapshot_node or not snapshot_node.computed_styles:
			return False
		if snapshot_node.background_color == TRANSPARENT_BACKGROUND:
			return True
		return snapshot_node.opacity < self.opacity_threshold

	def calculate_paint_order(self) -> int:
		"""Returns the number of nodes flagged as occluded."""
		all_simplified_nodes_with_paint_order: list[SimplifiedNode] = []

		def collect_paint_order(node: SimplifiedNode) -> None:
			snapshot_node = node.original_node.snapshot_node
			if snapshot_node and snapshot_node.paint_order is not None and snapshot_node.bounds is not None:
				all_simplified_nodes_with_paint_order.append(node)

			for child in node.children:
				collect_paint_order(child)

		collect_paint_order(self.root)

		grouped_by_paint_order: defaultdict[int, list[SimplifiedNode]] = defaultdict(list)
		for node in all_simplified_nodes_with_paint_order:
			assert node.original_node.snapshot_node is not None
			grouped_by_paint_order[node.original_node.snapshot_node.paint_order].append(node)  # type: ignore[index]

		rect_union = RectUnionPure()
		occluded = 0

		# Highest paint order is painted last, i.e. on top
		for _, nodes in sorted(grouped_by_paint_order.items(), key=lambda x: -x[0]):
			rects_to_add = []

			for node in nodes:
				bounds = node.original_node.snapshot_node.bounds  # type: ignore[union-attr]
				assert bounds is not None
				rect = Rect(x1=bounds.x, y1=bounds.y, x2=bounds.x2, y2=bounds.y2)

				if rect_union.contains(rect):
					node.ignored_by_paint_order = True
					occluded += 1
					continue

				# see-through nodes never hide what is below them
				if self._is_see_through(node):
					continue

				rects_to_add.append(rect)

			# equal paint order cannot occlude itself, so the group is added as a whole
			for rect in rects_to_add:
				rect_union.add(rect)

		logger.debug(f'Paint order: {occluded} of {len(all_simplified_nodes_with_paint_order)} positioned nodes are occluded')
		return occluded
