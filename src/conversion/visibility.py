"""
Visibility traversal of the maze BSP tree.

``visibility_order`` lists every leaf front to back for a viewer position.
``VisibilityWalker`` performs the full first-person pass: it culls subtrees
whose bounding box cannot contribute any still-uncovered screen column,
projects each leaf segment, claims the columns it covers and marks drawn
segments as seen.  The output is the sequence of screen spans a renderer
would fill; pixels themselves are not produced here.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from ..generators.bsp.bsp_nodes import BSPBranch, BSPLeaf, BSPTree, BoundingBox
from ..generators.bsp.segments import MAP_UNIT, Segment
from .seen_cells import SeenCells
from .view_math import RangePair, clip3d, project_x, to_view_space, viewd_unscale

logger = logging.getLogger(__name__)

VIEW_WIDTH = 400
VIEW_HEIGHT = 400
STEP_SIZE = MAP_UNIT // 4
VIEW_OFFSET = MAP_UNIT // 8


# ---------------------------------------------------------------------------
# Range set
# ---------------------------------------------------------------------------

class RangeSet:
    """Sorted set of disjoint closed integer ranges (free screen columns)."""

    def __init__(self, lo: Optional[int] = None, hi: Optional[int] = None):
        self._ranges: List[List[int]] = []
        if lo is not None and hi is not None:
            self.set(lo, hi)

    def set(self, lo: int, hi: int) -> None:
        self._ranges = [[lo, hi]] if lo <= hi else []

    def is_empty(self) -> bool:
        return not self._ranges

    @property
    def ranges(self) -> List[Tuple[int, int]]:
        return [(lo, hi) for lo, hi in self._ranges]

    def intersect(self, lo: int, hi: int) -> Optional[Tuple[int, int]]:
        """First part of [lo, hi] still in the set, or None."""
        for rlo, rhi in self._ranges:
            if rhi < lo:
                continue
            if rlo > hi:
                return None
            return max(lo, rlo), min(hi, rhi)
        return None

    def remove(self, lo: int, hi: int) -> None:
        kept = []
        for rlo, rhi in self._ranges:
            if rhi < lo or rlo > hi:
                kept.append([rlo, rhi])
                continue
            if rlo < lo:
                kept.append([rlo, lo - 1])
            if rhi > hi:
                kept.append([hi + 1, rhi])
        self._ranges = kept


# ---------------------------------------------------------------------------
# Viewpoint
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ViewPoint:
    """Viewer position in map units and direction as 16.16 fixed point.

    ``angle`` is in degrees with 0 facing East and 90 facing South.
    """
    x: int
    y: int
    angle: int
    view_dx: int
    view_dy: int

    @classmethod
    def from_angle(cls, x: int, y: int, angle: int) -> 'ViewPoint':
        rad = math.radians(angle)
        return cls(x, y, angle % 360,
                   int(math.cos(rad) * (1 << 16)), int(math.sin(rad) * (1 << 16)))

    @classmethod
    def at_cell(cls, px: int, py: int, angle: int, walk_step: int = 0,
                view_offset: int = VIEW_OFFSET, map_unit: int = MAP_UNIT,
                step_size: int = STEP_SIZE) -> 'ViewPoint':
        """Viewer standing in cell (px, py), pulled back by ``view_offset``."""
        base = cls.from_angle(0, 0, angle)
        shift = step_size * walk_step - view_offset
        x = px * map_unit + map_unit // 2 + viewd_unscale(base.view_dx * shift)
        y = py * map_unit + map_unit // 2 + viewd_unscale(base.view_dy * shift)
        return cls(x, y, base.angle, base.view_dx, base.view_dy)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def visibility_order(tree: BSPTree, x: int, y: int) -> Iterator[BSPLeaf]:
    """Yield all leaves front to back as seen from (x, y)."""
    if not tree.nodes:
        return
    stack = [tree.ROOT]
    while stack:
        node = tree.node(stack.pop())
        if isinstance(node, BSPLeaf):
            yield node
            continue
        if node.side_of(x, y) >= 0:
            stack.append(node.left)
            stack.append(node.right)
        else:
            stack.append(node.right)
            stack.append(node.left)


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------

@dataclass
class VisibleSpan:
    """Screen columns [x1, x2] claimed by a segment."""
    segment: Segment
    x1: int
    x2: int


@dataclass
class VisibilityFrame:
    leaves_visited: int = 0
    nodes_visited: int = 0
    spans: List[VisibleSpan] = field(default_factory=list)
    newly_seen: List[Segment] = field(default_factory=list)


class VisibilityWalker:
    """First-person visibility pass over a BSP tree.

    Args:
        tree: BSP tree of the maze
        seen_cells: Shadow grid updated for segments seen for the first time
        view_width, view_height: Screen size in pixels
    """

    def __init__(self, tree: BSPTree, seen_cells: Optional[SeenCells] = None,
                 view_width: int = VIEW_WIDTH, view_height: int = VIEW_HEIGHT):
        self.tree = tree
        self.seen_cells = seen_cells
        self.view_width = view_width
        self.view_height = view_height
        self.zscale = view_height // 2

    def walk(self, view: ViewPoint, rset: Optional[RangeSet] = None) -> VisibilityFrame:
        """Run one pass from ``view``; ``rset`` starts as the full screen width."""
        if rset is None:
            rset = RangeSet()
        rset.set(0, self.view_width - 1)
        frame = VisibilityFrame()
        if not self.tree.nodes:
            return frame

        stack = [self.tree.ROOT]
        root = True
        while stack:
            index = stack.pop()
            node = self.tree.node(index)
            if not root and not self.bounding_box_is_visible(node.bounds, view, rset):
                continue
            root = False
            frame.nodes_visited += 1
            if isinstance(node, BSPLeaf):
                frame.leaves_visited += 1
                for seg in node.segments:
                    self._draw_segment(seg, view, rset, frame)
                continue
            if node.side_of(view.x, view.y) >= 0:
                stack.append(node.left)
                stack.append(node.right)
            else:
                stack.append(node.right)
                stack.append(node.left)
        return frame

    def bounding_box_is_visible(self, box: BoundingBox, view: ViewPoint, rset: RangeSet) -> bool:
        """Conservative test: can any part of ``box`` land on a free column?"""
        if rset.is_empty():
            return False
        angle = view.angle
        if 45 <= angle <= 135 and view.y > box.ymax:
            return False
        if 225 <= angle <= 315 and view.y < box.ymin:
            return False
        if 135 <= angle <= 225 and view.x < box.xmin:
            return False
        if (angle >= 315 or angle <= 45) and view.x > box.xmax:
            return False

        xmin = box.xmin - view.x
        ymin = box.ymin - view.y
        xmax = box.xmax - view.x
        ymax = box.ymax - view.y
        p1x, p2x = xmin, xmax
        p1y, p2y = ymin, ymax
        # Pick the box edge that spans the widest angle from the viewer.
        if ymin < 0 < ymax:
            if xmin < 0:
                if xmax > 0:
                    return True
                p1x = p2x = xmax
            else:
                p1x = p2x = xmin
        elif xmin < 0 < xmax:
            if ymin < 0:
                p1y = p2y = ymax
            else:
                p1y = p2y = ymin
        elif (xmin > 0 and ymin > 0) or (xmin < 0 and ymin < 0):
            p1x, p2x = xmax, xmin

        rp1x, rp1z = to_view_space(view.view_dx, view.view_dy, p1x, p1y)
        rp2x, rp2z = to_view_space(view.view_dx, view.view_dy, p2x, p2y)
        rp = RangePair(rp1x, rp1z, rp2x, rp2z)
        if not clip3d(rp):
            return False
        x1 = project_x(rp.x1, rp.z1, self.zscale, self.view_width)
        x2 = project_x(rp.x2, rp.z2, self.zscale, self.view_width)
        if x1 > x2:
            x1, x2 = x2, x1
        return rset.intersect(x1, x2) is not None

    def project_segment(self, seg: Segment, view: ViewPoint) -> Optional[Tuple[int, int]]:
        """Screen columns of the front face of ``seg``, or None if not visible."""
        x1, z1 = to_view_space(view.view_dx, view.view_dy, seg.x - view.x, seg.y - view.y)
        x2, z2 = to_view_space(view.view_dx, view.view_dy, seg.end_x - view.x, seg.end_y - view.y)
        rp = RangePair(x1, z1, x2, z2)
        if not clip3d(rp):
            return None
        sx1 = project_x(rp.x1, rp.z1, self.zscale, self.view_width)
        sx2 = project_x(rp.x2, rp.z2, self.zscale, self.view_width)
        if sx1 >= sx2:
            return None  # back face
        return sx1, sx2

    def _draw_segment(self, seg: Segment, view: ViewPoint, rset: RangeSet,
                      frame: VisibilityFrame) -> None:
        projected = self.project_segment(seg, view)
        if projected is None:
            return
        x1, x2 = projected
        drawn = False
        while x1 <= x2:
            part = rset.intersect(x1, x2)
            if part is None:
                break
            lo, hi = part
            frame.spans.append(VisibleSpan(seg, lo, hi))
            rset.remove(lo, hi)
            drawn = True
            x1 = hi + 1
        if drawn and not seg.seen:
            seg.seen = True
            frame.newly_seen.append(seg)
            if self.seen_cells is not None:
                self.seen_cells.mark_segment_seen(seg)
