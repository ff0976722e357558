import threading

import pytest

from mazebsp.conversion.seen_cells import SeenCells
from mazebsp.conversion.view_math import NEAR_Z, RangePair, clip3d, project_x, to_view_space, trunc_div
from mazebsp.conversion.visibility import (
    VIEW_OFFSET,
    RangeSet,
    ViewPoint,
    VisibilityWalker,
    visibility_order,
)
from mazebsp.generators.bsp.bsp_builder import BSPBuilder
from mazebsp.generators.bsp.bsp_nodes import BSPBranch
from mazebsp.generators.bsp.segments import MAP_UNIT, Segment, extract_segments
from mazebsp.generators.maze.cells import CardinalDirection, CellGrid
from mazebsp.generators.maze.distance import DistanceField

N = CardinalDirection.North
W = CardinalDirection.West


def _closed_cell_tree():
    g = CellGrid(1, 1)
    g.initialize()
    field = DistanceField(1, 1)
    field.compute(g, 0, 0)
    segments = extract_segments(g, field)
    return segments, BSPBuilder(1, 1, 4).build(segments)


# ---------------------------------------------------------------------------
# Range set
# ---------------------------------------------------------------------------

def test_range_set_remove_and_intersect():
    r = RangeSet(0, 399)
    r.remove(100, 199)
    assert r.ranges == [(0, 99), (200, 399)]
    assert r.intersect(50, 150) == (50, 99)
    assert r.intersect(120, 180) is None
    assert r.intersect(150, 250) == (200, 250)
    r.remove(0, 99)
    r.remove(200, 399)
    assert r.is_empty()


def test_range_set_set_resets():
    r = RangeSet()
    assert r.is_empty()
    r.set(5, 10)
    r.remove(7, 7)
    r.set(0, 3)
    assert r.ranges == [(0, 3)]


# ---------------------------------------------------------------------------
# View math
# ---------------------------------------------------------------------------

def test_trunc_div_rounds_toward_zero():
    assert trunc_div(7, 2) == 3
    assert trunc_div(-7, 2) == -3
    assert trunc_div(7, -2) == -3
    assert trunc_div(-7, -2) == 3


def test_point_ahead_projects_to_center():
    view = ViewPoint.from_angle(0, 0, 0)  # facing East
    x, z = to_view_space(view.view_dx, view.view_dy, 100, 0)
    assert x == 0 and z == -100
    assert project_x(x, z, 200, 400) == 200


def test_clip3d_rejects_behind_viewer():
    assert not clip3d(RangePair(-10, 50, 10, 60))
    rp = RangePair(-10, -50, 10, 50)
    assert clip3d(rp)
    assert rp.z1 == -50
    assert rp.z2 <= -NEAR_Z + 1, "endpoint behind the viewer is pulled to the near plane"


def test_viewpoint_at_cell_pulls_back():
    view = ViewPoint.at_cell(2, 3, 270)  # facing North
    assert view.x == 2 * MAP_UNIT + MAP_UNIT // 2
    assert view.y == 3 * MAP_UNIT + MAP_UNIT // 2 + VIEW_OFFSET


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def test_visibility_order_yields_every_leaf(maze_with_tree):
    _, _, _, tree = maze_with_tree
    ordered = list(visibility_order(tree, 300, 300))
    assert len(ordered) == len(tree.leaves())
    assert {id(leaf) for leaf in ordered} == {id(leaf) for leaf in tree.leaves()}


def test_visibility_order_visits_viewer_side_first(maze_with_tree):
    _, _, _, tree = maze_with_tree
    root = tree.root
    assert isinstance(root, BSPBranch)
    px, py = 5 * MAP_UNIT + 64, 4 * MAP_UNIT + 64
    near = root.right if root.side_of(px, py) >= 0 else root.left
    near_leaves = {id(l) for l in _leaves_under(tree, near)}
    first = next(visibility_order(tree, px, py))
    assert id(first) in near_leaves


def _leaves_under(tree, index):
    node = tree.node(index)
    if not isinstance(node, BSPBranch):
        return [node]
    return _leaves_under(tree, node.left) + _leaves_under(tree, node.right)


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------

def test_walker_sees_front_walls_only():
    segments, tree = _closed_cell_tree()
    seen = SeenCells(1, 1)
    walker = VisibilityWalker(tree, seen_cells=seen)
    frame = walker.walk(ViewPoint.at_cell(0, 0, 270))  # facing North

    top, bottom, left, right = segments
    assert top.seen, "wall in front must be drawn"
    assert not bottom.seen, "wall behind the viewer must not be drawn"
    assert frame.spans
    spans = sorted((s.x1, s.x2) for s in frame.spans)
    for (a1, a2), (b1, b2) in zip(spans, spans[1:]):
        assert a2 < b1, f"spans overlap: {(a1, a2)} and {(b1, b2)}"
    assert all(0 <= s.x1 <= s.x2 < walker.view_width for s in frame.spans)
    assert seen.has_seen_wall(0, 0, N)
    assert set(map(id, frame.newly_seen)) == {id(s) for s in segments if s.seen}


def test_second_walk_reports_nothing_new():
    _, tree = _closed_cell_tree()
    walker = VisibilityWalker(tree)
    view = ViewPoint.at_cell(0, 0, 270)
    assert walker.walk(view).newly_seen
    assert walker.walk(view).newly_seen == []


def test_walk_over_generated_maze(maze_with_tree):
    cells, distances, _, tree = maze_with_tree
    seen = SeenCells(cells.width, cells.height)
    walker = VisibilityWalker(tree, seen_cells=seen)
    sx, sy = distances.start_position
    frame = walker.walk(ViewPoint.at_cell(sx, sy, 0))
    assert frame.nodes_visited >= 1
    assert 1 <= frame.leaves_visited <= len(tree.leaves())
    covered = sum(s.x2 - s.x1 + 1 for s in frame.spans)
    assert covered <= walker.view_width
    assert seen.snapshot().any()


def test_bounding_box_culled_when_screen_full(maze_with_tree):
    _, _, _, tree = maze_with_tree
    walker = VisibilityWalker(tree)
    no_free_columns = RangeSet()
    assert not walker.bounding_box_is_visible(tree.root.bounds, ViewPoint.from_angle(64, 64, 0), no_free_columns)


# ---------------------------------------------------------------------------
# Seen cells
# ---------------------------------------------------------------------------

def test_seen_cells_marks_one_sided_walls():
    seen = SeenCells(3, 3)
    seen.mark_segment_seen(Segment(3 * MAP_UNIT, 0, -3 * MAP_UNIT, 0, 1))  # top edge, right to left
    seen.mark_segment_seen(Segment(0, 0, 0, 2 * MAP_UNIT, 1))  # left edge, two cells
    assert all(seen.has_seen_wall(x, 0, N) for x in range(3))
    assert not seen.has_seen_wall(0, 1, N)
    assert seen.has_seen_wall(0, 0, W) and seen.has_seen_wall(0, 1, W)
    assert not seen.has_seen_wall(0, 2, W)
    assert seen.snapshot().shape == (4, 4)


def test_seen_cells_right_wall_uses_west_of_next_column():
    seen = SeenCells(2, 2)
    seen.mark_segment_seen(Segment(MAP_UNIT, MAP_UNIT, 0, -MAP_UNIT, 1))  # right side of (0,0)
    assert seen.has_seen_wall(1, 0, W)


def test_seen_cells_concurrent_marking():
    seen = SeenCells(8, 8)
    segs = [Segment(0, y * MAP_UNIT, 8 * MAP_UNIT, 0, 1) for y in range(1, 9)]

    def mark(chunk):
        for s in chunk:
            seen.mark_segment_seen(s)

    threads = [threading.Thread(target=mark, args=(segs[i::4],)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    for y in range(1, 9):
        assert all(seen.has_seen_wall(x, y, N) for x in range(8)), f"row {y} incomplete"
