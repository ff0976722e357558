import random

import pytest

from mazebsp.generators.maze.kruskal import DisjointSet, KruskalMazeBuilder
from mazebsp.generators.maze.maze_builder import (
    BuilderType,
    MazeBuilder,
    create_builder,
)
from mazebsp.generators.maze.prim import PrimMazeBuilder

from maze_test_utils import all_positions, asymmetric_walls, bfs_reachable, count_open_internal_edges


@pytest.mark.parametrize("builder", list(BuilderType))
@pytest.mark.parametrize("rooms", [0, 3])
def test_builders_connect_every_cell(builder, rooms):
    b = create_builder(builder, 20, 16, rooms=rooms, rng=random.Random(8))
    cells = b.generate()
    reach = bfs_reachable(cells, (0, 0))
    missing = all_positions(cells) - reach
    assert not missing, f"{builder.value}: {len(missing)} unreachable cells, e.g. {sorted(missing)[:3]}"
    assert not asymmetric_walls(cells), f"{builder.value}: one-sided wall deletion"


@pytest.mark.parametrize("builder", list(BuilderType))
def test_perfect_maze_is_spanning_tree(builder):
    cells = create_builder(builder, 9, 7, rng=random.Random(3)).generate()
    assert count_open_internal_edges(cells) == 9 * 7 - 1


def test_kruskal_5x5_removes_spanning_edges():
    b = KruskalMazeBuilder(5, 5, rng=random.Random(2024))
    cells = b.generate()
    assert b.walls_removed == 24
    assert len(bfs_reachable(cells, (2, 2))) == 25


def test_kruskal_label_mode_matches_union_find():
    fast = KruskalMazeBuilder(12, 9, rooms=1, rng=random.Random(77), use_union_find=True).generate()
    legacy = KruskalMazeBuilder(12, 9, rooms=1, rng=random.Random(77), use_union_find=False).generate()
    assert fast == legacy


@pytest.mark.parametrize("builder", list(BuilderType))
def test_same_seed_same_maze(builder):
    a = create_builder(builder, 14, 10, rooms=2, rng=random.Random(555)).generate()
    b = create_builder(builder, 14, 10, rooms=2, rng=random.Random(555)).generate()
    assert a == b


def test_different_seeds_differ():
    a = MazeBuilder(14, 10, rng=random.Random(1)).generate()
    b = MazeBuilder(14, 10, rng=random.Random(2)).generate()
    assert a != b


def test_rooms_are_placed_inside_border():
    b = MazeBuilder(40, 40, rooms=6, rng=random.Random(9))
    cells = b.generate()
    assert 1 <= b.rooms_placed <= 6
    room_cells = [(x, y) for x, y in all_positions(cells) if cells.is_in_room(x, y)]
    assert room_cells
    for x, y in room_cells:
        assert 0 < x < cells.width - 1 and 0 < y < cells.height - 1, f"room touches outer ring at {(x, y)}"


def test_small_grid_skips_rooms():
    # No room of minimum size fits a 6x6 grid.
    b = MazeBuilder(6, 6, rooms=4, rng=random.Random(1))
    cells = b.generate()
    assert b.rooms_placed == 0
    assert len(bfs_reachable(cells, (0, 0))) == 36


def test_every_cell_visited_after_carving():
    cells = PrimMazeBuilder(10, 10, rng=random.Random(4)).generate()
    assert not any(cells.is_first_visit(x, y) for x, y in all_positions(cells))


def test_create_builder_types():
    assert type(create_builder(BuilderType.DFS, 4, 4)) is MazeBuilder
    assert isinstance(create_builder(BuilderType.PRIM, 4, 4), PrimMazeBuilder)
    k = create_builder(BuilderType.KRUSKAL, 4, 4, use_union_find=False)
    assert isinstance(k, KruskalMazeBuilder) and not k.use_union_find
    with pytest.raises(ValueError):
        create_builder("maze", 4, 4)


def test_disjoint_set():
    ds = DisjointSet(6)
    assert ds.union(0, 1)
    assert ds.union(2, 3)
    assert not ds.union(1, 0)
    assert ds.union(1, 3)
    assert ds.find(0) == ds.find(2)
    assert ds.find(4) != ds.find(0)
    assert ds.size[ds.find(0)] == 4
