import random

import pytest

from mazebsp.generators.bsp.bsp_builder import BSPBuilder
from mazebsp.generators.bsp.segments import extract_segments
from mazebsp.generators.maze.cells import CellGrid
from mazebsp.generators.maze.distance import DistanceField
from mazebsp.generators.maze.maze_builder import BuilderType, create_builder
from mazebsp.pipeline.factory import MazeOrder


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def grid4():
    """Initialized 4x4 grid: every wall present, outer ring bordered."""
    g = CellGrid(4, 4)
    g.initialize()
    return g


@pytest.fixture
def grid10():
    g = CellGrid(10, 10)
    g.initialize()
    return g


@pytest.fixture
def carved_maze():
    """Return a factory producing (cells, distances) for a seeded builder.

    The exit is opened, as the pipeline does after carving.
    """

    def _make(builder=BuilderType.DFS, width=12, height=10, rooms=0, seed=42, **kwargs):
        b = create_builder(builder, width, height, rooms=rooms, rng=random.Random(seed), **kwargs)
        cells = b.generate()
        distances = DistanceField(width, height)
        ex, ey = distances.compute_distances(cells)
        cells.set_exit_position(ex, ey)
        return cells, distances

    return _make


@pytest.fixture
def maze_with_tree(carved_maze):
    """Carved 12x10 maze with its segments and BSP tree."""
    cells, distances = carved_maze(width=12, height=10, rooms=2, seed=7)
    segments = extract_segments(cells, distances, colchange=3)
    tree = BSPBuilder(cells.width, cells.height, 4 * cells.width * cells.height).build(segments)
    return cells, distances, segments, tree


@pytest.fixture
def order():
    """Recording order for factory tests."""
    return MazeOrder(skill_level=0, builder=BuilderType.DFS, is_perfect=True, seed=99)
