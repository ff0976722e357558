"""
Maze generation module.

Cell grid model, distance field and the three carving algorithms
(randomized depth-first, Prim and Kruskal).
"""

from .cells import (
    CardinalDirection,
    Cell,
    CellGrid,
    CellOutOfBoundsError,
    Wall,
    Walls,
    SCAN_DIRECTIONS,
)
from .distance import (
    DistanceField,
    DistanceNotComputedError,
    DisconnectedMazeError,
)
from .maze_builder import BuilderType, MazeBuilder, create_builder
from .prim import PrimMazeBuilder
from .kruskal import KruskalMazeBuilder, DisjointSet

__all__ = [
    'CardinalDirection',
    'Cell',
    'CellGrid',
    'CellOutOfBoundsError',
    'Wall',
    'Walls',
    'SCAN_DIRECTIONS',
    'DistanceField',
    'DistanceNotComputedError',
    'DisconnectedMazeError',
    'BuilderType',
    'MazeBuilder',
    'PrimMazeBuilder',
    'KruskalMazeBuilder',
    'DisjointSet',
    'create_builder',
]
