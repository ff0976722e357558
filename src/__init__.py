"""
Maze BSP Toolkit.

Generates rectangular grid mazes with optional rooms, computes distances to
the exit, converts the walls into segments and builds a BSP tree for
front-to-back visibility traversal.

Author: Maze BSP Toolkit
License: MIT
"""

__version__ = "1.0.0"

from .generators.maze import BuilderType, CardinalDirection, CellGrid, DistanceField
from .pipeline import (
    MazeConfiguration,
    MazeFactory,
    MazeOrder,
    MazePipeline,
    PipelineError,
    PipelineSettings,
)

__all__ = [
    'BuilderType',
    'CardinalDirection',
    'CellGrid',
    'DistanceField',
    'MazeConfiguration',
    'MazeFactory',
    'MazeOrder',
    'MazePipeline',
    'PipelineError',
    'PipelineSettings',
]
