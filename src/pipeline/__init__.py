"""
Maze generation pipeline module.

Provides the staged generation pipeline, the published maze configuration
and the single-order asynchronous factory.
"""

from .automated_pipeline import (
    MazePipeline,
    PipelineSettings,
    PipelineResult,
    PipelineProgress,
    PipelineStage,
    PipelineError,
    GenerationCancelledException,
    ProgressTracker,
    SKILL_X,
    SKILL_Y,
    SKILL_ROOMS,
    SKILL_PARTCT,
)
from .maze_state import MazeConfiguration
from .factory import MazeFactory, MazeOrder, Order

__all__ = [
    # Pipeline core
    'MazePipeline',
    'PipelineSettings',
    'PipelineResult',
    'PipelineProgress',
    'PipelineStage',
    'PipelineError',
    'GenerationCancelledException',
    'ProgressTracker',
    'SKILL_X',
    'SKILL_Y',
    'SKILL_ROOMS',
    'SKILL_PARTCT',
    # Published state
    'MazeConfiguration',
    # Factory
    'MazeFactory',
    'MazeOrder',
    'Order',
]
