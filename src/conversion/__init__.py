"""
BSP to view-space conversion package.

Turns the maze BSP tree into front-to-back leaf order and screen-column
visibility for a first-person viewer, and tracks which walls were seen.
"""

from .view_math import clip3d, clipt, project_x, to_view_space, trunc_div, viewd_unscale, RangePair
from .seen_cells import SeenCells
from .visibility import (
    RangeSet,
    ViewPoint,
    VisibilityFrame,
    VisibilityWalker,
    VisibleSpan,
    visibility_order,
    VIEW_WIDTH,
    VIEW_HEIGHT,
)

__all__ = [
    'clip3d',
    'clipt',
    'project_x',
    'to_view_space',
    'trunc_div',
    'viewd_unscale',
    'RangePair',
    'SeenCells',
    'RangeSet',
    'ViewPoint',
    'VisibilityFrame',
    'VisibilityWalker',
    'VisibleSpan',
    'visibility_order',
    'VIEW_WIDTH',
    'VIEW_HEIGHT',
]
