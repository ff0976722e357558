"""
BSP (Binary Space Partitioning) module for maze wall segments.

Extracts wall runs from a finished maze and organizes them into a tree that
supports ordered, occlusion-aware traversal.
"""

from .segments import (
    MAP_UNIT,
    Segment,
    segment_color,
    extract_segments,
    walls_from_segments,
)
from .bsp_nodes import BoundingBox, BSPBranch, BSPLeaf, BSPNode, BSPTree
from .bsp_builder import BSPBuilder, BSPBuildError

__all__ = [
    'MAP_UNIT',
    'Segment',
    'segment_color',
    'extract_segments',
    'walls_from_segments',
    'BoundingBox',
    'BSPBranch',
    'BSPLeaf',
    'BSPNode',
    'BSPTree',
    'BSPBuilder',
    'BSPBuildError',
]
