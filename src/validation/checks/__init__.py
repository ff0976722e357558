"""
Validation check modules.

- maze_checks: Border enclosure, wall symmetry, connectivity, exit, segment coverage
- bsp_checks: Wall length conservation, bounding box containment
"""

from .maze_checks import (
    validate_maze,
    check_border_enclosure,
    check_wall_symmetry,
    check_connectivity,
    check_single_exit,
    check_segment_coverage,
    check_start_distance,
    unreachable_cells,
)
from .bsp_checks import (
    validate_partition,
    check_length_conservation,
    check_bounds_containment,
)

__all__ = [
    'validate_maze',
    'check_border_enclosure',
    'check_wall_symmetry',
    'check_connectivity',
    'check_single_exit',
    'check_segment_coverage',
    'check_start_distance',
    'unreachable_cells',
    'validate_partition',
    'check_length_conservation',
    'check_bounds_containment',
]
