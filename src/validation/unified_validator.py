"""
Maze validator orchestrator.

Central class that runs the maze and BSP checks for a pipeline stage and
applies strict and fail-fast policies.
"""

import logging
from typing import List, Optional, Sequence

from ..generators.bsp.bsp_nodes import BSPTree
from ..generators.bsp.segments import MAP_UNIT, Segment
from ..generators.maze.cells import CellGrid
from ..generators.maze.distance import DistanceField
from .checks.bsp_checks import validate_partition
from .checks.maze_checks import validate_maze
from .core import Severity, ValidationError, ValidationResult

logger = logging.getLogger(__name__)


class MazeValidator:
    """Runs validation checks over generated mazes.

    Attributes:
        strict_mode: Promote WARN issues to FAIL
        fail_fast: If True, raise ValidationError on any FAIL issue
        enabled: If False, skip all validation
    """

    def __init__(self, strict_mode: bool = False, fail_fast: bool = True, enabled: bool = True):
        self.strict_mode = strict_mode
        self.fail_fast = fail_fast
        self.enabled = enabled
        self._validation_history: List[ValidationResult] = []

    def validate_generation(self, cells: CellGrid, distances: DistanceField,
                            segments: Optional[Sequence[Segment]] = None,
                            map_unit: int = MAP_UNIT) -> ValidationResult:
        """Validate a carved grid, its distance field and optionally its segments.

        Raises:
            ValidationError: On FAIL issues when fail_fast is set
        """
        if not self.enabled:
            return ValidationResult()
        result = validate_maze(cells, distances, segments, map_unit)
        return self._finish(result)

    def validate_partition(self, segments: Sequence[Segment], tree: BSPTree) -> ValidationResult:
        """Validate a BSP tree against the segment list it was built from.

        Raises:
            ValidationError: On FAIL issues when fail_fast is set
        """
        if not self.enabled:
            return ValidationResult()
        return self._finish(validate_partition(segments, tree))

    def get_history(self) -> List[ValidationResult]:
        return self._validation_history.copy()

    def clear_history(self) -> None:
        self._validation_history.clear()

    def _finish(self, result: ValidationResult) -> ValidationResult:
        if self.strict_mode:
            for issue in result.warnings:
                issue.severity = Severity.FAIL
        self._validation_history.append(result)
        for issue in result.warnings:
            logger.warning("%s", issue.format())
        if result.failed:
            logger.error("Validation failed (%s): %d issue(s)", result.stage, len(result.errors))
            if self.fail_fast:
                raise ValidationError(result)
        return result
