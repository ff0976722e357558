"""
Maze validation checks.

Validates a carved cell grid and its distance field:
- Outer border enclosure (MAZE-001)
- Wall symmetry between neighbors (MAZE-002)
- Full connectivity (MAZE-003)
- Single exit (MAZE-004)
- Segment coverage of grid walls (MAZE-005)
- Start placement (MAZE-006)
"""

from collections import deque
from typing import List, Optional, Sequence, Tuple

from ...generators.bsp.segments import MAP_UNIT, Segment, walls_from_segments
from ...generators.maze.cells import CardinalDirection, CellGrid, SCAN_DIRECTIONS
from ...generators.maze.distance import DistanceField
from ..core import ValidationIssue, ValidationResult, ValidationStage
from ..rules import MAZE_001, MAZE_002, MAZE_003, MAZE_004, MAZE_005, MAZE_006, ValidationRule


def make_issue(rule: ValidationRule, location: Optional[str] = None, **kwargs) -> ValidationIssue:
    """Build an issue from a rule and its message placeholders."""
    return ValidationIssue(
        severity=rule.severity,
        code=rule.code,
        message=rule.format_message(**kwargs),
        rule_reference=rule.rule_reference,
        remediation=rule.format_remediation(**kwargs),
        location=location,
    )


def check_border_enclosure(cells: CellGrid) -> List[ValidationIssue]:
    """Every outer-ring cell keeps its outward border."""
    issues = []
    w, h = cells.width, cells.height
    edges = (
        [(x, 0, CardinalDirection.North) for x in range(w)]
        + [(x, h - 1, CardinalDirection.South) for x in range(w)]
        + [(0, y, CardinalDirection.West) for y in range(h)]
        + [(w - 1, y, CardinalDirection.East) for y in range(h)]
    )
    for x, y, d in edges:
        if not cells.has_border(x, y, d):
            issues.append(make_issue(MAZE_001, f"({x}, {y})", x=x, y=y, side=d.name))
    return issues


def check_wall_symmetry(cells: CellGrid) -> List[ValidationIssue]:
    """Each internal wall is present on both sides or on neither."""
    issues = []
    for x in range(cells.width):
        for y in range(cells.height):
            for d in (CardinalDirection.East, CardinalDirection.South):
                nx, ny = x + d.dx, y + d.dy
                if not cells.is_valid_position(nx, ny):
                    continue
                here = cells.has_wall(x, y, d)
                if here != cells.has_wall(nx, ny, d.opposite()):
                    issues.append(make_issue(
                        MAZE_002, f"({x}, {y})", x=x, y=y, nx=nx, ny=ny, side=d.name,
                        state="present" if here else "absent"))
    return issues


def unreachable_cells(cells: CellGrid, start: Tuple[int, int]) -> List[Tuple[int, int]]:
    """Cells not reachable from ``start`` through open walls."""
    seen = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for d in SCAN_DIRECTIONS:
            nx, ny = x + d.dx, y + d.dy
            if (nx, ny) in seen or not cells.is_valid_position(nx, ny):
                continue
            if cells.has_no_wall(x, y, d):
                seen.add((nx, ny))
                queue.append((nx, ny))
    return [(x, y) for x in range(cells.width) for y in range(cells.height)
            if (x, y) not in seen]


def check_connectivity(cells: CellGrid, exit_position: Tuple[int, int]) -> List[ValidationIssue]:
    missing = unreachable_cells(cells, exit_position)
    if not missing:
        return []
    x, y = missing[0]
    return [make_issue(MAZE_003, f"({x}, {y})", count=len(missing), x=x, y=y)]


def check_single_exit(cells: CellGrid) -> List[ValidationIssue]:
    w, h = cells.width, cells.height
    border = {(x, y) for x in range(w) for y in (0, h - 1)}
    border |= {(x, y) for y in range(h) for x in (0, w - 1)}
    exits = [p for p in sorted(border) if cells.is_exit_position(*p)]
    if len(exits) == 1:
        return []
    return [make_issue(MAZE_004, ", ".join(map(str, exits)) or None, count=len(exits))]


def check_segment_coverage(cells: CellGrid, segments: Sequence[Segment],
                           map_unit: int = MAP_UNIT) -> List[ValidationIssue]:
    """Segments reproduce exactly the grid's wall bits."""
    grid_walls = {
        (x, y, d)
        for x in range(cells.width)
        for y in range(cells.height)
        for d in SCAN_DIRECTIONS
        if cells.has_wall(x, y, d)
    }
    covered = walls_from_segments(segments, map_unit)
    missing = grid_walls - covered
    extra = covered - grid_walls
    if not missing and not extra:
        return []
    return [make_issue(MAZE_005, None, missing=len(missing), extra=len(extra))]


def check_start_distance(distances: DistanceField) -> List[ValidationIssue]:
    if distances.start_position is None:
        return []
    x, y = distances.start_position
    dist = distances.get_distance(x, y)
    max_dist = int(distances.as_array().max())
    if dist >= max_dist:
        return []
    return [make_issue(MAZE_006, f"({x}, {y})", x=x, y=y, dist=dist, max_dist=max_dist)]


def validate_maze(cells: CellGrid, distances: DistanceField,
                  segments: Optional[Sequence[Segment]] = None,
                  map_unit: int = MAP_UNIT) -> ValidationResult:
    """Run all maze checks.

    Args:
        cells: Carved grid with its exit opened
        distances: Field rooted at the exit
        segments: Extracted segments; coverage is skipped when omitted
        map_unit: Map units per cell

    Returns:
        ValidationResult for the GENERATION stage
    """
    result = ValidationResult(stage=ValidationStage.GENERATION)
    result.extend(check_border_enclosure(cells))
    result.extend(check_wall_symmetry(cells))
    if distances.exit_position is not None:
        result.extend(check_connectivity(cells, distances.exit_position))
    result.extend(check_single_exit(cells))
    result.extend(check_start_distance(distances))
    if segments is not None:
        result.extend(check_segment_coverage(cells, segments, map_unit))
    return result
