import pytest

from mazebsp.generators.bsp.segments import extract_segments
from mazebsp.generators.maze.cells import CW_TOP_BOUND, CardinalDirection, CellGrid
from mazebsp.validation import MazeValidator, Severity, ValidationError, get_rule
from mazebsp.validation.checks import (
    check_border_enclosure,
    check_connectivity,
    check_single_exit,
    check_wall_symmetry,
    validate_maze,
    validate_partition,
)

E = CardinalDirection.East
S = CardinalDirection.South


def _codes(issues):
    return [i.code for i in issues]


def test_generated_maze_passes(maze_with_tree):
    cells, distances, segments, tree = maze_with_tree
    result = validate_maze(cells, distances, segments)
    assert result.passed, result.report()
    assert validate_partition(segments, tree).passed


def test_one_sided_wall_detected(carved_maze):
    cells, _ = carved_maze(width=6, height=6, seed=2)
    x, y = next((x, y) for x in range(5) for y in range(6) if cells.has_no_wall(x, y, E))
    cells.add_wall(x, y, E, internal=False)
    assert _codes(check_wall_symmetry(cells)) == ["MAZE-002"]


def test_missing_outer_border_detected(carved_maze):
    cells, _ = carved_maze(width=5, height=5, seed=2)
    arr = cells.to_array()
    arr[2, 0] &= ~CW_TOP_BOUND
    broken = CellGrid.from_array(arr)
    issues = check_border_enclosure(broken)
    assert _codes(issues) == ["MAZE-001"]
    assert issues[0].location == "(2, 0)"


def test_disconnected_maze_detected(carved_maze):
    cells, distances = carved_maze(width=6, height=6, seed=3)
    # a perfect maze splits in two when any passage is walled up
    x, y, d = next((x, y, d) for x in range(6) for y in range(6) for d in (E, S)
                   if cells.is_valid_position(x + d.dx, y + d.dy) and cells.has_no_wall(x, y, d))
    cells.add_wall(x, y, d)
    issues = check_connectivity(cells, distances.exit_position)
    assert _codes(issues) == ["MAZE-003"]


def test_second_exit_detected(carved_maze):
    cells, distances = carved_maze(width=6, height=6, seed=4)
    ex, ey = distances.exit_position
    other = (5, 5) if (ex, ey) != (5, 5) else (0, 0)
    cells.set_exit_position(*other)
    assert _codes(check_single_exit(cells)) == ["MAZE-004"]


def test_segment_coverage_detects_missing_segment(carved_maze):
    cells, distances = carved_maze(width=6, height=6, seed=5)
    segments = extract_segments(cells, distances)[1:]
    assert "MAZE-005" in validate_maze(cells, distances, segments).codes()


def test_lost_leaf_segment_detected(maze_with_tree):
    _, _, segments, tree = maze_with_tree
    tree.leaves()[0].segments.pop()
    assert "BSP-001" in validate_partition(segments, tree).codes()


def test_validator_fail_fast_raises(carved_maze):
    cells, distances = carved_maze(width=6, height=6, seed=6)
    d = E if cells.has_no_wall(0, 0, E) else S
    cells.add_wall(0, 0, d, internal=False)
    validator = MazeValidator()
    with pytest.raises(ValidationError) as exc:
        validator.validate_generation(cells, distances)
    assert exc.value.result.failed
    assert len(validator.get_history()) == 1


def test_validator_collects_without_fail_fast(carved_maze):
    cells, distances = carved_maze(width=6, height=6, seed=6)
    cells.set_exit_position(0, 1)
    cells.set_exit_position(5, 4)
    result = MazeValidator(fail_fast=False).validate_generation(cells, distances)
    assert result.failed
    assert "MAZE-004" in result.codes()
    assert result.to_dict()["fail_count"] >= 1


def test_start_warning_promoted_in_strict_mode(carved_maze):
    cells, distances = carved_maze(width=6, height=6, seed=7)
    distances.start_position = distances.exit_position
    lenient = MazeValidator().validate_generation(cells, distances)
    assert lenient.passed
    assert [i.severity for i in lenient.warnings] == [Severity.WARN]
    with pytest.raises(ValidationError):
        MazeValidator(strict_mode=True).validate_generation(cells, distances)


def test_disabled_validator_skips(carved_maze):
    cells, distances = carved_maze(width=4, height=4, seed=1)
    cells.add_wall(0, 0, E, internal=False)
    assert MazeValidator(enabled=False).validate_generation(cells, distances).passed


def test_rule_lookup():
    rule = get_rule("MAZE-003")
    assert rule.severity == Severity.FAIL
    with pytest.raises(KeyError):
        get_rule("MAZE-999")
