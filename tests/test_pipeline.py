import pytest

from mazebsp.generators.maze.maze_builder import BuilderType
from mazebsp.pipeline.automated_pipeline import (
    SKILL_PARTCT,
    SKILL_ROOMS,
    SKILL_X,
    SKILL_Y,
    MazePipeline,
    PipelineError,
    PipelineSettings,
    PipelineStage,
    ProgressTracker,
)
from mazebsp.pipeline.maze_state import MazeConfiguration
from mazebsp.validation.core import ValidationStage

from maze_test_utils import all_positions, bfs_reachable


def test_skill_tables_cover_sixteen_levels():
    for table in (SKILL_X, SKILL_Y, SKILL_ROOMS, SKILL_PARTCT):
        assert len(table) == 16
    assert SKILL_PARTCT[-1] == 340000


def test_settings_resolve_from_skill():
    s = PipelineSettings(skill_level=3)
    assert (s.resolved_width, s.resolved_height, s.resolved_rooms) == (20, 15, 3)
    assert s.resolved_partiters == 1200
    assert PipelineSettings(skill_level=3, perfect=True).resolved_rooms == 0


def test_settings_overrides():
    s = PipelineSettings(skill_level=3, width=10, height=6, rooms=1)
    assert (s.resolved_width, s.resolved_height, s.resolved_rooms) == (10, 6, 1)
    assert s.resolved_partiters == 4 * 10 * 6


@pytest.mark.parametrize("kwargs", [
    {"skill_level": 16},
    {"skill_level": -1},
    {"width": 0},
    {"height": -3},
    {"rooms": -1},
    {"distance_method": "astar"},
])
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(PipelineError):
        MazePipeline(PipelineSettings(**kwargs))


def test_invalid_settings_lists_every_problem():
    with pytest.raises(PipelineError) as exc:
        MazePipeline(PipelineSettings(skill_level=20, width=0, rooms=-2))
    message = str(exc.value)
    assert "Skill level" in message and "Width" in message and "Room" in message


@pytest.mark.parametrize("builder", list(BuilderType))
def test_generate_publishes_configuration(builder):
    pipeline = MazePipeline(PipelineSettings(skill_level=2, builder=builder, seed=31))
    result = pipeline.generate()
    assert result.success, result.errors
    maze = result.maze
    assert isinstance(maze, MazeConfiguration)
    assert (maze.width, maze.height) == (15, 15)
    assert len(bfs_reachable(maze.cells, maze.exit_position)) == 15 * 15
    assert maze.get_distance_to_exit(*maze.exit_position) == 1
    assert maze.get_distance_to_exit(*maze.starting_position) == maze.max_distance
    assert maze.is_exit_position(*maze.exit_position)
    assert result.stages_completed[-1] == PipelineStage.VALIDATE
    assert not pipeline.is_running


def test_metrics_recorded():
    result = MazePipeline(PipelineSettings(skill_level=1, seed=5)).generate()
    m = result.metrics
    assert m["seed"] == 5
    assert (m["width"], m["height"]) == (12, 12)
    assert m["segment_count"] == len(result.maze.segments)
    assert m["node_count"] == len(result.maze.tree)
    assert m["partiters"] >= 1
    assert result.total_time >= 0


def test_seed_reproduces_maze():
    a = MazePipeline(PipelineSettings(skill_level=2, seed=1234)).generate().maze
    b = MazePipeline(PipelineSettings(skill_level=2, seed=1234)).generate().maze
    assert a.cells == b.cells
    assert a.colchange == b.colchange
    assert a.exit == b.exit and a.start == b.start


def test_random_seed_is_recorded():
    result = MazePipeline(PipelineSettings(skill_level=0)).generate()
    assert result.success
    assert result.maze.seed == result.metrics["seed"]


def test_progress_callback_is_monotonic():
    seen = []
    pipeline = MazePipeline(PipelineSettings(skill_level=3, seed=2))
    pipeline.set_progress_callback(seen.append)
    assert pipeline.generate().success
    overall = [p.overall_progress for p in seen]
    assert overall == sorted(overall)
    assert 0.0 <= overall[0] and overall[-1] <= 1.0
    stages = {p.stage for p in seen}
    assert PipelineStage.BUILD_BSP in stages


def test_progress_callback_error_fails_build():
    def boom(progress):
        raise RuntimeError("observer broke")

    pipeline = MazePipeline(PipelineSettings(skill_level=0, seed=1))
    pipeline.set_progress_callback(boom)
    result = pipeline.generate()
    assert not result.success
    assert result.maze is None
    assert any("observer broke" in e for e in result.errors)


def test_cancel_before_start_publishes_nothing():
    pipeline = MazePipeline(PipelineSettings(skill_level=4, seed=3))
    pipeline.cancel()
    result = pipeline.generate()
    assert result.cancelled
    assert not result.success
    assert result.maze is None
    assert pipeline.cells is None and pipeline.tree is None


def test_cancel_during_bsp():
    pipeline = MazePipeline(PipelineSettings(skill_level=5, seed=3))

    def on_progress(progress):
        if progress.stage == PipelineStage.BUILD_BSP and progress.stage_progress > 0:
            pipeline.cancel()

    pipeline.set_progress_callback(on_progress)
    result = pipeline.generate()
    assert result.cancelled
    assert result.maze is None
    assert PipelineStage.BUILD_BSP not in result.stages_completed


def test_reentry_rejected():
    pipeline = MazePipeline(PipelineSettings(skill_level=0, seed=1))

    def reenter(progress):
        pipeline.generate()

    pipeline.set_progress_callback(reenter)
    result = pipeline.generate()
    assert not result.success
    assert any("already running" in e for e in result.errors)


def test_validation_history_kept():
    pipeline = MazePipeline(PipelineSettings(skill_level=1, seed=8))
    assert pipeline.generate().success
    stages = [r.stage for r in pipeline.validator.get_history()]
    assert stages == [ValidationStage.GENERATION, ValidationStage.PARTITION]


def test_validation_can_be_disabled():
    result = MazePipeline(PipelineSettings(skill_level=1, seed=8, validate=False)).generate()
    assert result.success
    assert PipelineStage.VALIDATE not in result.stages_completed


def test_relaxation_and_label_kruskal_settings():
    fast = MazePipeline(PipelineSettings(skill_level=2, builder=BuilderType.KRUSKAL, seed=4)).generate()
    legacy = MazePipeline(PipelineSettings(skill_level=2, builder=BuilderType.KRUSKAL, seed=4,
                                           use_union_find=False, distance_method="relaxation")).generate()
    assert legacy.success
    assert fast.maze.cells == legacy.maze.cells
    assert (fast.maze.distances.as_array() == legacy.maze.distances.as_array()).all()


def test_progress_tracker_weights_sum_to_one():
    assert sum(ProgressTracker.STAGE_WEIGHTS.values()) == pytest.approx(1.0)
    tracker = ProgressTracker()
    assert tracker.calculate_progress(PipelineStage.COMPLETE, 0.0).overall_progress == 1.0
    mid = tracker.calculate_progress(PipelineStage.BUILD_BSP, 0.5)
    assert 0.25 < mid.overall_progress < 0.95


def test_configuration_queries():
    maze = MazePipeline(PipelineSettings(skill_level=1, seed=12)).generate().maze
    x, y = maze.starting_position
    steps = 0
    while (x, y) != maze.exit_position:
        nxt = maze.get_neighbor_closer_to_exit(x, y)
        assert nxt is not None, f"stuck at {(x, y)}"
        x, y = nxt
        steps += 1
    assert steps == maze.max_distance - 1
    assert maze.get_neighbor_closer_to_exit(*maze.exit_position) is None
    assert not maze.is_valid_position(-1, 0)
    assert maze.get_value_of_cell(0, 0) == maze.cells.to_array()[0, 0]


def test_configuration_dump():
    maze = MazePipeline(PipelineSettings(skill_level=0, seed=12)).generate().maze
    dump = maze.dump()
    assert dump["width"] == 4 and dump["height"] == 4
    assert len(dump["cells"]) == 4 and len(dump["cells"][0]) == 4
    assert dump["distances"][dump["exit"][0]][dump["exit"][1]] == 1
    assert dump["tree"][0]["index"] == 0
    assert tuple(dump["start"]) in all_positions(maze.cells)
