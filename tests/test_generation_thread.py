import pytest

pytest.importorskip("PyQt5")

from mazebsp.pipeline.automated_pipeline import PipelineSettings  # noqa: E402
from mazebsp.pipeline.maze_state import MazeConfiguration  # noqa: E402
from mazebsp.ui.generation_thread import GenerationThread  # noqa: E402


def _collect(thread):
    got = {"progress": [], "complete": [], "failed": []}
    thread.progress_updated.connect(got["progress"].append)
    thread.generation_complete.connect(got["complete"].append)
    thread.generation_failed.connect(got["failed"].append)
    return got


def test_run_emits_completed_maze():
    thread = GenerationThread(PipelineSettings(skill_level=1, seed=3))
    got = _collect(thread)
    thread.run()  # synchronous; direct connections deliver immediately
    assert got["failed"] == []
    assert len(got["complete"]) == 1
    assert isinstance(got["complete"][0], MazeConfiguration)
    assert got["progress"]


def test_cancel_before_run_emits_failure():
    thread = GenerationThread(PipelineSettings(skill_level=1, seed=3))
    got = _collect(thread)
    thread.cancel_generation()
    thread.run()
    assert got["complete"] == []
    assert got["failed"] and "cancelled" in got["failed"][0]
    assert got["progress"] == []


def test_invalid_settings_emit_failure():
    thread = GenerationThread(PipelineSettings(skill_level=99))
    got = _collect(thread)
    thread.run()
    assert got["failed"] and "Skill level" in got["failed"][0]
