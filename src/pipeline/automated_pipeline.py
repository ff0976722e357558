"""
Automated Pipeline for maze generation.

Orchestrates room placement and carving, distance computation, segment
extraction and BSP construction, then publishes a single
``MazeConfiguration``.  Nothing is published unless every stage succeeds;
cancellation and failures leave only a ``PipelineResult`` with errors.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..generators.bsp.bsp_builder import BSPBuilder
from ..generators.bsp.bsp_nodes import BSPTree
from ..generators.bsp.segments import MAP_UNIT, Segment, extract_segments
from ..generators.maze.cells import CellGrid
from ..generators.maze.distance import DistanceField
from ..generators.maze.maze_builder import BuilderType, MazeBuilder, create_builder
from ..validation.unified_validator import MazeValidator
from .maze_state import MazeConfiguration

logger = logging.getLogger(__name__)


# Skill level tables, indexed 0..15
SKILL_X = [4, 12, 15, 20, 25, 25, 35, 35, 40, 60, 70, 80, 90, 110, 150, 300]
SKILL_Y = [4, 12, 15, 15, 20, 25, 25, 35, 40, 60, 70, 75, 75, 90, 120, 240]
SKILL_ROOMS = [0, 2, 2, 3, 4, 5, 10, 10, 20, 45, 45, 50, 50, 60, 80, 160]
SKILL_PARTCT = [60, 600, 900, 1200, 2100, 2700, 3300, 5000, 6000, 13500, 19800,
                25000, 29000, 45000, 85000, 85000 * 4]
MAX_SKILL_LEVEL = len(SKILL_X) - 1

# Partition candidates graded per cell, for sizes outside the skill tables
PARTITERS_PER_CELL = 4


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PipelineStage(Enum):
    INITIALIZE = "initialize"
    GENERATE_MAZE = "generate_maze"
    COMPUTE_DISTANCES = "compute_distances"
    EXTRACT_SEGMENTS = "extract_segments"
    BUILD_BSP = "build_bsp"
    VALIDATE = "validate"
    COMPLETE = "complete"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PipelineError(Exception):
    pass


class GenerationCancelledException(PipelineError):
    pass


# ---------------------------------------------------------------------------
# Settings / Result dataclasses
# ---------------------------------------------------------------------------

@dataclass
class PipelineSettings:
    # Maze shape
    skill_level: int = 0
    builder: BuilderType = BuilderType.DFS
    perfect: bool = False

    # Explicit overrides of the skill tables
    width: Optional[int] = None
    height: Optional[int] = None
    rooms: Optional[int] = None
    expected_partiters: Optional[int] = None

    # Seeding for reproducible generation
    seed: Optional[int] = None  # None = random seed, otherwise deterministic

    # Algorithms
    distance_method: str = "bfs"
    use_union_find: bool = True

    # Checks / diagnostics
    validate: bool = True
    trace_deletions: bool = False

    @classmethod
    def from_order(cls, order, **overrides) -> 'PipelineSettings':
        """Settings for an order (skill_level, builder, is_perfect, seed)."""
        return cls(
            skill_level=order.skill_level,
            builder=order.builder,
            perfect=order.is_perfect,
            seed=getattr(order, 'seed', None),
            **overrides,
        )

    @property
    def resolved_width(self) -> int:
        return self.width if self.width is not None else SKILL_X[self.skill_level]

    @property
    def resolved_height(self) -> int:
        return self.height if self.height is not None else SKILL_Y[self.skill_level]

    @property
    def resolved_rooms(self) -> int:
        if self.perfect:
            return 0
        return self.rooms if self.rooms is not None else SKILL_ROOMS[self.skill_level]

    @property
    def resolved_partiters(self) -> int:
        if self.expected_partiters is not None:
            return self.expected_partiters
        if self.width is None and self.height is None:
            return SKILL_PARTCT[self.skill_level]
        return PARTITERS_PER_CELL * self.resolved_width * self.resolved_height


@dataclass
class PipelineProgress:
    stage: PipelineStage
    stage_progress: float
    overall_progress: float
    message: str
    elapsed_time: float
    estimated_remaining: float

    @property
    def percentage(self) -> int:
        return int(self.overall_progress * 100)


@dataclass
class PipelineResult:
    success: bool
    maze: Optional[MazeConfiguration] = None
    cancelled: bool = False
    stages_completed: List[PipelineStage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_time(self) -> float:
        return self.metrics.get("total_time", 0.0)

    @staticmethod
    def _tagged(text: str, stage: Optional[PipelineStage]) -> str:
        return f"[{stage.value}] {text}" if stage else text

    def add_error(self, error: str, stage: Optional[PipelineStage] = None):
        self.errors.append(self._tagged(error, stage))

    def add_warning(self, warning: str, stage: Optional[PipelineStage] = None):
        self.warnings.append(self._tagged(warning, stage))


# ---------------------------------------------------------------------------
# Progress tracker
# ---------------------------------------------------------------------------

class ProgressTracker:
    STAGE_WEIGHTS = {
        PipelineStage.INITIALIZE: 0.02,
        PipelineStage.GENERATE_MAZE: 0.15,
        PipelineStage.COMPUTE_DISTANCES: 0.05,
        PipelineStage.EXTRACT_SEGMENTS: 0.03,
        PipelineStage.BUILD_BSP: 0.70,
        PipelineStage.VALIDATE: 0.05,
    }

    def __init__(self):
        self.start_time = time.time()
        self.stage_started: Dict[PipelineStage, float] = {}
        # Fraction of the run completed when each stage begins
        self._offsets: Dict[PipelineStage, float] = {}
        done = 0.0
        for stage, weight in self.STAGE_WEIGHTS.items():
            self._offsets[stage] = done
            done += weight

    def start_stage(self, stage: PipelineStage):
        self.stage_started[stage] = time.time()

    def calculate_progress(self, current_stage: PipelineStage, stage_progress: float) -> PipelineProgress:
        fraction = min(max(stage_progress, 0.0), 1.0)
        if current_stage in self._offsets:
            overall = self._offsets[current_stage] + self.STAGE_WEIGHTS[current_stage] * fraction
        else:
            overall = 1.0
        elapsed = time.time() - self.start_time
        remaining = elapsed * (1.0 - overall) / overall if overall > 0.01 else 0.0
        return PipelineProgress(
            stage=current_stage,
            stage_progress=fraction,
            overall_progress=min(overall, 1.0),
            message="",
            elapsed_time=elapsed,
            estimated_remaining=max(0.0, remaining),
        )


# ---------------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------------

class MazePipeline:
    """Generates one maze and its BSP tree from ``PipelineSettings``."""

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or PipelineSettings()
        self.is_running = False
        self._cancel_event = threading.Event()
        self.current_stage = PipelineStage.INITIALIZE
        self.progress_tracker = ProgressTracker()
        self.progress_callback: Optional[Callable[[PipelineProgress], None]] = None
        self.validator = MazeValidator(fail_fast=True, enabled=self.settings.validate)

        # Per-run state, discarded unless the run completes
        self.rng: Optional[random.Random] = None
        self.colchange = 0
        self.builder: Optional[MazeBuilder] = None
        self.cells: Optional[CellGrid] = None
        self.distances: Optional[DistanceField] = None
        self.segments: List[Segment] = []
        self.tree: Optional[BSPTree] = None
        self._validate_settings()

    # -- helpers --

    def set_progress_callback(self, callback: Callable[[PipelineProgress], None]):
        self.progress_callback = callback

    def cancel(self):
        self._cancel_event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _check_cancellation(self):
        if self._cancel_event.is_set():
            raise GenerationCancelledException("Generation cancelled by request")

    def _start_stage(self, stage: PipelineStage, message: str):
        self._check_cancellation()
        self.current_stage = stage
        self.progress_tracker.start_stage(stage)
        self._update_progress(0.0, message)

    def _update_progress(self, stage_progress: float, message: str):
        if self.is_cancelled:
            return
        progress = self.progress_tracker.calculate_progress(self.current_stage, stage_progress)
        progress.message = message
        if self.progress_callback:
            self.progress_callback(progress)

    def _validate_settings(self):
        s = self.settings
        errors = []
        if not 0 <= s.skill_level <= MAX_SKILL_LEVEL:
            errors.append(f"Skill level must be between 0 and {MAX_SKILL_LEVEL}")
        if s.width is not None and s.width < 1:
            errors.append("Width must be at least 1")
        if s.height is not None and s.height < 1:
            errors.append("Height must be at least 1")
        if s.rooms is not None and s.rooms < 0:
            errors.append("Room count cannot be negative")
        if s.expected_partiters is not None and s.expected_partiters < 1:
            errors.append("Expected partition iterations must be positive")
        if s.distance_method not in DistanceField.METHODS:
            errors.append(f"Distance method must be one of {DistanceField.METHODS}")
        if not isinstance(s.builder, BuilderType):
            errors.append(f"Unknown builder: {s.builder!r}")
        if errors:
            raise PipelineError(f"Invalid settings: {'; '.join(errors)}")

    # -- stages --

    def _initialize(self):
        self._start_stage(PipelineStage.INITIALIZE, "Initializing...")
        s = self.settings
        kwargs = {'trace_deletions': s.trace_deletions}
        if s.builder == BuilderType.KRUSKAL:
            kwargs['use_union_find'] = s.use_union_find
        self.builder = create_builder(s.builder, s.resolved_width, s.resolved_height,
                                      rooms=s.resolved_rooms, rng=self.rng, **kwargs)
        self.colchange = self.rng.randint(0, 255)
        self._update_progress(1.0, "Initialization complete")

    def _generate_maze(self):
        self._start_stage(PipelineStage.GENERATE_MAZE, "Carving pathways...")
        self.cells = self.builder.generate()
        logger.info("Carved %dx%d maze with %s, %d room(s)", self.cells.width, self.cells.height,
                    self.settings.builder.value, self.builder.rooms_placed)
        self._update_progress(1.0, "Pathways carved")

    def _compute_distances(self):
        self._start_stage(PipelineStage.COMPUTE_DISTANCES, "Computing distances...")
        self.distances = DistanceField(self.cells.width, self.cells.height,
                                       method=self.settings.distance_method)
        exit_x, exit_y = self.distances.compute_distances(self.cells)
        self.cells.set_exit_position(exit_x, exit_y)
        logger.info("Exit at (%d, %d), start at %s, max distance %d", exit_x, exit_y,
                    self.distances.start_position, self.distances.max_distance)
        self._update_progress(1.0, "Distances computed")

    def _extract_segments(self):
        self._start_stage(PipelineStage.EXTRACT_SEGMENTS, "Extracting wall segments...")
        self.segments = extract_segments(self.cells, self.distances, self.colchange, MAP_UNIT)
        logger.info("Extracted %d segments", len(self.segments))
        self._update_progress(1.0, f"{len(self.segments)} segments")

    def _build_bsp(self):
        self._start_stage(PipelineStage.BUILD_BSP, "Building BSP tree...")
        bsp_builder = BSPBuilder(
            self.cells.width, self.cells.height, self.settings.resolved_partiters,
            progress_callback=lambda pct: self._update_progress(pct / 100.0, f"Partitioning ({pct}%)"),
            cancel_check=self._check_cancellation,
        )
        self.tree = bsp_builder.build(self.segments)
        logger.info("BSP tree: %d nodes, depth %d, %d candidates graded",
                    len(self.tree), self.tree.depth(), bsp_builder.partiters)
        self._update_progress(1.0, "BSP tree built")
        return bsp_builder.partiters

    def _validate(self):
        self._start_stage(PipelineStage.VALIDATE, "Validating...")
        checks = [
            self.validator.validate_generation(self.cells, self.distances, self.segments),
            self.validator.validate_partition(self.segments, self.tree),
        ]
        self._update_progress(1.0, "Validation passed")
        return [issue.format() for check in checks for issue in check.warnings]

    def _publish(self, seed: int) -> MazeConfiguration:
        return MazeConfiguration(
            width=self.cells.width,
            height=self.cells.height,
            cells=self.cells,
            distances=self.distances,
            tree=self.tree,
            segments=self.segments,
            start=self.distances.start_position,
            exit=self.distances.exit_position,
            seed=seed,
            builder=self.settings.builder,
            colchange=self.colchange,
            rooms_placed=self.builder.rooms_placed,
        )

    def _discard(self):
        self.builder = None
        self.cells = None
        self.distances = None
        self.segments = []
        self.tree = None

    # -- main entry point --

    def generate(self) -> PipelineResult:
        if self.is_running:
            raise PipelineError("Pipeline is already running")
        self.is_running = True
        result = PipelineResult(success=False)
        start_time = time.time()

        try:
            # Resolve and apply seed for reproducible generation
            if self.settings.seed is not None:
                actual_seed = self.settings.seed
            else:
                actual_seed = random.randint(0, 2**31 - 1)
            self.rng = random.Random(actual_seed)
            result.metrics['seed'] = actual_seed
            logger.info("Generation seed: %d", actual_seed)
            logger.info("Starting maze generation: skill %d, %dx%d, %d room(s), builder %s",
                        self.settings.skill_level, self.settings.resolved_width,
                        self.settings.resolved_height, self.settings.resolved_rooms,
                        self.settings.builder.value)

            stages = [
                (self._initialize, "Initialize"),
                (self._generate_maze, "Generate maze"),
                (self._compute_distances, "Compute distances"),
                (self._extract_segments, "Extract segments"),
                (self._build_bsp, "Build BSP"),
            ]
            if self.settings.validate:
                stages.append((self._validate, "Validate"))

            for stage_fn, desc in stages:
                try:
                    logger.info("Stage: %s", desc)
                    stage_result = stage_fn()
                    result.stages_completed.append(self.current_stage)
                    if self.current_stage == PipelineStage.BUILD_BSP:
                        result.metrics['partiters'] = stage_result
                    elif self.current_stage == PipelineStage.VALIDATE:
                        for warning in stage_result:
                            result.add_warning(warning, self.current_stage)
                except GenerationCancelledException:
                    logger.info("Generation cancelled during %s", self.current_stage.value)
                    result.cancelled = True
                    result.add_error("Generation cancelled by request")
                    self._discard()
                    return result
                except PipelineError as e:
                    result.add_error(str(e), self.current_stage)
                    self._discard()
                    return result

            result.maze = self._publish(actual_seed)
            result.metrics.update(
                width=result.maze.width,
                height=result.maze.height,
                rooms_placed=result.maze.rooms_placed,
                segment_count=len(self.segments),
                node_count=len(self.tree),
            )
            result.success = True
            result.metrics["total_time"] = time.time() - start_time
            self.current_stage = PipelineStage.COMPLETE
            logger.info("Pipeline complete in %.2fs", result.metrics["total_time"])
        except Exception as e:
            logger.exception("Unexpected pipeline error")
            result.add_error(f"Unexpected error: {e}", self.current_stage)
            self._discard()
        finally:
            self.is_running = False
        return result
