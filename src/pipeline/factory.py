"""
Asynchronous maze factory.

Accepts at most one order at a time, runs ``MazePipeline`` on a single
background worker and reports progress back to the order.  Progress seen by
the order never decreases, stays below 100 while work is in flight and ends
at exactly 100 once the order is finished (delivered, failed or cancelled).

Author: Maze BSP Toolkit
License: MIT
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable

from ..generators.maze.maze_builder import BuilderType
from .automated_pipeline import MazePipeline, PipelineProgress, PipelineResult, PipelineSettings
from .maze_state import MazeConfiguration

logger = logging.getLogger(__name__)


@runtime_checkable
class Order(Protocol):
    """What the factory needs from a requester."""

    skill_level: int
    builder: BuilderType
    is_perfect: bool
    seed: Optional[int]

    def deliver(self, config: MazeConfiguration) -> None: ...

    def update_progress(self, percentage: int) -> None: ...


@dataclass
class MazeOrder:
    """Simple order that records what the factory reports."""
    skill_level: int = 0
    builder: BuilderType = BuilderType.DFS
    is_perfect: bool = False
    seed: Optional[int] = None
    progress: List[int] = field(default_factory=list)
    config: Optional[MazeConfiguration] = None
    deliveries: int = 0
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    def deliver(self, config: MazeConfiguration) -> None:
        self.config = config
        self.deliveries += 1

    def update_progress(self, percentage: int) -> None:
        self.progress.append(percentage)
        if percentage >= 100:
            self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)


class MazeFactory:
    """Runs one maze order at a time on a background worker.

    Extra keyword arguments become ``PipelineSettings`` overrides for every
    order (e.g. ``width``, ``distance_method``).
    """

    def __init__(self, **settings_overrides):
        self.settings_overrides = settings_overrides
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="maze-factory")
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._pipeline: Optional[MazePipeline] = None
        self._last_result: Optional[PipelineResult] = None
        self._current_maze: Optional[MazeConfiguration] = None

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._future is not None and not self._future.done()

    @property
    def current_maze(self) -> Optional[MazeConfiguration]:
        """Maze from the last successful order; failed or cancelled orders keep it."""
        return self._current_maze

    def order(self, order: Order) -> bool:
        """Start building a maze for ``order``.

        Returns False without side effects if an order is already in progress.

        Raises:
            PipelineError: If the order's settings are invalid
        """
        with self._lock:
            if self._future is not None and not self._future.done():
                logger.warning("Factory busy, rejecting order for skill %d", order.skill_level)
                return False
            settings = PipelineSettings.from_order(order, **self.settings_overrides)
            pipeline = MazePipeline(settings)
            self._pipeline = pipeline
            self._future = self._executor.submit(self._run, pipeline, order)
        logger.info("Accepted order: skill %d, builder %s, perfect=%s",
                    order.skill_level, order.builder.value, order.is_perfect)
        return True

    def cancel(self) -> None:
        """Stop the order in progress; no maze is delivered for it."""
        with self._lock:
            pipeline = self._pipeline
            busy = self._future is not None and not self._future.done()
        if pipeline is not None and busy:
            logger.info("Cancelling order in progress")
            pipeline.cancel()

    def wait_till_delivered(self, timeout: Optional[float] = None) -> Optional[PipelineResult]:
        """Block until the current order finishes and return its result."""
        with self._lock:
            future = self._future
        if future is None:
            return self._last_result
        return future.result(timeout=timeout)

    def shutdown(self, cancel: bool = True) -> None:
        if cancel:
            self.cancel()
        self._executor.shutdown(wait=True)

    def _run(self, pipeline: MazePipeline, order: Order) -> PipelineResult:
        last = -1

        def report(progress: PipelineProgress):
            nonlocal last
            pct = min(progress.percentage, 99)
            if pct > last:
                last = pct
                order.update_progress(pct)

        pipeline.set_progress_callback(report)
        try:
            result = pipeline.generate()
            self._last_result = result
            if result.success:
                self._current_maze = result.maze
                order.deliver(result.maze)
            elif result.cancelled:
                logger.info("Order cancelled, nothing delivered")
            else:
                logger.error("Order failed: %s", "; ".join(result.errors))
            return result
        finally:
            order.update_progress(100)
