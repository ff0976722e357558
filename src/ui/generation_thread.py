"""
Qt adapter for the maze pipeline.

Runs a ``MazePipeline`` on a ``QThread`` so a GUI stays responsive while a
maze and its BSP tree are built.  Results are emitted as signals.
"""

import logging
from typing import Optional

from PyQt5.QtCore import QThread, pyqtSignal

from ..pipeline.automated_pipeline import MazePipeline, PipelineProgress, PipelineSettings

logger = logging.getLogger(__name__)


class GenerationThread(QThread):
    progress_updated = pyqtSignal(object)      # PipelineProgress
    generation_complete = pyqtSignal(object)   # MazeConfiguration
    generation_failed = pyqtSignal(str)

    def __init__(self, settings: PipelineSettings, parent=None):
        super().__init__(parent)
        self._settings = settings
        self.pipeline: Optional[MazePipeline] = None
        self.is_cancelled = False

    def _on_progress(self, progress: PipelineProgress):
        if not self.is_cancelled:
            self.progress_updated.emit(progress)

    def run(self):
        try:
            self.pipeline = MazePipeline(self._settings)
            if self.is_cancelled:
                self.pipeline.cancel()
            self.pipeline.set_progress_callback(self._on_progress)
            result = self.pipeline.generate()
        except Exception as e:
            logger.exception("Maze generation thread failed")
            self.generation_failed.emit(str(e))
            return
        if result.success:
            self.generation_complete.emit(result.maze)
        else:
            self.generation_failed.emit("\n".join(result.errors))

    def cancel_generation(self):
        self.is_cancelled = True
        if self.pipeline is not None:
            self.pipeline.cancel()
