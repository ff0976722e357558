"""
Seen-wall bookkeeping for the renderer.

A shadow grid, separate from the static maze grid, records which walls the
viewer has already seen.  It is the only maze state written after
publication, so every access goes through one lock.
"""

import threading

import numpy as np

from ..generators.bsp.segments import MAP_UNIT, Segment
from ..generators.maze.cells import CardinalDirection, CellGrid


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


class SeenCells:
    """(width + 1) x (height + 1) grid of one-sided seen walls."""

    def __init__(self, width: int, height: int, map_unit: int = MAP_UNIT):
        self.width = width
        self.height = height
        self.map_unit = map_unit
        self._grid = CellGrid(width + 1, height + 1)
        self._lock = threading.Lock()

    def mark_segment_seen(self, seg: Segment) -> None:
        """Record every cell wall covered by ``seg`` as seen."""
        sdx = seg.dx // self.map_unit
        sdy = seg.dy // self.map_unit
        sx = seg.x // self.map_unit
        if sdx < 0:
            sx -= 1
        sy = seg.y // self.map_unit
        if sdy < 0:
            sy -= 1
        step_x, step_y = _sign(sdx), _sign(sdy)
        # horizontal runs are stored as north walls, vertical runs as west walls
        direction = CardinalDirection.North if sdx != 0 else CardinalDirection.West
        with self._lock:
            for _ in range(abs(sdx + sdy)):
                self._grid.add_wall(sx, sy, direction, internal=False)
                sx += step_x
                sy += step_y

    def has_seen_wall(self, x: int, y: int, direction: CardinalDirection) -> bool:
        with self._lock:
            return self._grid.has_wall(x, y, direction)

    def snapshot(self) -> np.ndarray:
        """Legacy-encoded copy of the shadow grid."""
        with self._lock:
            return self._grid.to_array()
