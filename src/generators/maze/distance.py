"""
Distance field over a carved cell grid.

Every cell receives the length (in steps) of the shortest path to a target
cell, with the target itself at distance 1.  The field is used to place the
exit (furthest border cell from the grid center), the start (furthest cell
from the exit) and to color wall segments.
"""

import logging
from collections import deque
from typing import Optional, Tuple

import numpy as np

from .cells import CellGrid, SCAN_DIRECTIONS

logger = logging.getLogger(__name__)

INFINITY = np.iinfo(np.int64).max


class DistanceNotComputedError(RuntimeError):
    """Raised when distances are queried before any computation."""


class DisconnectedMazeError(RuntimeError):
    """Raised when some cells cannot reach the target."""


class DistanceField:
    """Per-cell shortest path lengths to a target cell.

    Args:
        width, height: Grid dimensions
        method: "bfs" (queue based) or "relaxation" (rescan and follow
            improving chains until no cell is unreached)
    """

    METHODS = ("bfs", "relaxation")

    def __init__(self, width: int, height: int, method: str = "bfs"):
        if method not in self.METHODS:
            raise ValueError(f"Unknown distance method '{method}', expected one of {self.METHODS}")
        self.width = width
        self.height = height
        self.method = method
        self._dists: Optional[np.ndarray] = None
        self.max_distance = 0
        self.start_position: Optional[Tuple[int, int]] = None
        self.exit_position: Optional[Tuple[int, int]] = None

    # ---------------------------------------------------------------
    # Computation
    # ---------------------------------------------------------------

    def compute(self, grid: CellGrid, target_x: int, target_y: int) -> np.ndarray:
        """Fill the field with distances to (target_x, target_y).

        Raises:
            DisconnectedMazeError: If any cell stays unreached
        """
        if (grid.width, grid.height) != (self.width, self.height):
            raise ValueError(
                f"Grid is {grid.width}x{grid.height}, field is {self.width}x{self.height}")
        if not grid.is_valid_position(target_x, target_y):
            raise ValueError(f"Target ({target_x}, {target_y}) outside grid")

        dists = np.full((self.width, self.height), INFINITY, dtype=np.int64)
        dists[target_x, target_y] = 1
        if self.method == "bfs":
            self._bfs(grid, dists, target_x, target_y)
        else:
            self._relax(grid, dists)

        unreached = int(np.count_nonzero(dists == INFINITY))
        if unreached:
            raise DisconnectedMazeError(
                f"{unreached} cell(s) cannot reach ({target_x}, {target_y})")
        self._dists = dists
        return dists.copy()

    def _bfs(self, grid: CellGrid, dists: np.ndarray, tx: int, ty: int) -> None:
        queue = deque([(tx, ty)])
        while queue:
            x, y = queue.popleft()
            step = dists[x, y] + 1
            for d in SCAN_DIRECTIONS:
                if grid.has_wall(x, y, d):
                    continue
                nx, ny = x + d.dx, y + d.dy
                if not grid.is_valid_position(nx, ny):
                    continue
                if dists[nx, ny] > step:
                    dists[nx, ny] = step
                    queue.append((nx, ny))

    def _relax(self, grid: CellGrid, dists: np.ndarray) -> None:
        # Rescan the grid and follow improving chains until nothing changes.
        changed = True
        while changed:
            changed = False
            for x in range(self.width):
                for y in range(self.height):
                    if dists[x, y] == INFINITY:
                        continue
                    cx, cy = x, y
                    while True:
                        step = dists[cx, cy] + 1
                        moved = False
                        for d in SCAN_DIRECTIONS:
                            if grid.has_wall(cx, cy, d):
                                continue
                            nx, ny = cx + d.dx, cy + d.dy
                            if not grid.is_valid_position(nx, ny):
                                continue
                            if dists[nx, ny] > step:
                                dists[nx, ny] = step
                                cx, cy = nx, ny
                                moved = changed = True
                                break
                        if not moved:
                            break

    def compute_distances(self, grid: CellGrid) -> Tuple[int, int]:
        """Place exit and start and leave the field rooted at the exit.

        Returns:
            The exit position
        """
        self.compute(grid, self.width // 2, self.height // 2)
        exit_x, exit_y = self.find_furthest_on_border()
        self.compute(grid, exit_x, exit_y)
        self.exit_position = (exit_x, exit_y)
        self.start_position = self.find_furthest_overall()
        self.max_distance = self.get_distance(*self.start_position)
        logger.debug("Exit at %s, start at %s, max distance %d",
                     self.exit_position, self.start_position, self.max_distance)
        return self.exit_position

    # ---------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------

    @property
    def is_computed(self) -> bool:
        return self._dists is not None

    def _require(self) -> np.ndarray:
        if self._dists is None:
            raise DistanceNotComputedError("Distances have not been computed yet")
        return self._dists

    def get_distance(self, x: int, y: int) -> int:
        dists = self._require()
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Position ({x}, {y}) outside {self.width}x{self.height} field")
        return int(dists[x, y])

    def as_array(self) -> np.ndarray:
        return self._require().copy()

    def find_furthest_on_border(self) -> Tuple[int, int]:
        """Border cell with the largest distance, first found on ties."""
        dists = self._require()
        best = -1
        pos = (0, 0)
        for x in range(self.width):
            for y in (0, self.height - 1):
                if dists[x, y] > best:
                    best = dists[x, y]
                    pos = (x, y)
        for y in range(self.height):
            for x in (0, self.width - 1):
                if dists[x, y] > best:
                    best = dists[x, y]
                    pos = (x, y)
        return pos

    def find_furthest_overall(self) -> Tuple[int, int]:
        """Cell with the globally largest distance, first found on ties."""
        dists = self._require()
        best = -1
        pos = (0, 0)
        for x in range(self.width):
            for y in range(self.height):
                if dists[x, y] > best:
                    best = dists[x, y]
                    pos = (x, y)
        return pos

    def find_nearest_overall(self) -> Tuple[int, int]:
        dists = self._require()
        best = INFINITY
        pos = (0, 0)
        for x in range(self.width):
            for y in range(self.height):
                if dists[x, y] < best:
                    best = dists[x, y]
                    pos = (x, y)
        return pos

    def is_exit_position(self, x: int, y: int) -> bool:
        """True for the cell the field is rooted at."""
        return self.get_distance(x, y) == 1
