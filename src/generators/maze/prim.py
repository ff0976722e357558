"""Randomized Prim maze builder."""

import logging
from typing import List

from .cells import Wall, SCAN_DIRECTIONS
from .maze_builder import MazeBuilder, BuilderType

logger = logging.getLogger(__name__)


class PrimMazeBuilder(MazeBuilder):
    """Grows a spanning tree from one random cell.

    Candidate walls are kept in a list; a random one is extracted each step
    and carved if it still leads to an unvisited cell.  A wall enters the
    list only when its cell is first reached, so each wall is added once.
    """

    builder_type = BuilderType.PRIM

    def generate_pathways(self) -> None:
        cells = self.cells
        x, y = self.random_cell()
        cells.set_cell_as_visited(x, y)
        candidates: List[Wall] = []
        self._add_candidates(candidates, x, y)

        while candidates:
            idx = self.rng.randrange(len(candidates))
            candidates[idx], candidates[-1] = candidates[-1], candidates[idx]
            wall = candidates.pop()
            if cells.can_go(wall.x, wall.y, wall.direction):
                cells.delete_wall(wall.x, wall.y, wall.direction)
                nx, ny = wall.neighbor_x, wall.neighbor_y
                cells.set_cell_as_visited(nx, ny)
                self._add_candidates(candidates, nx, ny)

    def _add_candidates(self, candidates: List[Wall], x: int, y: int) -> None:
        for d in SCAN_DIRECTIONS:
            if self.cells.can_go(x, y, d):
                candidates.append(Wall(x, y, d))
