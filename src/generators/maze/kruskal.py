"""
Randomized Kruskal maze builder.

Every cell starts in its own set.  All breakable walls are collected up
front and drawn in random order; a wall is removed when the cells on its two
sides still belong to different sets, which then merge.

Set membership is tracked with a disjoint-set forest by default.  The
``use_union_find=False`` mode keeps one label per cell and relabels the whole
grid on every merge; both modes consume the random source identically and
therefore carve the same maze for the same seed.
"""

import logging
from typing import List

from .cells import Wall, SCAN_DIRECTIONS
from .maze_builder import MazeBuilder, BuilderType

logger = logging.getLogger(__name__)


class DisjointSet:
    """Union-find over integers 0..n-1 with path compression and union by size."""

    def __init__(self, n: int):
        self.parent = list(range(n))
        self.size = [1] * n

    def find(self, i: int) -> int:
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return root

    def union(self, a: int, b: int) -> bool:
        """Merge the sets of a and b.  Returns False if already merged."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        if self.size[ra] < self.size[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.size[ra] += self.size[rb]
        return True


class KruskalMazeBuilder(MazeBuilder):
    """Kruskal spanning tree carving.

    Args:
        use_union_find: Track sets with ``DisjointSet`` (default) or with
            per-cell labels and a full relabel on every merge
    """

    builder_type = BuilderType.KRUSKAL

    def __init__(self, width: int, height: int, rooms: int = 0, rng=None,
                 trace_deletions: bool = False, use_union_find: bool = True):
        super().__init__(width, height, rooms=rooms, rng=rng, trace_deletions=trace_deletions)
        self.use_union_find = use_union_find
        self.walls_removed = 0

    def generate_pathways(self) -> None:
        candidates = self._collect_candidates()
        logger.debug("Kruskal: %d candidate walls", len(candidates))
        if self.use_union_find:
            self._carve_union_find(candidates)
        else:
            self._carve_labels(candidates)

    def _collect_candidates(self) -> List[Wall]:
        candidates = []
        for x in range(self.width):
            for y in range(self.height):
                for d in SCAN_DIRECTIONS:
                    if self.cells.can_break_wall(x, y, d):
                        candidates.append(Wall(x, y, d))
        return candidates

    def _extract(self, candidates: List[Wall]) -> Wall:
        idx = self.rng.randrange(len(candidates))
        candidates[idx], candidates[-1] = candidates[-1], candidates[idx]
        return candidates.pop()

    def _carve_union_find(self, candidates: List[Wall]) -> None:
        sets = DisjointSet(self.width * self.height)
        while candidates:
            wall = self._extract(candidates)
            nx, ny = wall.neighbor_x, wall.neighbor_y
            if not self.cells.is_valid_position(nx, ny):
                continue
            if sets.union(wall.x * self.height + wall.y, nx * self.height + ny):
                self.cells.delete_wall(wall.x, wall.y, wall.direction)
                self.walls_removed += 1

    def _carve_labels(self, candidates: List[Wall]) -> None:
        labels = [[x * self.height + y for y in range(self.height)] for x in range(self.width)]
        while candidates:
            wall = self._extract(candidates)
            nx, ny = wall.neighbor_x, wall.neighbor_y
            if not self.cells.is_valid_position(nx, ny):
                continue
            keep = labels[wall.x][wall.y]
            old = labels[nx][ny]
            if keep == old:
                continue
            self.cells.delete_wall(wall.x, wall.y, wall.direction)
            self.walls_removed += 1
            for column in labels:
                for j, label in enumerate(column):
                    if label == old:
                        column[j] = keep
