"""
Maze builders.

A builder owns a fresh cell grid, optionally reserves rectangular rooms in
it and then carves pathways until every cell is reachable.  ``MazeBuilder``
carves with a randomized depth-first search; the Prim and Kruskal variants
override ``generate_pathways`` only.

All randomness comes from the ``random.Random`` instance handed to the
builder, so a seeded generator reproduces a maze exactly.
"""

import logging
import random
from enum import Enum
from typing import List, Optional, Tuple

from .cells import CellGrid, SCAN_DIRECTIONS

logger = logging.getLogger(__name__)

# Room placement limits
MIN_ROOM_DIMENSION = 3
MAX_ROOM_DIMENSION = 8
MAX_ROOM_TRIES = 250


class BuilderType(Enum):
    """Available carving algorithms."""
    DFS = "dfs"
    PRIM = "prim"
    KRUSKAL = "kruskal"


class MazeBuilder:
    """Randomized depth-first maze builder with an optional room pre-pass.

    Args:
        width, height: Grid dimensions in cells
        rooms: Number of rooms to try to place before carving
        rng: Random source; a fresh unseeded one is used when omitted
        trace_deletions: Record every removed wall on the grid
    """

    builder_type = BuilderType.DFS

    def __init__(self, width: int, height: int, rooms: int = 0,
                 rng: Optional[random.Random] = None, trace_deletions: bool = False):
        self.width = width
        self.height = height
        self.rooms = rooms
        self.rng = rng or random.Random()
        self.trace_deletions = trace_deletions
        self.cells: Optional[CellGrid] = None
        self.rooms_placed = 0

    def generate(self) -> CellGrid:
        """Initialize a grid, place rooms and carve pathways."""
        self.cells = CellGrid(self.width, self.height, trace_deletions=self.trace_deletions)
        self.cells.initialize()
        if self.rooms > 0:
            self.rooms_placed = self.generate_rooms()
        self.generate_pathways()
        logger.debug("%s carved %dx%d maze with %d room(s)",
                     type(self).__name__, self.width, self.height, self.rooms_placed)
        return self.cells

    # ---------------------------------------------------------------
    # Rooms
    # ---------------------------------------------------------------

    def generate_rooms(self) -> int:
        """Place up to ``self.rooms`` rooms; give up after too many failures."""
        placed = 0
        tries = 0
        while tries < MAX_ROOM_TRIES and placed < self.rooms:
            if self.place_room():
                placed += 1
            else:
                tries += 1
        if placed < self.rooms:
            logger.debug("Placed %d of %d rooms", placed, self.rooms)
        return placed

    def place_room(self) -> bool:
        """Try one random room.  Returns False if it does not fit."""
        rw = self.rng.randint(MIN_ROOM_DIMENSION, MAX_ROOM_DIMENSION)
        if rw >= self.width - 3:
            return False
        rh = self.rng.randint(MIN_ROOM_DIMENSION, MAX_ROOM_DIMENSION)
        if rh >= self.height - 3:
            return False
        rx = self.rng.randint(1, self.width - rw - 1)
        ry = self.rng.randint(1, self.height - rh - 1)
        rxl = rx + rw - 1
        ryl = ry + rh - 1
        if self.cells.area_overlaps_with_room(rx, ry, rxl, ryl):
            return False
        self.cells.mark_area_as_room(rw, rh, rx, ry, rxl, ryl, rng=self.rng)
        return True

    # ---------------------------------------------------------------
    # Carving
    # ---------------------------------------------------------------

    def random_cell(self) -> Tuple[int, int]:
        return self.rng.randint(0, self.width - 1), self.rng.randint(0, self.height - 1)

    def generate_pathways(self) -> None:
        cells = self.cells
        x, y = self.random_cell()
        cells.set_cell_as_visited(x, y)
        stack: List[Tuple[int, int]] = [(x, y)]
        while stack:
            x, y = stack[-1]
            options = [d for d in SCAN_DIRECTIONS if cells.can_go(x, y, d)]
            if not options:
                stack.pop()
                continue
            d = self.rng.choice(options)
            cells.delete_wall(x, y, d)
            nx, ny = x + d.dx, y + d.dy
            cells.set_cell_as_visited(nx, ny)
            stack.append((nx, ny))


def create_builder(builder_type: BuilderType, width: int, height: int, rooms: int = 0,
                   rng: Optional[random.Random] = None, **kwargs) -> MazeBuilder:
    """Instantiate the builder for ``builder_type``.

    Extra keyword arguments go to the builder constructor
    (e.g. ``use_union_find`` for Kruskal).
    """
    from .prim import PrimMazeBuilder
    from .kruskal import KruskalMazeBuilder

    registry = {
        BuilderType.DFS: MazeBuilder,
        BuilderType.PRIM: PrimMazeBuilder,
        BuilderType.KRUSKAL: KruskalMazeBuilder,
    }
    try:
        cls = registry[builder_type]
    except KeyError:
        raise ValueError(f"Unknown builder type: {builder_type!r}") from None
    return cls(width, height, rooms=rooms, rng=rng, **kwargs)
