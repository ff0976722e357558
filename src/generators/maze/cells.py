"""
Cell grid data model for maze generation.

A maze is a width x height matrix of cells.  Every cell records which of its
four walls are present, which of its four sides carry a border (a protective
marker that generators must never cross), whether it belongs to a room and
whether a carving algorithm has visited it yet.

Cells are plain dataclasses with flag fields.  The legacy single-integer
encoding (wall bits 0-3, visited bit 4, border bits 5-8, room bit 9) is kept
as an encode/decode pair for interchange with persisted mazes.

Coordinates follow screen convention: x grows to the East, y grows to the
South, (0, 0) is the top left cell.

Author: Maze BSP Toolkit
License: MIT
"""

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum, IntFlag
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)


# Legacy integer encoding
CW_TOP = 1
CW_BOT = 2
CW_LEFT = 4
CW_RIGHT = 8
CW_VISITED = 16  # set while the cell has NOT been visited
CW_ALL = CW_TOP | CW_BOT | CW_LEFT | CW_RIGHT
CW_BOUND_SHIFT = 5
CW_TOP_BOUND = CW_TOP << CW_BOUND_SHIFT
CW_BOT_BOUND = CW_BOT << CW_BOUND_SHIFT
CW_LEFT_BOUND = CW_LEFT << CW_BOUND_SHIFT
CW_RIGHT_BOUND = CW_RIGHT << CW_BOUND_SHIFT
CW_ALL_BOUNDS = CW_ALL << CW_BOUND_SHIFT
CW_IN_ROOM = 512


class CellOutOfBoundsError(IndexError):
    """Raised when a coordinate lies outside the grid."""


class Walls(IntFlag):
    """Set of cell sides.  Used for both wall and border sets."""
    NONE = 0
    TOP = CW_TOP
    BOTTOM = CW_BOT
    LEFT = CW_LEFT
    RIGHT = CW_RIGHT
    ALL = CW_ALL


class CardinalDirection(Enum):
    """Compass directions with their grid deltas."""
    North = (0, -1)
    East = (1, 0)
    South = (0, 1)
    West = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def wall(self) -> Walls:
        """The side of a cell that faces this direction."""
        return _WALL_FOR_DIRECTION[self]

    def opposite(self) -> 'CardinalDirection':
        return CardinalDirection.from_delta(-self.dx, -self.dy)

    def rotate_clockwise(self) -> 'CardinalDirection':
        return _CLOCKWISE[(_CLOCKWISE.index(self) + 1) % 4]

    def rotate_counter_clockwise(self) -> 'CardinalDirection':
        return _CLOCKWISE[(_CLOCKWISE.index(self) + 3) % 4]

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> 'CardinalDirection':
        """Map a unit delta such as (1, 0) to its direction."""
        try:
            return cls((dx, dy))
        except ValueError:
            raise ValueError(f"({dx}, {dy}) is not a unit direction") from None


_CLOCKWISE = (
    CardinalDirection.North,
    CardinalDirection.East,
    CardinalDirection.South,
    CardinalDirection.West,
)

_WALL_FOR_DIRECTION = {
    CardinalDirection.North: Walls.TOP,
    CardinalDirection.East: Walls.RIGHT,
    CardinalDirection.South: Walls.BOTTOM,
    CardinalDirection.West: Walls.LEFT,
}

# Order in which neighbors are inspected by the distance and exit queries
# (right, bottom, left, top).
SCAN_DIRECTIONS = (
    CardinalDirection.East,
    CardinalDirection.South,
    CardinalDirection.West,
    CardinalDirection.North,
)


@dataclass(frozen=True)
class Wall:
    """A wall identified by its cell and the side it sits on."""
    x: int
    y: int
    direction: CardinalDirection

    @property
    def neighbor_x(self) -> int:
        return self.x + self.direction.dx

    @property
    def neighbor_y(self) -> int:
        return self.y + self.direction.dy


@dataclass
class Cell:
    """State of a single grid position."""
    walls: Walls = Walls.NONE
    borders: Walls = Walls.NONE
    in_room: bool = False
    visited: bool = True

    def to_value(self) -> int:
        """Encode into the legacy integer layout."""
        value = int(self.walls) | (int(self.borders) << CW_BOUND_SHIFT)
        if not self.visited:
            value |= CW_VISITED
        if self.in_room:
            value |= CW_IN_ROOM
        return value

    @classmethod
    def from_value(cls, value: int) -> 'Cell':
        """Decode a legacy integer."""
        return cls(
            walls=Walls(value & CW_ALL),
            borders=Walls((value >> CW_BOUND_SHIFT) & CW_ALL),
            in_room=bool(value & CW_IN_ROOM),
            visited=not (value & CW_VISITED),
        )


class CellGrid:
    """Width x height matrix of cells with wall, border, room and visit state.

    Walls are kept symmetric: removing the wall between two neighbors clears
    it on both cells.  The only one-sided writes are ``add_wall`` with
    ``internal=False`` (seen-wall bookkeeping) and the exit opening.
    """

    def __init__(self, width: int, height: int, trace_deletions: bool = False):
        if width < 1 or height < 1:
            raise ValueError(f"Grid must be at least 1x1, got {width}x{height}")
        self.width = width
        self.height = height
        self._cells: List[List[Cell]] = [[Cell() for _ in range(height)] for _ in range(width)]
        self._trace: Optional[List[Tuple[int, int, int, int]]] = [] if trace_deletions else None

    # ---------------------------------------------------------------
    # Construction / interchange
    # ---------------------------------------------------------------

    @classmethod
    def from_array(cls, values) -> 'CellGrid':
        """Build a grid from a (width, height) array of legacy cell values."""
        arr = np.asarray(values, dtype=np.int64)
        if arr.ndim != 2 or arr.shape[0] < 1 or arr.shape[1] < 1:
            raise ValueError(f"Expected a non-empty 2D array, got shape {arr.shape}")
        grid = cls(arr.shape[0], arr.shape[1])
        for x in range(grid.width):
            for y in range(grid.height):
                grid._cells[x][y] = Cell.from_value(int(arr[x, y]))
        return grid

    def to_array(self) -> np.ndarray:
        """Export legacy cell values as a (width, height) int32 array."""
        arr = np.zeros((self.width, self.height), dtype=np.int32)
        for x in range(self.width):
            for y in range(self.height):
                arr[x, y] = self._cells[x][y].to_value()
        return arr

    def copy(self) -> 'CellGrid':
        grid = CellGrid(self.width, self.height)
        grid._cells = [[replace(c) for c in column] for column in self._cells]
        return grid

    def __eq__(self, other) -> bool:
        if not isinstance(other, CellGrid):
            return NotImplemented
        return (self.width == other.width and self.height == other.height
                and self._cells == other._cells)

    def __repr__(self) -> str:
        return f"CellGrid({self.width}x{self.height})"

    # ---------------------------------------------------------------
    # Access
    # ---------------------------------------------------------------

    def is_valid_position(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _cell(self, x: int, y: int) -> Cell:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise CellOutOfBoundsError(
                f"Position ({x}, {y}) outside {self.width}x{self.height} grid")
        return self._cells[x][y]

    def cell(self, x: int, y: int) -> Cell:
        """Return a copy of the cell at (x, y)."""
        return replace(self._cell(x, y))

    def get_value_of_cell(self, x: int, y: int) -> int:
        return self._cell(x, y).to_value()

    # ---------------------------------------------------------------
    # Initialization
    # ---------------------------------------------------------------

    def initialize(self) -> None:
        """Wall every cell, mark all unvisited and stamp the outer border."""
        for column in self._cells:
            for c in column:
                c.walls |= Walls.ALL
                c.visited = False
        for x in range(self.width):
            self._cells[x][0].borders |= Walls.TOP
            self._cells[x][self.height - 1].borders |= Walls.BOTTOM
        for y in range(self.height):
            self._cells[0][y].borders |= Walls.LEFT
            self._cells[self.width - 1][y].borders |= Walls.RIGHT

    # ---------------------------------------------------------------
    # Wall queries
    # ---------------------------------------------------------------

    def has_wall(self, x: int, y: int, direction: CardinalDirection) -> bool:
        return bool(self._cell(x, y).walls & direction.wall)

    def has_no_wall(self, x: int, y: int, direction: CardinalDirection) -> bool:
        return not self.has_wall(x, y, direction)

    def has_border(self, x: int, y: int, direction: CardinalDirection) -> bool:
        return bool(self._cell(x, y).borders & direction.wall)

    def is_first_visit(self, x: int, y: int) -> bool:
        return not self._cell(x, y).visited

    def set_cell_as_visited(self, x: int, y: int) -> None:
        self._cell(x, y).visited = True

    def can_go(self, x: int, y: int, direction: CardinalDirection) -> bool:
        """True if no border blocks ``direction`` and the neighbor is unvisited."""
        if self.has_border(x, y, direction):
            return False
        return self.is_first_visit(x + direction.dx, y + direction.dy)

    def can_break_wall(self, x: int, y: int, direction: CardinalDirection) -> bool:
        """True if no border blocks ``direction``, visited or not."""
        return not self.has_border(x, y, direction)

    # ---------------------------------------------------------------
    # Wall mutation
    # ---------------------------------------------------------------

    def delete_wall(self, x: int, y: int, direction: CardinalDirection) -> None:
        """Remove the wall between (x, y) and its neighbor on both sides."""
        cell = self._cell(x, y)
        neighbor = self._cell(x + direction.dx, y + direction.dy)
        cell.walls &= ~direction.wall
        neighbor.walls &= ~direction.opposite().wall
        if self._trace is not None:
            self._trace.append((x, y, direction.dx, direction.dy))

    def add_wall(self, x: int, y: int, direction: CardinalDirection, internal: bool = True) -> None:
        """Set a wall; ``internal`` also sets the neighbor's matching wall."""
        self._cell(x, y).walls |= direction.wall
        if internal:
            self._cell(x + direction.dx, y + direction.dy).walls |= direction.opposite().wall

    def _add_border_and_wall(self, x: int, y: int, direction: CardinalDirection) -> None:
        for cx, cy, d in ((x, y, direction),
                          (x + direction.dx, y + direction.dy, direction.opposite())):
            c = self._cell(cx, cy)
            c.walls |= d.wall
            c.borders |= d.wall

    def delete_border(self, x: int, y: int, direction: CardinalDirection) -> None:
        """Clear the border on both sides of an edge, leaving the wall."""
        self._cell(x, y).borders &= ~direction.wall
        self._cell(x + direction.dx, y + direction.dy).borders &= ~direction.opposite().wall

    # ---------------------------------------------------------------
    # Rooms
    # ---------------------------------------------------------------

    def is_in_room(self, x: int, y: int) -> bool:
        return self._cell(x, y).in_room

    def area_overlaps_with_room(self, rx: int, ry: int, rxl: int, ryl: int) -> bool:
        """Check the area grown by one cell against the grid edge and other rooms."""
        start_x, start_y = rx - 1, ry - 1
        stop_x, stop_y = rxl + 1, ryl + 1
        if start_x < 0 or start_y < 0 or stop_x >= self.width or stop_y >= self.height:
            return True
        for x in range(start_x, stop_x + 1):
            for y in range(start_y, stop_y + 1):
                if self._cells[x][y].in_room:
                    return True
        return False

    def mark_area_as_room(self, rw: int, rh: int, rx: int, ry: int, rxl: int, ryl: int,
                          rng: Optional[random.Random] = None) -> List[Wall]:
        """Carve a room of size rw x rh spanning (rx, ry)-(rxl, ryl).

        The interior is cleared and flagged as room, the perimeter is walled
        and bordered from both sides, then five randomly chosen perimeter
        edges lose their border so carving can open them as doors.

        Args:
            rw, rh: Room width and height in cells
            rx, ry: Top left cell
            rxl, ryl: Bottom right cell (inclusive)
            rng: Random source for door placement

        Returns:
            The door edges, one Wall per draw (duplicates possible)
        """
        rng = rng or random.Random()
        for x in range(rx, rxl + 1):
            for y in range(ry, ryl + 1):
                c = self._cell(x, y)
                c.walls = Walls.NONE
                c.borders = Walls.NONE
                c.in_room = True
        self._enclose_area(rx, ry, rxl, ryl)

        wallct = (rw + rh) * 2
        doors = []
        for _ in range(5):
            door = rng.randint(0, wallct - 1)
            if door < rw * 2:
                y = 0 if door < rw else rh - 1
                direction = CardinalDirection.North if door < rw else CardinalDirection.South
                x = door % rw
            else:
                door -= rw * 2
                x = 0 if door < rh else rw - 1
                direction = CardinalDirection.West if door < rh else CardinalDirection.East
                y = door % rh
            self.delete_border(x + rx, y + ry, direction)
            doors.append(Wall(x + rx, y + ry, direction))
        logger.debug("Room %dx%d at (%d, %d), doors: %s", rw, rh, rx, ry, doors)
        return doors

    def _enclose_area(self, rx: int, ry: int, rxl: int, ryl: int) -> None:
        for x in range(rx, rxl + 1):
            self._add_border_and_wall(x, ry, CardinalDirection.North)
            self._add_border_and_wall(x, ryl, CardinalDirection.South)
        for y in range(ry, ryl + 1):
            self._add_border_and_wall(rx, y, CardinalDirection.West)
            self._add_border_and_wall(rxl, y, CardinalDirection.East)

    # ---------------------------------------------------------------
    # Exit
    # ---------------------------------------------------------------

    def _outward_direction(self, x: int, y: int) -> Optional[CardinalDirection]:
        if x == 0:
            return CardinalDirection.West
        if x == self.width - 1:
            return CardinalDirection.East
        if y == 0:
            return CardinalDirection.North
        if y == self.height - 1:
            return CardinalDirection.South
        return None

    def set_exit_position(self, x: int, y: int) -> None:
        """Open the outward wall of a border cell."""
        cell = self._cell(x, y)
        direction = self._outward_direction(x, y)
        if direction is None:
            logger.warning("Cannot set exit at interior position (%d, %d)", x, y)
            return
        cell.walls &= ~direction.wall

    def is_exit_position(self, x: int, y: int) -> bool:
        """True if (x, y) is a border cell with an open outward wall.

        Corner cells qualify through either of their two outward sides.
        """
        cell = self._cell(x, y)
        outward = Walls.NONE
        if x == 0:
            outward |= Walls.LEFT
        if x == self.width - 1:
            outward |= Walls.RIGHT
        if y == 0:
            outward |= Walls.TOP
        if y == self.height - 1:
            outward |= Walls.BOTTOM
        corner = (x in (0, self.width - 1)) and (y in (0, self.height - 1))
        if not corner:
            # Side cells are tested on the first matching side only.
            direction = self._outward_direction(x, y)
            if direction is None:
                return False
            outward = direction.wall
        return any(not (cell.walls & side) for side in (Walls.TOP, Walls.BOTTOM, Walls.LEFT, Walls.RIGHT)
                   if outward & side)

    # ---------------------------------------------------------------
    # Diagnostics
    # ---------------------------------------------------------------

    @property
    def deletion_trace(self) -> List[Tuple[int, int, int, int]]:
        """Deleted walls as (x, y, dx, dy), empty when tracing is off."""
        return list(self._trace or [])

    def write_trace(self, path: Union[str, Path]) -> None:
        if self._trace is None:
            raise RuntimeError("Deletion tracing was not enabled for this grid")
        lines = ["x  y  dx  dy"] + [f"{x} {y} {dx} {dy}" for x, y, dx, dy in self._trace]
        Path(path).write_text("\n".join(lines) + "\n")
