"""
Wall segments for the visibility tree.

A segment is a maximal axis-aligned run of wall along one side of a row or
column of cells, expressed in map units (``MAP_UNIT`` per cell).  Each
segment is directed: the wall's open side is on the right of its direction
of travel, which is what the BSP builder's sign tests rely on.

Extraction order is fixed: horizontal runs row by row (top walls, then
bottom walls), followed by vertical runs column by column (left walls, then
right walls).
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from ..maze.cells import CardinalDirection, CellGrid
from ..maze.distance import DistanceField

MAP_UNIT = 128

RGB = Tuple[int, int, int]

North = CardinalDirection.North
East = CardinalDirection.East
South = CardinalDirection.South
West = CardinalDirection.West


def segment_color(distance: int, colchange: int, horizontal: bool) -> RGB:
    """Color code a segment from its distance to the exit.

    Distance bands of 4 cycle through brightness; every 8 bands the hue
    switches among six channel combinations, shuffled by ``colchange``.
    """
    add = 1 if horizontal else 0
    d = distance // 4
    part1 = d & 7
    part2 = ((d >> 3) ^ colchange) % 6
    v = ((part1 + 2 + add) * 70) // 8 + 80
    return (
        (v, 20, 20),
        (20, v, 20),
        (20, 20, v),
        (v, v, 20),
        (20, v, v),
        (v, 20, v),
    )[part2]


@dataclass
class Segment:
    """Directed wall run from (x, y) to (x + dx, y + dy).

    Exactly one of dx, dy is non-zero.  ``partition`` marks segments that
    have been used as (or lie on) a partition line; ``seen`` is set by the
    renderer once any part of the segment was drawn.
    """
    x: int
    y: int
    dx: int
    dy: int
    dist: int
    colchange: int = 0
    partition: bool = False
    seen: bool = False
    color: RGB = field(init=False)

    def __post_init__(self):
        if (self.dx == 0) == (self.dy == 0):
            raise ValueError(
                f"Segment must extend along exactly one axis, got dx={self.dx}, dy={self.dy}")
        self.color = segment_color(self.dist, self.colchange, self.dx != 0)

    @property
    def end_x(self) -> int:
        return self.x + self.dx

    @property
    def end_y(self) -> int:
        return self.y + self.dy

    @property
    def length(self) -> int:
        return abs(self.dx) + abs(self.dy)

    @property
    def is_horizontal(self) -> bool:
        return self.dx != 0

    @property
    def direction(self) -> int:
        """Orientation code: 1 leftward, -1 rightward, 2 upward, -2 downward."""
        if self.dx != 0:
            return 1 if self.dx < 0 else -1
        return 2 if self.dy < 0 else -2

    def update_partition_if_border_case(self, width: int, height: int) -> None:
        """Flag segments lying on the outer boundary (width/height in map units)."""
        if ((self.x == 0 or self.x == width) and self.dx == 0) or \
                ((self.y == 0 or self.y == height) and self.dy == 0):
            self.partition = True

    def split_at(self, px: int, py: int) -> Tuple['Segment', 'Segment']:
        """Split at an interior point into two new segments."""
        first = Segment(self.x, self.y, px - self.x, py - self.y,
                        self.dist, self.colchange, partition=self.partition)
        second = Segment(px, py, self.end_x - px, self.end_y - py,
                         self.dist, self.colchange, partition=self.partition)
        return first, second

    def to_dict(self) -> Dict[str, object]:
        return {
            'x': self.x,
            'y': self.y,
            'dx': self.dx,
            'dy': self.dy,
            'dist': self.dist,
            'partition': self.partition,
            'seen': self.seen,
            'color': list(self.color),
        }


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _end_of_horizontal_run(cells: CellGrid, x: int, y: int, side: CardinalDirection) -> int:
    while cells.has_wall(x, y, side):
        x += 1
        if x == cells.width or cells.has_wall(x, y, West):
            break
    return x


def _end_of_vertical_run(cells: CellGrid, x: int, y: int, side: CardinalDirection) -> int:
    while cells.has_wall(x, y, side):
        y += 1
        if y == cells.height or cells.has_wall(x, y, North):
            break
    return y


def extract_segments(cells: CellGrid, distances: DistanceField, colchange: int = 0,
                     map_unit: int = MAP_UNIT) -> List[Segment]:
    """Emit one segment per maximal wall run.

    Args:
        cells: Finished maze grid
        distances: Field rooted at the exit; each segment takes the distance
            of its run's first cell
        colchange: Per-maze color shuffle value
        map_unit: Map units per cell

    Returns:
        Segments in extraction order
    """
    u = map_unit
    segments: List[Segment] = []
    width, height = cells.width, cells.height

    for y in range(height):
        x = 0
        while x < width:
            if cells.has_no_wall(x, y, North):
                x += 1
                continue
            start_x = x
            x = _end_of_horizontal_run(cells, x, y, North)
            segments.append(Segment(x * u, y * u, (start_x - x) * u, 0,
                                    distances.get_distance(start_x, y), colchange))
        x = 0
        while x < width:
            if cells.has_no_wall(x, y, South):
                x += 1
                continue
            start_x = x
            x = _end_of_horizontal_run(cells, x, y, South)
            segments.append(Segment(start_x * u, (y + 1) * u, (x - start_x) * u, 0,
                                    distances.get_distance(start_x, y), colchange))

    for x in range(width):
        y = 0
        while y < height:
            if cells.has_no_wall(x, y, West):
                y += 1
                continue
            start_y = y
            y = _end_of_vertical_run(cells, x, y, West)
            segments.append(Segment(x * u, start_y * u, 0, (y - start_y) * u,
                                    distances.get_distance(x, start_y), colchange))
        y = 0
        while y < height:
            if cells.has_no_wall(x, y, East):
                y += 1
                continue
            start_y = y
            y = _end_of_vertical_run(cells, x, y, East)
            segments.append(Segment((x + 1) * u, y * u, 0, (start_y - y) * u,
                                    distances.get_distance(x, start_y), colchange))

    return segments


def walls_from_segments(segments: Iterable[Segment],
                        map_unit: int = MAP_UNIT) -> Set[Tuple[int, int, CardinalDirection]]:
    """Recover the set of (x, y, side) cell walls covered by ``segments``.

    Inverse of ``extract_segments``; also valid for segments split by the
    BSP builder since split points fall on cell boundaries.
    """
    u = map_unit
    walls = set()
    for seg in segments:
        if seg.dx < 0:
            row = seg.y // u
            for cx in range(seg.end_x // u, seg.x // u):
                walls.add((cx, row, North))
        elif seg.dx > 0:
            row = seg.y // u - 1
            for cx in range(seg.x // u, seg.end_x // u):
                walls.add((cx, row, South))
        elif seg.dy > 0:
            col = seg.x // u
            for cy in range(seg.y // u, seg.end_y // u):
                walls.add((col, cy, West))
        else:
            col = seg.x // u - 1
            for cy in range(seg.end_y // u, seg.y // u):
                walls.add((col, cy, East))
    return walls
