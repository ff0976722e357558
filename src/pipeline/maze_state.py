"""
Published maze state.

``MazeConfiguration`` bundles everything a finished generation run produces:
the carved grid, the exit-rooted distance field, the wall segments and the
BSP tree.  It is assembled in one step once every pipeline stage succeeded
and is read-only afterwards, except for the seen-wall shadow grid and the
segments' ``seen`` flags written by the renderer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..conversion.seen_cells import SeenCells
from ..conversion.visibility import VisibilityWalker
from ..generators.bsp.bsp_nodes import BSPTree
from ..generators.bsp.segments import MAP_UNIT, Segment
from ..generators.maze.cells import CardinalDirection, CellGrid, SCAN_DIRECTIONS
from ..generators.maze.distance import DistanceField
from ..generators.maze.maze_builder import BuilderType


@dataclass
class MazeConfiguration:
    """A finished maze with its distance field and visibility tree.

    Attributes:
        width, height: Dimensions in cells
        cells: Carved grid with the exit opened
        distances: Distances to the exit (exit = 1)
        tree: BSP tree over the wall segments
        segments: Segments as extracted, before BSP splitting
        start: Starting position, furthest from the exit
        exit: Exit position on the border
        seed: Seed that reproduces this maze
        builder: Carving algorithm used
        colchange: Segment color shuffle value
        rooms_placed: Number of rooms actually carved
    """
    width: int
    height: int
    cells: CellGrid
    distances: DistanceField
    tree: BSPTree
    segments: List[Segment]
    start: Tuple[int, int]
    exit: Tuple[int, int]
    seed: int
    builder: BuilderType = BuilderType.DFS
    colchange: int = 0
    rooms_placed: int = 0
    map_unit: int = MAP_UNIT
    seen_cells: SeenCells = field(init=False, repr=False)

    def __post_init__(self):
        self.seen_cells = SeenCells(self.width, self.height, self.map_unit)

    # -- robot / driver queries --

    def is_valid_position(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def has_wall(self, x: int, y: int, direction: CardinalDirection) -> bool:
        return self.cells.has_wall(x, y, direction)

    def get_distance_to_exit(self, x: int, y: int) -> int:
        return self.distances.get_distance(x, y)

    @property
    def starting_position(self) -> Tuple[int, int]:
        return self.start

    @property
    def exit_position(self) -> Tuple[int, int]:
        return self.exit

    @property
    def max_distance(self) -> int:
        return self.distances.max_distance

    def is_exit_position(self, x: int, y: int) -> bool:
        return self.cells.is_exit_position(x, y)

    def get_neighbor_closer_to_exit(self, x: int, y: int) -> Optional[Tuple[int, int]]:
        """First open neighbor (East, South, West, North) strictly closer to the exit."""
        here = self.get_distance_to_exit(x, y)
        for d in SCAN_DIRECTIONS:
            nx, ny = x + d.dx, y + d.dy
            if not self.is_valid_position(nx, ny) or self.has_wall(x, y, d):
                continue
            if self.get_distance_to_exit(nx, ny) < here:
                return nx, ny
        return None

    # -- persistence accessors --

    def get_value_of_cell(self, x: int, y: int) -> int:
        return self.cells.get_value_of_cell(x, y)

    def dump(self) -> Dict[str, Any]:
        """Plain data sufficient to reconstruct the maze without regeneration."""
        return {
            'width': self.width,
            'height': self.height,
            'seed': self.seed,
            'builder': self.builder.value,
            'colchange': self.colchange,
            'start': list(self.start),
            'exit': list(self.exit),
            'max_distance': self.max_distance,
            'cells': self.cells.to_array().tolist(),
            'distances': self.distances.as_array().tolist(),
            'tree': self.tree.dump(),
        }

    # -- renderer --

    def visibility_walker(self, **kwargs) -> VisibilityWalker:
        """Walker over this maze's tree that records seen walls."""
        return VisibilityWalker(self.tree, seen_cells=self.seen_cells, **kwargs)
