"""
BSP tree nodes.

The tree is stored as an arena: ``BSPTree.nodes`` is a flat list and
branches refer to their children by index.  The root is node 0 and every
child has a larger index than its parent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from .segments import Segment


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in map units (inclusive bounds)."""
    xmin: int
    ymin: int
    xmax: int
    ymax: int

    @classmethod
    def from_segments(cls, segments: List[Segment]) -> 'BoundingBox':
        if not segments:
            return cls(0, 0, 0, 0)
        xs = [s.x for s in segments] + [s.end_x for s in segments]
        ys = [s.y for s in segments] + [s.end_y for s in segments]
        return cls(min(xs), min(ys), max(xs), max(ys))

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        return BoundingBox(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def contains(self, other: 'BoundingBox') -> bool:
        return (self.xmin <= other.xmin and self.ymin <= other.ymin
                and self.xmax >= other.xmax and self.ymax >= other.ymax)


@dataclass
class BSPLeaf:
    """Terminal node holding a list of segments."""
    segments: List[Segment]
    bounds: BoundingBox = field(init=False)

    def __post_init__(self):
        self.bounds = BoundingBox.from_segments(self.segments)

    @property
    def is_leaf(self) -> bool:
        return True


@dataclass
class BSPBranch:
    """Internal node split along the line through (x, y) with direction (dx, dy)."""
    x: int
    y: int
    dx: int
    dy: int
    left: int
    right: int
    bounds: Optional[BoundingBox] = None

    @property
    def is_leaf(self) -> bool:
        return False

    def side_of(self, px: int, py: int) -> int:
        """Sign test used by both construction and traversal (>= 0 is right)."""
        return (px - self.x) * self.dy - (py - self.y) * self.dx


BSPNode = Union[BSPBranch, BSPLeaf]


class BSPTree:
    """Arena of BSP nodes rooted at index 0."""

    ROOT = 0

    def __init__(self):
        self.nodes: List[Optional[BSPNode]] = []

    def reserve(self) -> int:
        """Allocate a slot to be filled later; returns its index."""
        self.nodes.append(None)
        return len(self.nodes) - 1

    def node(self, index: int) -> BSPNode:
        return self.nodes[index]

    @property
    def root(self) -> BSPNode:
        return self.nodes[self.ROOT]

    def __len__(self) -> int:
        return len(self.nodes)

    def compute_branch_bounds(self) -> None:
        """Fill branch bounds bottom-up from leaf bounds."""
        for node in reversed(self.nodes):
            if isinstance(node, BSPBranch):
                node.bounds = self.nodes[node.left].bounds.union(self.nodes[node.right].bounds)

    def iter_depth_first(self) -> Iterator[int]:
        """Node indices in pre-order, left before right."""
        if not self.nodes:
            return
        stack = [self.ROOT]
        while stack:
            index = stack.pop()
            yield index
            node = self.nodes[index]
            if isinstance(node, BSPBranch):
                stack.append(node.right)
                stack.append(node.left)

    def leaves(self) -> List[BSPLeaf]:
        return [self.nodes[i] for i in self.iter_depth_first() if self.nodes[i].is_leaf]

    def segments(self) -> List[Segment]:
        return [seg for leaf in self.leaves() for seg in leaf.segments]

    def depth(self) -> int:
        if not self.nodes:
            return 0
        best = 0
        stack = [(self.ROOT, 1)]
        while stack:
            index, d = stack.pop()
            best = max(best, d)
            node = self.nodes[index]
            if isinstance(node, BSPBranch):
                stack.append((node.left, d + 1))
                stack.append((node.right, d + 1))
        return best

    def dump(self) -> List[Dict[str, Any]]:
        """Depth-first records sufficient to rebuild the tree without regeneration."""
        records = []
        for index in self.iter_depth_first():
            node = self.nodes[index]
            b = node.bounds
            record: Dict[str, Any] = {
                'index': index,
                'is_leaf': node.is_leaf,
                'xl': b.xmin, 'yl': b.ymin, 'xu': b.xmax, 'yu': b.ymax,
            }
            if isinstance(node, BSPBranch):
                record.update(x=node.x, y=node.y, dx=node.dx, dy=node.dy,
                              left=node.left, right=node.right)
            else:
                record['segments'] = [seg.to_dict() for seg in node.segments]
            records.append(record)
        return records
