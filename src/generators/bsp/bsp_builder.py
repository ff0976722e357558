"""
BSP builder for maze wall segments.

Recursively partitions a segment list: each internal node takes one
segment's line as its partition, splits straddling segments at the line and
routes everything else to the left or right child.  Candidate partitions are
graded by balance and split count on a sample of the list.

Construction runs on an explicit work stack so very large mazes do not hit
the interpreter recursion limit.  Work order matches the recursive
formulation (left subtree before right), so the progress counter advances
identically.

Author: Maze BSP Toolkit
License: MIT
"""

import logging
from typing import Callable, List, Optional, Tuple

from .bsp_nodes import BSPBranch, BSPLeaf, BSPTree
from .segments import MAP_UNIT, Segment

logger = logging.getLogger(__name__)

# Partition selection
MAX_PARTITION_TRIES = 50
INITIAL_BEST_GRADE = 5000
SPLIT_PENALTY = 3
PROGRESS_MASK = 31  # report every 32 candidates


class BSPBuildError(RuntimeError):
    """Raised when a segment cannot be assigned to either side of a partition."""


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


class BSPBuilder:
    """Builds a ``BSPTree`` from wall segments.

    Args:
        width, height: Maze dimensions in cells
        expected_partiters: Estimated number of partition candidates that
            will be graded; the basis for progress percentages
        progress_callback: Called with an integer percentage every 32
            candidates
        cancel_check: Called right after each progress report; expected to
            raise to abort the build
        map_unit: Map units per cell
    """

    def __init__(self, width: int, height: int, expected_partiters: int,
                 progress_callback: Optional[Callable[[int], None]] = None,
                 cancel_check: Optional[Callable[[], None]] = None,
                 map_unit: int = MAP_UNIT):
        self.width = width
        self.height = height
        self.expected_partiters = max(1, expected_partiters)
        self.progress_callback = progress_callback
        self.cancel_check = cancel_check
        self.map_unit = map_unit
        self.partiters = 0

    def build(self, segments: List[Segment]) -> BSPTree:
        """Partition ``segments`` into a tree.

        Boundary segments are flagged as partitions first so they are never
        chosen as partition lines.
        """
        for seg in segments:
            seg.update_partition_if_border_case(self.width * self.map_unit,
                                                self.height * self.map_unit)
        self.partiters = 0

        tree = BSPTree()
        work: List[Tuple[List[Segment], int]] = [(list(segments), tree.reserve())]
        while work:
            seglist, slot = work.pop()
            if all(s.partition for s in seglist):
                tree.nodes[slot] = BSPLeaf(seglist)
                continue

            pe = self._find_partition_candidate(seglist)
            pe.partition = True
            left, right = self._partition(seglist, pe)
            if not left:
                tree.nodes[slot] = BSPLeaf(right)
            elif not right:
                tree.nodes[slot] = BSPLeaf(left)
            else:
                li = tree.reserve()
                ri = tree.reserve()
                tree.nodes[slot] = BSPBranch(pe.x, pe.y, pe.dx, pe.dy, li, ri)
                work.append((right, ri))
                work.append((left, li))

        tree.compute_branch_bounds()
        logger.debug("BSP: %d nodes, %d leaves, %d candidates graded",
                     len(tree), len(tree.leaves()), self.partiters)
        return tree

    # ---------------------------------------------------------------
    # Partition selection
    # ---------------------------------------------------------------

    def _report_progress(self) -> None:
        if self.progress_callback is not None:
            self.progress_callback(self.partiters * 100 // self.expected_partiters)
        if self.cancel_check is not None:
            self.cancel_check()

    def _find_partition_candidate(self, seglist: List[Segment]) -> Segment:
        best = None
        best_grade = INITIAL_BEST_GRADE
        skip = max(1, len(seglist) // MAX_PARTITION_TRIES)
        for i in range(0, len(seglist), skip):
            pk = seglist[i]
            if pk.partition:
                continue
            self.partiters += 1
            if (self.partiters & PROGRESS_MASK) == 0:
                self._report_progress()
            grade = self.grade_partition(seglist, pk)
            if grade < best_grade:
                best_grade = grade
                best = pk
        if best is None:
            # sampling stride only hit flagged segments
            best = next(s for s in seglist if not s.partition)
        return best

    @staticmethod
    def _dots(pe: Segment, se: Segment) -> Tuple[int, int]:
        nx, ny = pe.dy, -pe.dx
        dot1 = (se.x - pe.x) * nx + (se.y - pe.y) * ny
        dot2 = (se.end_x - pe.x) * nx + (se.end_y - pe.y) * ny
        return dot1, dot2

    def grade_partition(self, seglist: List[Segment], pe: Segment) -> int:
        """Score ``pe`` as partition: |left - right| + 3 * splits, lower is better."""
        inc = len(seglist) // MAX_PARTITION_TRIES if len(seglist) >= 100 else 1
        lcount = rcount = splits = 0
        for i in range(0, len(seglist), inc):
            se = seglist[i]
            dot1, dot2 = self._dots(pe, se)
            if _sign(dot1) != _sign(dot2):
                if dot1 == 0:
                    dot1 = dot2
                elif dot2 != 0:
                    splits += 1
                    continue
            if dot1 > 0 or (dot1 == 0 and se.direction == pe.direction):
                rcount += 1
            elif dot1 < 0 or (dot1 == 0 and se.direction == -pe.direction):
                lcount += 1
            else:
                logger.debug("Unclassifiable segment while grading: dot1=%d dot2=%d", dot1, dot2)
        return abs(lcount - rcount) + SPLIT_PENALTY * splits

    # ---------------------------------------------------------------
    # Splitting
    # ---------------------------------------------------------------

    def _partition(self, seglist: List[Segment], pe: Segment) -> Tuple[List[Segment], List[Segment]]:
        left: List[Segment] = []
        right: List[Segment] = []
        for se in seglist:
            dot1, dot2 = self._dots(pe, se)
            if _sign(dot1) != _sign(dot2):
                if dot1 == 0:
                    dot1 = dot2
                elif dot2 != 0:
                    if pe.dx == 0:
                        first, second = se.split_at(pe.x, se.y)
                    else:
                        first, second = se.split_at(se.x, pe.y)
                    if dot1 > 0:
                        right.append(first)
                        left.append(second)
                    else:
                        right.append(second)
                        left.append(first)
                    continue
            if dot1 > 0 or (dot1 == 0 and se.direction == pe.direction):
                right.append(se)
                if dot1 == 0:
                    se.partition = True
            elif dot1 < 0 or (dot1 == 0 and se.direction == -pe.direction):
                left.append(se)
                if dot1 == 0:
                    se.partition = True
            else:
                raise BSPBuildError(
                    f"Segment ({se.x}, {se.y}, {se.dx}, {se.dy}) is colinear with partition "
                    f"({pe.x}, {pe.y}, {pe.dx}, {pe.dy}) but not parallel")
        return left, right
