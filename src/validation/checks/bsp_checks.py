"""
BSP validation checks.

- Wall length per direction is conserved from segments to leaves (BSP-001)
- Branch bounding boxes contain their children (BSP-002)
"""

from collections import Counter
from typing import List, Sequence

from ...generators.bsp.bsp_nodes import BSPBranch, BSPTree
from ...generators.bsp.segments import Segment
from ..core import ValidationIssue, ValidationResult, ValidationStage
from ..rules import BSP_001, BSP_002
from .maze_checks import make_issue


def length_by_direction(segments: Sequence[Segment]) -> Counter:
    totals = Counter()
    for seg in segments:
        totals[seg.direction] += seg.length
    return totals


def check_length_conservation(segments: Sequence[Segment], tree: BSPTree) -> List[ValidationIssue]:
    before = length_by_direction(segments)
    after = length_by_direction(tree.segments())
    issues = []
    for direction in sorted(set(before) | set(after)):
        if before[direction] != after[direction]:
            issues.append(make_issue(BSP_001, None, direction=direction,
                                     leaf_len=after[direction], seg_len=before[direction]))
    return issues


def check_bounds_containment(tree: BSPTree) -> List[ValidationIssue]:
    issues = []
    for index, node in enumerate(tree.nodes):
        if not isinstance(node, BSPBranch):
            continue
        for child in (node.left, node.right):
            if not node.bounds.contains(tree.node(child).bounds):
                issues.append(make_issue(BSP_002, f"node {index}", index=index, child=child))
    return issues


def validate_partition(segments: Sequence[Segment], tree: BSPTree) -> ValidationResult:
    """Run all BSP checks against the segment list the tree was built from."""
    result = ValidationResult(stage=ValidationStage.PARTITION)
    result.extend(check_length_conservation(segments, tree))
    result.extend(check_bounds_containment(tree))
    return result
