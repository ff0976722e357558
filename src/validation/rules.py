"""
Rule table for maze validation.

A rule pairs a stable code (MAZE-xxx for the grid and distance field, BSP-xxx
for segments and the partition tree) with its default severity, the
invariant it protects and message templates filled in by the checks.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .core import Severity


@dataclass(frozen=True)
class ValidationRule:
    """A maze invariant with its code and message templates.

    Templates use str.format placeholders supplied by the check that fires.
    """
    code: str
    severity: Severity
    rule_reference: str
    message_template: str
    remediation_template: Optional[str] = None
    description: Optional[str] = None

    def format_message(self, **kwargs) -> str:
        return self.message_template.format(**kwargs)

    def format_remediation(self, **kwargs) -> Optional[str]:
        template = self.remediation_template
        return template.format(**kwargs) if template else None


# =============================================================================
# MAZE RULES
# =============================================================================

MAZE_001 = ValidationRule(
    code="MAZE-001",
    severity=Severity.FAIL,
    rule_reference="Outer ring carries border bits facing outside",
    message_template="Cell ({x}, {y}) is missing its {side} border",
    remediation_template="Never clear outer border bits outside room door creation",
    description="The enclosure of the maze depends on border bits along the outer edge",
)

MAZE_002 = ValidationRule(
    code="MAZE-002",
    severity=Severity.FAIL,
    rule_reference="Walls between neighbors are symmetric",
    message_template="Wall {side} of ({x}, {y}) is {state} but its mirror on ({nx}, {ny}) is not",
    remediation_template="Use delete_wall/add_wall(internal=True) for internal walls",
    description="Removing a wall on one cell must remove the matching wall on its neighbor",
)

MAZE_003 = ValidationRule(
    code="MAZE-003",
    severity=Severity.FAIL,
    rule_reference="Every cell reaches the exit",
    message_template="{count} cell(s) unreachable from the exit, first at ({x}, {y})",
    remediation_template="Check the carving algorithm terminates with a spanning structure",
    description="A generated maze is fully connected",
)

MAZE_004 = ValidationRule(
    code="MAZE-004",
    severity=Severity.FAIL,
    rule_reference="Exactly one exit on the border",
    message_template="Found {count} exit cell(s), expected 1",
    remediation_template="Call set_exit_position once on the furthest border cell",
    description="The exit is the single border cell with an open outward wall",
)

MAZE_005 = ValidationRule(
    code="MAZE-005",
    severity=Severity.FAIL,
    rule_reference="Segments cover exactly the grid walls",
    message_template="{missing} wall(s) not covered by segments, {extra} covered wall(s) absent from grid",
    remediation_template="Check run termination in segment extraction",
    description="Extracted segments reproduce the grid's wall bits without gaps or overlaps",
)

MAZE_006 = ValidationRule(
    code="MAZE-006",
    severity=Severity.WARN,
    rule_reference="Start is maximally far from the exit",
    message_template="Start ({x}, {y}) at distance {dist} but maximum is {max_dist}",
    remediation_template="Place the start with find_furthest_overall",
    description="The start position has the maximum distance to the exit",
)

# =============================================================================
# BSP RULES
# =============================================================================

BSP_001 = ValidationRule(
    code="BSP-001",
    severity=Severity.FAIL,
    rule_reference="Leaves conserve wall length per direction",
    message_template="Direction {direction}: leaves hold {leaf_len} units, segments hold {seg_len}",
    remediation_template="Check segment splitting and routing",
    description="Splitting must neither lose nor duplicate wall length",
)

BSP_002 = ValidationRule(
    code="BSP-002",
    severity=Severity.FAIL,
    rule_reference="Branch bounds contain child bounds",
    message_template="Node {index} bounds do not contain child {child}",
    remediation_template="Recompute branch bounds after construction",
    description="Cached bounding boxes allow subtree culling only when they are conservative",
)


ALL_RULES: Dict[str, ValidationRule] = {
    rule.code: rule for rule in (
        MAZE_001, MAZE_002, MAZE_003, MAZE_004, MAZE_005, MAZE_006,
        BSP_001, BSP_002,
    )
}


def get_rule(code: str) -> ValidationRule:
    """Look up a rule by code."""
    return ALL_RULES[code]
