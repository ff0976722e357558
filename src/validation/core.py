"""
Result types for maze and BSP validation.

Checks return ``ValidationIssue`` lists; ``ValidationResult`` gathers them for
one stage of the pipeline and decides whether the maze may be delivered.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional


class Severity(Enum):
    """How bad an issue is.  Only FAIL blocks delivery."""
    INFO = auto()
    WARN = auto()
    FAIL = auto()

    def __str__(self) -> str:
        return self.name


class ValidationStage(Enum):
    GENERATION = "generation"  # carved grid + distance field
    PARTITION = "partition"    # segments + BSP tree

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationIssue:
    """One broken (or suspicious) maze invariant.

    ``location`` is a cell such as "(3, 4)" or a node such as "node 12".
    """
    severity: Severity
    code: str
    message: str
    rule_reference: str
    remediation: Optional[str] = None
    location: Optional[str] = None

    def format(self) -> str:
        where = f" at {self.location}" if self.location else ""
        text = f"[{self.severity}] {self.code}{where}: {self.message}"
        if self.remediation:
            text += f" (hint: {self.remediation})"
        return text

    def __str__(self) -> str:
        return self.format()


@dataclass
class ValidationResult:
    """Issues found during one validation stage."""
    issues: List[ValidationIssue] = field(default_factory=list)
    stage: Optional[ValidationStage] = None

    def _with(self, severity: Severity) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is severity]

    @property
    def passed(self) -> bool:
        return not self._with(Severity.FAIL)

    @property
    def failed(self) -> bool:
        return not self.passed

    @property
    def warnings(self) -> List[ValidationIssue]:
        return self._with(Severity.WARN)

    @property
    def errors(self) -> List[ValidationIssue]:
        return self._with(Severity.FAIL)

    def add_issue(self, issue: ValidationIssue) -> None:
        self.issues.append(issue)

    def extend(self, issues: List[ValidationIssue]) -> 'ValidationResult':
        self.issues.extend(issues)
        return self

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        """Append ``other``'s issues; the stage of ``self`` is kept."""
        return self.extend(other.issues)

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]

    def counts(self) -> Dict[str, int]:
        """Issue count per severity name."""
        tally = Counter(i.severity.name for i in self.issues)
        return {s.name: tally[s.name] for s in Severity}

    def report(self) -> str:
        """Multi-line summary, FAIL issues first."""
        stage = f" [{self.stage}]" if self.stage else ""
        if not self.issues:
            return f"Maze validation{stage}: clean"
        verdict = "passed" if self.passed else "FAILED"
        lines = [f"Maze validation{stage} {verdict} with {len(self.issues)} issue(s)"]
        for severity in reversed(Severity):
            lines.extend(f"  {issue.format()}" for issue in self._with(severity))
        return "\n".join(lines)

    def to_dict(self) -> dict:
        counts = self.counts()
        issues = []
        for issue in self.issues:
            record = asdict(issue)
            record['severity'] = str(issue.severity)
            issues.append(record)
        return {
            'passed': self.passed,
            'stage': str(self.stage) if self.stage else None,
            'issue_count': len(self.issues),
            'fail_count': counts['FAIL'],
            'warn_count': counts['WARN'],
            'issues': issues,
        }


class ValidationError(Exception):
    """A validation stage produced FAIL issues; ``result`` holds them."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.report())
