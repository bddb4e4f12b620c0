"""Data models for AccessiGuard scan reports.

Contains the frozen dataclasses produced by the normalizer:
    - Violation
    - NormalizedReport
"""

from dataclasses import dataclass, field
from typing import Mapping

#: Canonical severities, most severe first
SEVERITIES = ("critical", "serious", "moderate", "minor")
DEFAULT_SEVERITY = "minor"

UNKNOWN_TITLE = "Unknown issue"


def empty_counts() -> dict[str, int]:
    return {s: 0 for s in SEVERITIES}


@dataclass(frozen=True)
class Violation:
    severity: str
    title: str
    instance_count: int


@dataclass(frozen=True)
class NormalizedReport:
    """Canonical summary of one scan response, whatever its API version."""

    score: int
    report_url: str
    violations: tuple[Violation, ...] = ()
    severity_counts: Mapping[str, int] = field(default_factory=empty_counts)
    total_issues: int = 0
    top_issues: tuple[Violation, ...] = ()
    more_issues: int = 0

    @property
    def has_violations(self) -> bool:
        return len(self.violations) > 0

    def passed(self, threshold: float) -> bool:
        return self.score >= threshold
