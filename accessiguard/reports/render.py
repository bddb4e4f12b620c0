"""Report rendering.

Functions:
    render(report, raw_payload, mode, requested_url, threshold)  -> RenderResult

Three output modes share one pass/fail decision (``score >= threshold``):

* ``pretty`` — multi-section terminal report, styled with ``click.style``.
* ``ci``     — one greppable ``PASS score=.. threshold=..`` line.
* ``raw``    — the untouched JSON payload, indented.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import click

from accessiguard.models import NormalizedReport, Violation

BAR_WIDTH = 24
BORDER = "━" * 40
REPORT_TITLE = "AccessiGuard Accessibility Report"

# (minimum score, label, colour) — first matching band wins
SCORE_BANDS = (
    (90, "Excellent",         "green"),
    (70, "Good",              "yellow"),
    (50, "Needs Improvement", "yellow"),
    (0,  "Poor",              "red"),
)

SEVERITY_COLORS = {
    "critical": "red",
    "serious":  "yellow",
    "moderate": "yellow",
    "minor":    "bright_black",
}


class OutputMode(str, Enum):
    PRETTY = "pretty"
    CI = "ci"
    RAW = "raw"


@dataclass(frozen=True)
class RenderResult:
    text: str
    passed: bool


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _band(score: int) -> tuple[int, str, str]:
    for band in SCORE_BANDS:
        if score >= band[0]:
            return band
    return SCORE_BANDS[-1]


def score_label(score: int) -> str:
    return _band(score)[1]


def score_color(score: int) -> str:
    return _band(score)[2]


def progress_bar(score: int, width: int = BAR_WIDTH) -> str:
    filled = min(width, max(0, int(score / 100 * width + 0.5)))
    return "█" * filled + "░" * (width - filled)


def format_number(value: float) -> str:
    """Render 70.0 as ``70`` and 72.5 as ``72.5``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def pluralize(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render(
    report: NormalizedReport,
    raw_payload: Any,
    mode: OutputMode,
    requested_url: str,
    threshold: float,
    *,
    color: bool = True,
) -> RenderResult:
    passed = report.passed(threshold)
    mode = OutputMode(mode)

    if mode is OutputMode.RAW:
        text = json.dumps(raw_payload, indent=2, ensure_ascii=False)
    elif mode is OutputMode.CI:
        text = render_ci(report.score, threshold)
    else:
        text = render_pretty(report, requested_url, color=color)

    return RenderResult(text=text, passed=passed)


def render_ci(score: int, threshold: float) -> str:
    state = "PASS" if score >= threshold else "FAIL"
    return f"{state} score={score} threshold={format_number(threshold)}"


def render_pretty(report: NormalizedReport, requested_url: str, *, color: bool = True) -> str:
    def style(text: str, **kwargs) -> str:
        return click.style(text, **kwargs) if color else text

    score = report.score
    tint = score_color(score)
    counts = report.severity_counts

    lines = [
        f"{style('Scanning', fg='cyan')} {requested_url}...",
        "",
        style(BORDER, fg="bright_black"),
        f"  {style(REPORT_TITLE, bold=True)}",
        style(BORDER, fg="bright_black"),
        "",
        "  Score: {} {} {}".format(
            style(f"{score}/100", fg=tint),
            style(progress_bar(score), fg=tint),
            style(score_label(score), fg=tint),
        ),
        "",
        f"  Issues Found: {report.total_issues}",
    ]

    # Summary-only responses have a total but nothing to break down
    if report.has_violations:
        lines += [
            f"  ├─ Critical: {style(str(counts['critical']), fg=SEVERITY_COLORS['critical'])}",
            f"  ├─ Serious: {style(str(counts['serious']), fg=SEVERITY_COLORS['serious'])}",
            f"  ├─ Moderate: {style(str(counts['moderate']), fg=SEVERITY_COLORS['moderate'])}",
            f"  └─ Minor: {style(str(counts['minor']), fg=SEVERITY_COLORS['minor'])}",
        ]

    lines.append("")

    if report.top_issues:
        lines.append("  Top Issues:")
        lines += [
            f"  {index}. {_issue_line(issue)}"
            for index, issue in enumerate(report.top_issues, start=1)
        ]
    else:
        lines.append("  See full report for issue details.")

    if report.more_issues > 0:
        more = report.more_issues
        lines += [
            "",
            style(
                f"  + {more} more {pluralize(more, 'issue')} - view full report "
                "for details + AI fix suggestions",
                fg="yellow",
            ),
        ]

    lines += [
        "",
        f"  Full report: {style(report.report_url, fg='cyan')}",
        style(BORDER, fg="bright_black"),
    ]
    return "\n".join(lines)


def _issue_line(issue: Violation) -> str:
    count = issue.instance_count
    return f"[{issue.severity}] {issue.title} ({count} {pluralize(count, 'instance')})"
