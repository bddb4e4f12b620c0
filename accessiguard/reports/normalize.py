"""Scan response normalizer.

Functions:
    normalize(payload, requested_url, base_url)  -> NormalizedReport

The scan service has shipped several response shapes over time (flat
``violations`` lists, ``issues``/``results`` aliases, summary-only v2 payloads
with ``scanId`` + ``issueCount``).  Each logical field is resolved from an
ordered tuple of extractors; the first one that yields a usable value wins and
anything unusable falls back to a safe default.  Nothing in here raises on
payload content.
"""

import math
from typing import Any, Callable, Optional
from urllib.parse import quote, urljoin, urlsplit

from accessiguard.models import (
    DEFAULT_SEVERITY,
    SEVERITIES,
    UNKNOWN_TITLE,
    NormalizedReport,
    Violation,
    empty_counts,
)

DEFAULT_BASE_URL = "https://www.accessiguard.app"

TOP_ISSUES_LIMIT = 3

_VIOLATION_LIST_FIELDS = ("violations", "issues", "results")
_SEVERITY_FIELDS       = ("impact", "severity", "level")
_TITLE_FIELDS          = ("description", "help", "message", "rule")
_REPORT_URL_FIELDS     = ("reportUrl", "report_url", "report")

# Characters encodeURIComponent leaves alone on top of quote()'s defaults
_URI_COMPONENT_SAFE = "!~*'()"


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def to_number(value: Any) -> Optional[float]:
    """Return *value* as a finite float, or None if it is not numeric.

    Accepts ints, floats and numeric strings.  Booleans are rejected even
    though they are ints in Python, as are integers too large for a float
    and strings using ``_`` digit separators.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        if "_" in value:
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (42.5 -> 43)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: Any) -> int:
    """Clamp a score to [0, 100] and round it. Non-numeric input gives 0."""
    number = to_number(value)
    if number is None or number < 0:
        return 0
    if number > 100:
        return 100
    return round_half_up(number)


def _non_negative(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None or number < 0:
        return None
    return round_half_up(number)


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------

def _first(
    extractors: tuple[Callable[[dict], Any], ...],
    data: dict,
    parse: Callable[[Any], Any],
) -> Any:
    """Run *extractors* in order and return the first value *parse* accepts."""
    for extract in extractors:
        value = parse(extract(data))
        if value is not None:
            return value
    return None


def _field(name: str) -> Callable[[dict], Any]:
    return lambda data: data.get(name)


def _nested_score(data: dict) -> Any:
    result = data.get("result")
    return result.get("score") if isinstance(result, dict) else None


_SCORE_EXTRACTORS      = (_field("score"), _nested_score, _field("percentage"))
_REPORT_URL_EXTRACTORS = tuple(_field(name) for name in _REPORT_URL_FIELDS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize(
    payload: Any,
    requested_url: str,
    base_url: str = DEFAULT_BASE_URL,
) -> NormalizedReport:
    """Derive a complete NormalizedReport from a raw scan response."""
    data = payload if isinstance(payload, dict) else {}
    base_url = base_url.rstrip("/")

    violations = tuple(_build_violation(item) for item in _resolve_violation_list(data))
    counts = _resolve_counts(violations, data)

    return NormalizedReport(
        score=_resolve_score(data),
        violations=violations,
        severity_counts=counts,
        total_issues=_resolve_total(violations, counts, data),
        top_issues=pick_top_issues(violations),
        report_url=resolve_report_url(data, requested_url, base_url),
        more_issues=_non_negative(data.get("moreIssues")) or 0,
    )


def pick_top_issues(
    violations: tuple[Violation, ...],
    limit: int = TOP_ISSUES_LIMIT,
) -> tuple[Violation, ...]:
    """Return the *limit* violations with the most instances.

    ``sorted`` is stable, so ties keep their payload order.
    """
    ranked = sorted(violations, key=lambda v: v.instance_count, reverse=True)
    return tuple(ranked[:limit])


def resolve_report_url(data: dict, requested_url: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """Return an absolute URL for the full web report.

    Priority: ``scanId`` (v2), then an explicit report URL field, then a
    search URL built from the scanned address.
    """
    base_url = base_url.rstrip("/")

    scan_id = data.get("scanId")
    if scan_id:
        return f"{base_url}/scan/{quote(str(scan_id), safe='')}"

    explicit = _first(_REPORT_URL_EXTRACTORS, data, lambda value: value or None)
    if isinstance(explicit, str) and explicit.strip():
        explicit = explicit.strip()
        if explicit.startswith("/"):
            return f"{base_url}{explicit}"
        parts = urlsplit(explicit)
        if parts.scheme in ("http", "https") and parts.netloc:
            return explicit
        return urljoin(f"{base_url}/", explicit)

    return f"{base_url}/scan?url={quote(requested_url, safe=_URI_COMPONENT_SAFE)}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _resolve_score(data: dict) -> int:
    return clamp_score(_first(_SCORE_EXTRACTORS, data, to_number))


def _resolve_violation_list(data: dict) -> list:
    for name in _VIOLATION_LIST_FIELDS:
        value = data.get(name)
        if isinstance(value, list):
            return value
    return []


def _classify_severity(item: dict) -> str:
    raw = next((item[f] for f in _SEVERITY_FIELDS if item.get(f)), "")
    severity = raw.strip().lower() if isinstance(raw, str) else ""
    return severity if severity in SEVERITIES else DEFAULT_SEVERITY


def _resolve_title(item: dict) -> str:
    for name in _TITLE_FIELDS:
        value = item.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return UNKNOWN_TITLE


def _resolve_instance_count(item: dict) -> int:
    count = to_number(item.get("count"))
    if count is not None:
        return max(1, round_half_up(count))
    nodes = item.get("nodes")
    if isinstance(nodes, list):
        return max(1, len(nodes))
    return 1


def _build_violation(raw: Any) -> Violation:
    # Non-object entries still represent an issue; they count as untitled minors
    item = raw if isinstance(raw, dict) else {}
    return Violation(
        severity=_classify_severity(item),
        title=_resolve_title(item),
        instance_count=_resolve_instance_count(item),
    )


def _resolve_counts(violations: tuple[Violation, ...], data: dict) -> dict[str, int]:
    """Per-severity instance counts.

    Derived from the violations when there are any; otherwise taken from the
    payload's ``counts`` object.  The two sources are never merged.
    """
    counts = empty_counts()

    if violations:
        for violation in violations:
            counts[violation.severity] += violation.instance_count
        return counts

    fallback = data.get("counts")
    if isinstance(fallback, dict):
        for severity in SEVERITIES:
            counts[severity] = _non_negative(fallback.get(severity)) or 0
    return counts


def _resolve_total(violations: tuple[Violation, ...], counts: dict[str, int], data: dict) -> int:
    if not violations:
        # Summary-only responses report a count without itemized violations
        explicit = _non_negative(data.get("issueCount"))
        if explicit is not None:
            return explicit
    return sum(counts.values())
