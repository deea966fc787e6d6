# =============================================================================
# Checklist Engine: score normalization, severity, derived views
# =============================================================================
#
# Pure Python, no I/O. Everything here works on plain row dicts shaped like
# the bundled template (camelCase keys) and never mutates its input.
#
# - normalize_score(): total mapping of any input onto "", "N/A", "1".."9"
# - infer_severity(): urgency weight, the inverse of the score
# - filter_rows(): the searchable analysis table
# - implementation_rows(): rows still below target, ranked for the checklist
# - auto_prioritize(): rewrite priorities from severity
# - run_self_checks(): runtime sanity checks shown on the diagnostics panel
# =============================================================================

import logging
import math
from typing import Any, Iterable, Optional

logger = logging.getLogger("seo-checklist")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TARGET_SCORE = "9"

# Include N/A rows in the implementation checklist; only target-score rows drop out
INCLUDE_NA_IN_IMPLEMENTATION = True

# No empty entry: an unset score is represented by "" but never offered as a choice
SCORE_OPTIONS = ["N/A", "1", "2", "3", "4", "5", "6", "7", "8", "9"]

IMPLEMENTER_OPTIONS = [
    "Developer",
    "Site Editor",
    "Client",
    "Client/Developer",
    "Propellic",
]

ISSUE_CATEGORY_OPTIONS = [
    "1- Accessibility",
    "2- Page Speed",
    "3- Mobile Condition",
    "4- Content",
    "5- Social",
    "6- Link Issues",
    "7- Other",
    "8- Local Search",
]

TEXT_FIELDS = (
    "inspectionElement",
    "issueCategory",
    "issueSubCategory",
    "skillset",
    "analysis",
    "recommendations",
    "implementer",
)

# Everything but "id" may be edited after load
EDITABLE_FIELDS = frozenset(TEXT_FIELDS + ("score", "priority", "check"))

MIN_BUNDLED_ROWS = 50


# ---------------------------------------------------------------------------
# Score & severity
# ---------------------------------------------------------------------------

def normalize_score(value: Any) -> str:
    """
    Map any user input onto the closed score set.

    None / blank / non-numeric -> "", "n/a" in any case -> "N/A",
    numbers are rounded half-up and clamped to 1..9.
    """
    if value is None or isinstance(value, bool):
        return ""
    s = str(value).strip()
    if s.upper() == "N/A":
        return "N/A"
    if not s:
        return ""
    try:
        n = float(s)
    except ValueError:
        return ""
    if not math.isfinite(n):
        return ""
    return str(min(9, max(1, math.floor(n + 0.5))))


def infer_severity(score: Any) -> int:
    """Severity = 10 - score (9 -> 1, 1 -> 9); unset and N/A carry no severity."""
    s = normalize_score(score)
    if s in ("", "N/A"):
        return 0
    return 10 - int(s)


def _priority_key(row: dict) -> float:
    raw = str(row.get("priority") or "").strip()
    try:
        p = float(raw)
    except ValueError:
        return math.inf
    return p if math.isfinite(p) else math.inf


# ---------------------------------------------------------------------------
# Row coercion
# ---------------------------------------------------------------------------

# Strings that mean "not done"; any other non-empty string counts as checked
FALSE_STRINGS = frozenset({"", "false", "0"})


def coerce_check(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def coerce_field(field: str, value: Any) -> Any:
    """Coerce a single field value to the type the row record expects."""
    if field == "score":
        return normalize_score(value)
    if field == "check":
        return coerce_check(value)
    return "" if value is None else str(value)


def coerce_row(raw: dict, fallback_id: int) -> dict:
    """Fill in missing keys and normalise types for a row read from storage."""
    row = {"id": fallback_id}
    if raw.get("id") is not None:
        try:
            row["id"] = int(raw["id"])
        except (TypeError, ValueError):
            logger.warning(f"Row with non-integer id {raw.get('id')!r} re-keyed to {fallback_id}")
    for field in TEXT_FIELDS:
        row[field] = coerce_field(field, raw.get(field))
    row["score"] = normalize_score(raw.get("score"))
    row["priority"] = coerce_field("priority", raw.get("priority"))
    row["check"] = coerce_check(raw.get("check", False))
    return row


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------

def filter_rows(rows: Iterable[dict], q: str = "", category: str = "all") -> list[dict]:
    """Category equality (case-insensitive) plus free-text search."""
    result = list(rows)
    if category and category != "all":
        wanted = category.lower()
        result = [r for r in result if (r.get("issueCategory") or "").lower() == wanted]
    needle = (q or "").strip().lower()
    if needle:
        result = [
            r for r in result
            if needle in (r.get("inspectionElement") or "").lower()
            or needle in (r.get("analysis") or "").lower()
            or needle in (r.get("recommendations") or "").lower()
        ]
    return result


def implementation_rows(
    rows: Iterable[dict],
    include_na: bool = INCLUDE_NA_IN_IMPLEMENTATION,
) -> list[dict]:
    """
    Rows that still need work, each with a computed "severity".

    Ordered by ascending numeric priority (blank or non-numeric last), then by
    descending severity. Python's sort is stable, so remaining ties keep
    dataset order.
    """
    selected = [
        {**r, "severity": infer_severity(r.get("score"))}
        for r in rows
        if r.get("score") != TARGET_SCORE and (include_na or r.get("score") != "N/A")
    ]
    selected.sort(key=lambda r: (_priority_key(r), -r["severity"]))
    return selected


def auto_prioritize(
    rows: Iterable[dict],
    include_na: bool = INCLUDE_NA_IN_IMPLEMENTATION,
) -> list[dict]:
    """
    Assign priorities 1..n to the implementation rows by descending severity.

    Ties keep their checklist order. Rows at target score keep whatever
    priority they had.
    """
    rows = list(rows)
    ranked = sorted(implementation_rows(rows, include_na), key=lambda r: -r["severity"])
    new_priority = {r["id"]: str(i) for i, r in enumerate(ranked, start=1)}
    return [
        {**r, "priority": new_priority[r["id"]]} if r["id"] in new_priority else dict(r)
        for r in rows
    ]


# ---------------------------------------------------------------------------
# Runtime self-checks
# ---------------------------------------------------------------------------

def run_self_checks(source: str, bundled: Optional[list] = None) -> list[dict]:
    """Sanity checks reported by GET /self-checks."""
    results: list[dict] = []

    def passed(name: str, msg: str = "") -> None:
        results.append({"name": name, "status": "pass", "msg": msg})

    def failed(name: str, msg: str) -> None:
        results.append({"name": name, "status": "fail", "msg": msg})

    if "" not in SCORE_OPTIONS:
        passed("No empty score option")
    else:
        failed("No empty score option", ",".join(SCORE_OPTIONS))

    if TARGET_SCORE == "9":
        passed("Target fixed to 9")
    else:
        failed("Target fixed to 9", TARGET_SCORE)

    count = len(bundled) if isinstance(bundled, list) else 0
    if count > MIN_BUNDLED_ROWS:
        passed("Bundled template loaded", f"rows={count}")
    else:
        failed("Bundled size", str(count))

    passed("Source", source)
    return results
