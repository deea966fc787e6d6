"""
csv_export.py: Render checklist rows as CSV text.

Usage:
    from csv_export import build_csv
    text = build_csv(rows)
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from checklist import TARGET_SCORE

CSV_HEADERS = [
    "X/√", "INSPECTION ELEMENT", "PRIORITY", "ISSUE CATEGORY",
    "ISSUE SUB-CATEGORY", "SKILLSET", "SCORE", "TARGET SCORE",
    "ANALYSIS", "RECOMMENDATIONS", "IMPLEMENTER",
]

ANALYSIS_FILENAME = "Technical_SEO_Analysis_Updated.csv"
CHECKLIST_FILENAME = "Implementation_Checklist.csv"

_NEEDS_QUOTES = re.compile(r'[",\n]')


def csv_escape(value: Any) -> str:
    """Quote a field only when it holds a comma, a double quote or a newline."""
    s = "" if value is None else str(value)
    if _NEEDS_QUOTES.search(s):
        return '"' + s.replace('"', '""') + '"'
    return s


def _line(row: dict) -> str:
    fields = [
        "TRUE" if row.get("check") else "FALSE",
        row.get("inspectionElement"),
        row.get("priority") or "",
        row.get("issueCategory"),
        row.get("issueSubCategory"),
        row.get("skillset"),
        row.get("score") or "",
        TARGET_SCORE,
        row.get("analysis"),
        row.get("recommendations"),
        row.get("implementer") or "",
    ]
    return ",".join(csv_escape(f) for f in fields)


def build_csv(rows: Iterable[dict]) -> str:
    """Header plus one line per row, newline-joined, no trailing newline."""
    lines = [",".join(CSV_HEADERS)]
    lines.extend(_line(r) for r in rows)
    return "\n".join(lines)
