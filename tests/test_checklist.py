import math

import pytest

from bundled_template import BUNDLED_TEMPLATE
from checklist import (
    SCORE_OPTIONS,
    auto_prioritize,
    coerce_check,
    coerce_row,
    filter_rows,
    implementation_rows,
    infer_severity,
    normalize_score,
    run_self_checks,
)


def _row(row_id: int, score: str = "", priority: str = "", **extra) -> dict:
    row = {
        "id": row_id,
        "inspectionElement": f"Element {row_id}",
        "issueCategory": "7- Other",
        "issueSubCategory": "",
        "skillset": "",
        "analysis": "",
        "recommendations": "",
        "implementer": "",
        "score": score,
        "priority": priority,
        "check": False,
    }
    row.update(extra)
    return row


@pytest.mark.parametrize(
    "value, expected",
    [
        ("15", "9"),
        ("0", "1"),
        ("-3", "1"),
        ("n/a", "N/A"),
        ("  N/a ", "N/A"),
        ("", ""),
        ("   ", ""),
        (None, ""),
        ("abc", ""),
        ("4.5", "5"),
        ("4.49", "4"),
        (" 7 ", "7"),
        (3, "3"),
        (8.6, "9"),
        ("inf", ""),
        ("nan", ""),
        (True, ""),
    ],
)
def test_normalize_score(value, expected) -> None:
    assert normalize_score(value) == expected


def test_normalize_score_is_total() -> None:
    allowed = {"", "N/A"} | {str(i) for i in range(1, 10)}
    weird = [object(), [], {}, b"5", float("-inf"), math.pi, -0.0, "1e3", "0x10", "٣", "N / A"]
    for value in weird:
        assert normalize_score(value) in allowed


def test_infer_severity() -> None:
    assert infer_severity("9") == 1
    assert infer_severity("1") == 9
    assert infer_severity("5") == 5
    assert infer_severity("") == 0
    assert infer_severity("N/A") == 0
    assert infer_severity(None) == 0


def test_filter_rows_by_category_and_query() -> None:
    rows = [
        _row(1, issueCategory="2- Page Speed", inspectionElement="LCP"),
        _row(2, issueCategory="2- page speed", analysis="Slow TTFB on checkout"),
        _row(3, issueCategory="4- Content", recommendations="Rewrite thin pages"),
    ]
    assert [r["id"] for r in filter_rows(rows)] == [1, 2, 3]
    assert [r["id"] for r in filter_rows(rows, category="2- PAGE SPEED")] == [1, 2]
    assert [r["id"] for r in filter_rows(rows, q="  ttfb ")] == [2]
    assert [r["id"] for r in filter_rows(rows, q="thin")] == [3]
    assert filter_rows(rows, q="thin", category="2- Page Speed") == []


def test_implementation_rows_excludes_only_target_score() -> None:
    rows = [_row(1, "9"), _row(2, "N/A"), _row(3, ""), _row(4, "3"), _row(5, "9")]
    ids = {r["id"] for r in implementation_rows(rows)}
    assert ids == {2, 3, 4}
    assert {r["id"] for r in implementation_rows(rows, include_na=False)} == {3, 4}


def test_implementation_rows_ordering() -> None:
    rows = [
        _row(1, "8"),
        _row(2, "2", priority="2"),
        _row(3, "5"),
        _row(4, "7", priority="1"),
        _row(5, "5", priority="abc"),
    ]
    ranked = implementation_rows(rows)
    # numeric priority first, then missing/garbage by descending severity, then dataset order
    assert [r["id"] for r in ranked] == [4, 2, 3, 5, 1]
    assert [r["severity"] for r in ranked] == [3, 8, 5, 5, 2]


def test_implementation_rows_does_not_mutate_input() -> None:
    rows = [_row(1, "4")]
    implementation_rows(rows)
    assert "severity" not in rows[0]


def test_auto_prioritize_ranks_by_severity() -> None:
    rows = [_row(1, "6"), _row(2, "9"), _row(3, "2"), _row(4, "6"), _row(5, "N/A")]
    result = auto_prioritize(rows)
    priorities = {r["id"]: r["priority"] for r in result}
    assert priorities[3] == "1"
    # ties keep their original order
    assert priorities[1] == "2"
    assert priorities[4] == "3"
    assert priorities[5] == "4"
    # target-score row is untouched
    assert priorities[2] == ""
    assert rows[0]["priority"] == ""


def test_coerce_row_fills_defaults_and_normalizes() -> None:
    row = coerce_row({"inspectionElement": "Canonicals", "score": "12", "check": 1, "priority": 3}, 7)
    assert row["id"] == 7
    assert row["score"] == "9"
    assert row["check"] is True
    assert row["priority"] == "3"
    assert row["analysis"] == ""


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        (None, False),
        ("true", True),
        ("TRUE", True),
        ("x", True),
        ("false", False),
        (" False ", False),
        ("0", False),
        ("", False),
    ],
)
def test_coerce_check(value, expected) -> None:
    assert coerce_check(value) is expected
    assert coerce_row({"check": value}, 1)["check"] is expected


def test_self_checks_pass_for_bundled_template() -> None:
    results = run_self_checks("bundled", BUNDLED_TEMPLATE)
    assert all(r["status"] == "pass" for r in results)
    assert results[-1] == {"name": "Source", "status": "pass", "msg": "bundled"}
    assert "" not in SCORE_OPTIONS


def test_self_checks_flag_small_template() -> None:
    results = run_self_checks("snapshot", [])
    failed = [r["name"] for r in results if r["status"] == "fail"]
    assert failed == ["Bundled size"]
