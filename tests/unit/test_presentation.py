from __future__ import annotations

from datetime import datetime

import pytest

from tabular_review.storage.models import Project
from tabular_review.switcher.presentation import build_rows, format_recency


NOW = 1_760_000_000_000
MINUTE = 60_000
HOUR = 60 * MINUTE
DAY = 24 * HOUR


@pytest.mark.parametrize(
    ("ago_ms", "label"),
    [
        (0, "Just now"),
        (59_999, "Just now"),
        (MINUTE, "1m ago"),
        (59 * MINUTE, "59m ago"),
        (HOUR, "1h ago"),
        (23 * HOUR + 59 * MINUTE, "23h ago"),
        (DAY, "1d ago"),
        (6 * DAY, "6d ago"),
        (-5 * MINUTE, "Just now"),
    ],
)
def test_format_recency_labels(ago_ms: int, label: str) -> None:
    assert format_recency(NOW - ago_ms, NOW) == label


def test_format_recency_falls_back_to_calendar_date() -> None:
    ts = NOW - 8 * DAY
    assert format_recency(ts, NOW) == datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d")


def test_build_rows_keeps_order_and_counts() -> None:
    projects = [
        Project(
            id="b",
            name="Beta",
            columns=[{"name": "A"}, {"name": "B"}],
            documents=[{"id": "d1"}],
            selected_model="m",
            created_at=NOW - DAY,
            updated_at=NOW - 2 * MINUTE,
        ),
        Project(id="a", name="Alpha", selected_model="m", created_at=NOW - DAY, updated_at=NOW - 3 * HOUR),
    ]

    rows = build_rows(projects, current_id="a", now_ms=NOW)

    assert [r.id for r in rows] == ["b", "a"]
    assert rows[0].summary == "2m ago • 2 columns • 1 docs"
    assert rows[1].summary == "3h ago • 0 columns • 0 docs"
    assert [r.is_current for r in rows] == [False, True]
