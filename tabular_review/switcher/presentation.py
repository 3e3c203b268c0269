from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from tabular_review.storage.models import Project


_MINUTE_MS = 60_000
_HOUR_MS = 60 * _MINUTE_MS
_DAY_MS = 24 * _HOUR_MS


def format_recency(timestamp_ms: int, now_ms: int) -> str:
    """Human label for how long ago `timestamp_ms` was."""

    diff = now_ms - timestamp_ms
    minutes = diff // _MINUTE_MS
    hours = diff // _HOUR_MS
    days = diff // _DAY_MS

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d")


@dataclass(frozen=True, slots=True)
class ProjectRow:
    id: str
    name: str
    recency: str
    column_count: int
    document_count: int
    is_current: bool

    @property
    def summary(self) -> str:
        return f"{self.recency} • {self.column_count} columns • {self.document_count} docs"


def build_rows(projects: Iterable[Project], *, current_id: str | None, now_ms: int) -> list[ProjectRow]:
    # Keeps the stored order (most recently updated first).
    return [
        ProjectRow(
            id=p.id,
            name=p.name,
            recency=format_recency(p.updated_at, now_ms),
            column_count=len(p.columns),
            document_count=len(p.documents),
            is_current=p.id == current_id,
        )
        for p in projects
    ]
