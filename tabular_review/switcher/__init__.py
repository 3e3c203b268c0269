from __future__ import annotations

from tabular_review.switcher.controller import DELETE_CONFIRMATION, ActionResult, MenuState, ProjectSwitcher
from tabular_review.switcher.presentation import ProjectRow, build_rows, format_recency

__all__ = [
    "DELETE_CONFIRMATION",
    "ActionResult",
    "MenuState",
    "ProjectRow",
    "ProjectSwitcher",
    "build_rows",
    "format_recency",
]
