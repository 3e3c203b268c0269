from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal


ChangeKind = Literal["saved", "deleted", "current_changed"]


@dataclass(frozen=True, slots=True)
class ProjectsChanged:
    """Emitted by the store after a mutation reached the medium."""

    kind: ChangeKind
    project_id: str | None


ChangeListener = Callable[[ProjectsChanged], None]
