from __future__ import annotations

from tabular_review.storage.events import ProjectsChanged
from tabular_review.storage.medium import FileMedium, InMemoryMedium, KeyValueMedium
from tabular_review.storage.models import Project, ProjectUpdate
from tabular_review.storage.project_store import ProjectStore
from tabular_review.storage.results import StoreResult

__all__ = [
    "FileMedium",
    "InMemoryMedium",
    "KeyValueMedium",
    "Project",
    "ProjectStore",
    "ProjectUpdate",
    "ProjectsChanged",
    "StoreResult",
]
