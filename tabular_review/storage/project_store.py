"""Durable project collection and current-project pointer.

All reads and writes of project state go through `ProjectStore`. The whole
collection lives under one key as a JSON array sorted by `updatedAt`
descending; the current-project id lives under a second key.

Medium failures never escape a store call: reads degrade to empty/absent and
writes are reported through `StoreResult`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from tabular_review.core.clock import Clock, wall_ms
from tabular_review.core.ids import new_project_id
from tabular_review.storage.events import ChangeKind, ChangeListener, ProjectsChanged
from tabular_review.storage.medium import KeyValueMedium
from tabular_review.storage.models import Project, ProjectUpdate
from tabular_review.storage.results import StoreResult


logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_KEY = "tabular_review_projects"
DEFAULT_CURRENT_KEY = "tabular_review_current_project"


def _cause(exc: Exception) -> str:
    return str(getattr(exc, "error_type", None) or type(exc).__name__)


class ProjectStore:
    def __init__(
        self,
        medium: KeyValueMedium,
        *,
        collection_key: str = DEFAULT_COLLECTION_KEY,
        current_key: str = DEFAULT_CURRENT_KEY,
        clock: Clock = wall_ms,
    ) -> None:
        self._medium = medium
        self._collection_key = collection_key
        self._current_key = current_key
        self._clock = clock
        self._last_stamp = 0
        self._listeners: list[ChangeListener] = []

    def _next_stamp(self, floor: int = 0) -> int:
        """Return a stamp strictly later than `floor` and any earlier stamp from this store."""

        stamp = max(self._clock(), self._last_stamp + 1, floor + 1)
        self._last_stamp = stamp
        return stamp

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener for `ProjectsChanged`; returns an unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: ChangeKind, project_id: str | None) -> None:
        event = ProjectsChanged(kind=kind, project_id=project_id)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("change_listener_failed", extra={"kind": kind, "project_id": project_id})

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def list_all(self) -> list[Project]:
        try:
            raw = self._medium.get_item(self._collection_key)
        except Exception as e:  # noqa: BLE001
            logger.error("collection_read_failed", extra={"key": self._collection_key, "error": str(e)})
            return []

        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error("collection_parse_failed", extra={"key": self._collection_key, "error": str(e)})
            return []

        if not isinstance(data, list):
            logger.error(
                "collection_parse_failed",
                extra={"key": self._collection_key, "error": f"expected a JSON array, got {type(data).__name__}"},
            )
            return []

        projects: list[Project] = []
        for index, record in enumerate(data):
            try:
                projects.append(Project.model_validate(record))
            except ValidationError as e:
                logger.warning("project_record_invalid", extra={"index": index, "error": str(e)})
        return projects

    def get(self, project_id: str) -> Project | None:
        for project in self.list_all():
            if project.id == project_id:
                return project
        return None

    def _write_collection(self, projects: list[Project]) -> StoreResult[None]:
        ordered = sorted(projects, key=lambda p: p.updated_at, reverse=True)
        try:
            payload = json.dumps([p.to_record() for p in ordered], ensure_ascii=False)
            self._medium.set_item(self._collection_key, payload)
        except Exception as e:  # noqa: BLE001
            logger.error(
                "collection_write_failed",
                extra={"key": self._collection_key, "count": len(ordered), "error": str(e)},
            )
            return StoreResult.failure(error_type="write_failed", message=str(e), cause=_cause(e))
        return StoreResult.success()

    def save(self, project: Project) -> StoreResult[Project]:
        """Upsert by id, then rewrite the whole collection sorted by recency."""

        # The upserted record goes first so equal stamps list the latest save on top.
        projects = [project, *(p for p in self.list_all() if p.id != project.id)]

        written = self._write_collection(projects)
        if not written.ok:
            return StoreResult(ok=False, value=project, error=written.error)

        logger.info("project_saved", extra={"project_id": project.id, "count": len(projects)})
        self._emit("saved", project.id)
        return StoreResult.success(project)

    def create(self, name: str, selected_model: str) -> StoreResult[Project]:
        """Persist a new empty project stamped later than every stored one."""

        newest = max((p.updated_at for p in self.list_all()), default=0)
        now = self._next_stamp(newest)
        project = Project(
            id=new_project_id(now),
            name=name,
            columns=[],
            documents=[],
            results={},
            selected_model=selected_model,
            created_at=now,
            updated_at=now,
        )
        return self.save(project)

    def update(
        self,
        project_id: str,
        changes: ProjectUpdate | Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> StoreResult[Project] | None:
        """Merge supplied fields over the stored project.

        Returns None, without writing, when no project has this id. Raises
        pydantic's ValidationError for fields that are unknown or not updatable.
        """

        supplied = changes.model_dump(exclude_unset=True) if isinstance(changes, ProjectUpdate) else dict(changes or {})
        request = ProjectUpdate.model_validate({**supplied, **fields})

        current = self.get(project_id)
        if current is None:
            logger.info("project_update_missing", extra={"project_id": project_id})
            return None

        stamp = self._next_stamp(current.updated_at)
        updated = current.model_copy(update={**request.changes(), "updated_at": stamp})
        return self.save(updated)

    def delete(self, project_id: str) -> StoreResult[None]:
        """Remove a project and clear the current pointer if it referenced it.

        Deleting an unknown id is a successful no-op on the collection.
        """

        projects = self.list_all()
        remaining = [p for p in projects if p.id != project_id]

        if len(remaining) != len(projects):
            written = self._write_collection(remaining)
            if not written.ok:
                return written
            logger.info("project_deleted", extra={"project_id": project_id, "count": len(remaining)})
            self._emit("deleted", project_id)

        if self.get_current_id() == project_id:
            cleared = self.clear_current_id()
            if not cleared.ok:
                return cleared

        return StoreResult.success()

    # ------------------------------------------------------------------
    # Current-project pointer
    # ------------------------------------------------------------------

    def get_current_id(self) -> str | None:
        try:
            value = self._medium.get_item(self._current_key)
        except Exception as e:  # noqa: BLE001
            logger.error("current_read_failed", extra={"key": self._current_key, "error": str(e)})
            return None
        return value or None

    def set_current_id(self, project_id: str) -> StoreResult[None]:
        try:
            self._medium.set_item(self._current_key, project_id)
        except Exception as e:  # noqa: BLE001
            logger.error("current_write_failed", extra={"key": self._current_key, "error": str(e)})
            return StoreResult.failure(error_type="write_failed", message=str(e), cause=_cause(e))
        self._emit("current_changed", project_id)
        return StoreResult.success()

    def clear_current_id(self) -> StoreResult[None]:
        try:
            self._medium.remove_item(self._current_key)
        except Exception as e:  # noqa: BLE001
            logger.error("current_write_failed", extra={"key": self._current_key, "error": str(e)})
            return StoreResult.failure(error_type="write_failed", message=str(e), cause=_cause(e))
        self._emit("current_changed", None)
        return StoreResult.success()
