"""Project switcher controller.

Sits between a UI surface and `ProjectStore`: keeps a cached project list and
the menu state, and runs the host's select/create/delete callbacks. The cache
is refreshed once a callback has signalled completion (by returning, or by
its awaitable resolving), so a refresh always observes the mutation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from tabular_review.core.clock import Clock, wall_ms
from tabular_review.storage.events import ProjectsChanged
from tabular_review.storage.models import Project
from tabular_review.storage.project_store import ProjectStore
from tabular_review.storage.results import StoreResult, normalize_error
from tabular_review.switcher.presentation import ProjectRow, build_rows


logger = logging.getLogger(__name__)

DELETE_CONFIRMATION = "Are you sure you want to delete this project? All data will be lost."

HostCallback = Callable[[str], Any]
Confirmer = Callable[[str], Any]


class MenuState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    CREATING = "creating"


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    error: dict[str, Any] | None = None

    @classmethod
    def failure(cls, error_type: str, message: str) -> ActionResult:
        return cls(ok=False, error=normalize_error(error_type=error_type, message=message))


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ProjectSwitcher:
    def __init__(
        self,
        store: ProjectStore,
        *,
        on_select: HostCallback,
        on_create: HostCallback,
        on_delete: HostCallback,
        confirm: Confirmer,
        current_project_id: str | None = None,
        settle_delay_s: float = 0.0,
        follow_store_changes: bool = False,
        clock: Clock = wall_ms,
    ) -> None:
        self._store = store
        self._on_select = on_select
        self._on_create = on_create
        self._on_delete = on_delete
        self._confirm = confirm
        self._settle_delay_s = settle_delay_s
        self._clock = clock

        self.current_project_id = current_project_id
        self.draft_name = ""
        self._state = MenuState.CLOSED
        self._projects: list[Project] = []
        self._unsubscribe: Callable[[], None] | None = None

        if follow_store_changes:
            self._unsubscribe = store.subscribe(self._on_store_changed)

        self.refresh()

    # ------------------------------------------------------------------
    # Cached view
    # ------------------------------------------------------------------

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def state(self) -> MenuState:
        return self._state

    def refresh(self) -> None:
        self._projects = self._store.list_all()
        logger.debug("switcher_refreshed", extra={"count": len(self._projects)})

    def rows(self, *, now_ms: int | None = None) -> list[ProjectRow]:
        now = self._clock() if now_ms is None else now_ms
        return build_rows(self._projects, current_id=self.current_project_id, now_ms=now)

    def close(self) -> None:
        """Stop following store change events."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_changed(self, event: ProjectsChanged) -> None:
        if event.kind == "current_changed":
            self.current_project_id = event.project_id
        self.refresh()

    # ------------------------------------------------------------------
    # Menu state machine
    # ------------------------------------------------------------------

    def toggle(self) -> None:
        if self._state is MenuState.CLOSED:
            self._state = MenuState.OPEN
            self.refresh()
        else:
            self.dismiss()

    def dismiss(self) -> None:
        """Outside interaction or explicit cancel: close and drop any draft."""

        self._state = MenuState.CLOSED
        self.draft_name = ""

    def start_creating(self) -> bool:
        if self._state is not MenuState.OPEN:
            return False
        self._state = MenuState.CREATING
        self.draft_name = ""
        return True

    def cancel_creating(self) -> None:
        if self._state is MenuState.CREATING:
            self._state = MenuState.OPEN
            self.draft_name = ""

    async def handle_key(self, key: str) -> ActionResult | None:
        if self._state is not MenuState.CREATING:
            return None
        if key == "Enter":
            return await self.create()
        if key == "Escape":
            self.cancel_creating()
        return None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def select(self, project_id: str) -> ActionResult:
        result = await self._run("select", self._on_select, project_id)
        if result.ok:
            self.current_project_id = project_id
            self.dismiss()
        await self._settle_and_refresh()
        return result

    async def create(self, name: str | None = None) -> ActionResult:
        trimmed = (self.draft_name if name is None else name).strip()
        if not trimmed:
            return ActionResult.failure("invalid_input", "Project name must not be empty")

        result = await self._run("create", self._on_create, trimmed)
        if result.ok:
            self.dismiss()
        await self._settle_and_refresh()
        return result

    async def delete(self, project_id: str) -> ActionResult:
        try:
            confirmed = bool(await _resolve(self._confirm(DELETE_CONFIRMATION)))
        except Exception as e:  # noqa: BLE001
            logger.exception("switcher_confirm_failed", extra={"project_id": project_id})
            return ActionResult.failure("callback_failed", str(e))

        if not confirmed:
            logger.info("switcher_delete_cancelled", extra={"project_id": project_id})
            return ActionResult.failure("cancelled", "Deletion was not confirmed")

        result = await self._run("delete", self._on_delete, project_id)
        if result.ok:
            if self.current_project_id == project_id:
                self.current_project_id = None
            self.dismiss()
        await self._settle_and_refresh()
        return result

    async def _run(self, action: str, callback: HostCallback, argument: str) -> ActionResult:
        try:
            outcome = await _resolve(callback(argument))
        except Exception as e:  # noqa: BLE001
            logger.exception("switcher_callback_failed", extra={"action": action, "argument": argument})
            return ActionResult.failure("callback_failed", str(e))

        if isinstance(outcome, (StoreResult, ActionResult)) and not outcome.ok:
            logger.warning("switcher_action_failed", extra={"action": action, "error": outcome.error})
            return ActionResult(ok=False, error=outcome.error)

        logger.info("switcher_action_done", extra={"action": action, "argument": argument})
        return ActionResult(ok=True)

    async def _settle_and_refresh(self) -> None:
        if self._settle_delay_s > 0:
            await asyncio.sleep(self._settle_delay_s)
        self.refresh()
