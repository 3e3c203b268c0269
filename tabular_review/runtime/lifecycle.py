"""Command-line entrypoint (`tabular-review`).

A thin operator surface over `ProjectStore`: selection, creation and deletion
go through `ProjectSwitcher` exactly as a UI surface would.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Sequence

from tabular_review.config import AppSettings, StoreSettings, load_config, parse_settings, resolve_profile_configs
from tabular_review.errors import ConfigError
from tabular_review.observability.logging import configure_logging
from tabular_review.storage.medium import FileMedium, InMemoryMedium, KeyValueMedium
from tabular_review.storage.models import Project
from tabular_review.storage.project_store import ProjectStore
from tabular_review.switcher.controller import ActionResult, ProjectSwitcher


logger = logging.getLogger(__name__)

_COMMANDS = {"list", "show", "create", "update", "delete", "current", "print-config"}


def build_medium(settings: StoreSettings) -> KeyValueMedium:
    if settings.backend == "memory":
        return InMemoryMedium(quota_bytes=settings.quota_bytes)
    return FileMedium(Path(settings.path).expanduser())


def build_store(settings: StoreSettings) -> ProjectStore:
    return ProjectStore(
        build_medium(settings),
        collection_key=settings.collection_key,
        current_key=settings.current_key,
    )


def build_switcher(
    store: ProjectStore,
    settings: AppSettings,
    *,
    assume_yes: bool = False,
    on_created: Callable[[Project], None] | None = None,
    model: str | None = None,
) -> ProjectSwitcher:
    """Wire a switcher whose host callbacks operate directly on the store."""

    def on_select(project_id: str) -> Any:
        if store.get(project_id) is None:
            return ActionResult.failure("not_found", f"No project with id {project_id!r}")
        return store.set_current_id(project_id)

    def on_create(name: str) -> Any:
        created = store.create(name, model or settings.switcher.default_model)
        if created.ok and created.value is not None and on_created is not None:
            on_created(created.value)
        return created

    def on_delete(project_id: str) -> Any:
        return store.delete(project_id)

    def confirm(message: str) -> bool:
        if assume_yes:
            return True
        answer = input(f"{message} [y/N] ")
        return answer.strip().lower() in {"y", "yes"}

    return ProjectSwitcher(
        store,
        on_select=on_select,
        on_create=on_create,
        on_delete=on_delete,
        confirm=confirm,
        current_project_id=store.get_current_id(),
        settle_delay_s=settings.switcher.settle_delay_s,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabular-review",
        description="Manage tabular review projects",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (overrides config)")

    group = parser.add_mutually_exclusive_group()
    group.add_argument("--config", type=Path, help="Path to a YAML config file (skips profile resolution)")
    group.add_argument(
        "--profile",
        choices=["app", "dev"],
        default="app",
        help="Config profile under ./configs (app loads app.yaml; dev overlays dev.yaml)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("list", help="List projects, most recently updated first")

    show_p = sub.add_parser("show", help="Print one project record")
    show_p.add_argument("project_id")

    create_p = sub.add_parser("create", help="Create a project")
    create_p.add_argument("name")
    create_p.add_argument("--model", help="Model for the new project (defaults to switcher.default_model)")
    create_p.add_argument("--select", action="store_true", help="Make the new project current")

    update_p = sub.add_parser("update", help="Update fields of a project")
    update_p.add_argument("project_id")
    update_p.add_argument("--name")
    update_p.add_argument("--model", dest="selected_model")
    ctx = update_p.add_mutually_exclusive_group()
    ctx.add_argument("--context", dest="sheet_context", help="Shared instruction text for all columns")
    ctx.add_argument("--clear-context", action="store_true")

    delete_p = sub.add_parser("delete", help="Delete a project (irreversible)")
    delete_p.add_argument("project_id")
    delete_p.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    current_p = sub.add_parser("current", help="Show or change the current project")
    current_p.add_argument("project_id", nargs="?")
    current_p.add_argument("--clear", action="store_true")

    sub.add_parser("print-config", help="Load and print the expanded config")

    return parser


def _load_settings(ns: argparse.Namespace) -> tuple[dict[str, Any], AppSettings]:
    if ns.config is not None:
        config_paths = [ns.config]
    else:
        configs_dir = Path.cwd() / "configs"
        config_paths = resolve_profile_configs(profile=ns.profile, configs_dir=configs_dir)
        if ns.profile == "app" and not config_paths[0].exists():
            logger.info("config_defaults_used", extra={"missing": str(config_paths[0])})
            return {}, AppSettings()

    raw = load_config(config_paths)
    logger.info("config_loaded", extra={"config_files": [str(p) for p in config_paths]})
    return raw, parse_settings(raw)


def _print(obj: Any) -> None:
    sys.stdout.write(json.dumps(obj, ensure_ascii=False, indent=2))
    sys.stdout.write("\n")


def _report(result: Any) -> int:
    if result is None:
        sys.stderr.write("Not found\n")
        return 1
    if not result.ok:
        sys.stderr.write(f"Failed: {json.dumps(result.error, ensure_ascii=False)}\n")
        return 1
    return 0


def _run_command(ns: argparse.Namespace, raw: dict[str, Any], settings: AppSettings) -> int:
    if ns.command == "print-config":
        _print(raw)
        return 0

    store = build_store(settings.storage)

    if ns.command == "list":
        switcher = build_switcher(store, settings)
        _print([{**asdict(row), "summary": row.summary} for row in switcher.rows()])
        return 0

    if ns.command == "show":
        project = store.get(ns.project_id)
        if project is None:
            return _report(None)
        _print(project.to_record())
        return 0

    if ns.command == "create":
        created_projects: list[Project] = []
        switcher = build_switcher(store, settings, on_created=created_projects.append, model=ns.model)
        created = asyncio.run(switcher.create(ns.name))
        if created.ok and created_projects:
            _print(created_projects[0].to_record())
            if ns.select:
                return _report(asyncio.run(switcher.select(created_projects[0].id)))
        return _report(created)

    if ns.command == "update":
        fields: dict[str, Any] = {}
        if ns.name is not None:
            fields["name"] = ns.name
        if ns.selected_model is not None:
            fields["selected_model"] = ns.selected_model
        if ns.sheet_context is not None:
            fields["sheet_context"] = ns.sheet_context
        if ns.clear_context:
            fields["sheet_context"] = None
        if "name" in fields and not fields["name"].strip():
            sys.stderr.write("Project name must not be empty\n")
            return 1
        return _report(store.update(ns.project_id, fields))

    if ns.command == "delete":
        switcher = build_switcher(store, settings, assume_yes=ns.yes)
        return _report(asyncio.run(switcher.delete(ns.project_id)))

    if ns.command == "current":
        if ns.clear:
            return _report(store.clear_current_id())
        if ns.project_id:
            switcher = build_switcher(store, settings)
            return _report(asyncio.run(switcher.select(ns.project_id)))
        _print({"current_project_id": store.get_current_id()})
        return 0

    raise AssertionError(f"unhandled command: {ns.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint referenced by pyproject.toml."""

    argv_list = list(argv) if argv is not None else sys.argv[1:]
    if not any(token in _COMMANDS for token in argv_list) and not any(t in {"-h", "--help"} for t in argv_list):
        argv_list = [*argv_list, "list"]

    parser = _build_parser()
    try:
        ns = parser.parse_args(argv_list)
    except SystemExit as e:
        code = e.code
        return int(code) if isinstance(code, int) else 1

    configure_logging(level=ns.log_level or "WARNING")

    try:
        raw, settings = _load_settings(ns)
        if ns.log_level is None:
            configure_logging(level=settings.logging.level)
        return _run_command(ns, raw, settings)
    except ConfigError as e:
        logger.error("config_error", extra={"error": str(e)})
        sys.stderr.write(f"ConfigError: {e}\n")
        return 2
    except Exception as e:  # noqa: BLE001
        logger.exception("fatal_error")
        sys.stderr.write(f"Fatal error: {e}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
