from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from tabular_review.errors import ConfigError


_BACKENDS = {"memory", "file"}
_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class StoreSettings:
    backend: str = "file"
    path: str = ".tabular_review"
    collection_key: str = "tabular_review_projects"
    current_key: str = "tabular_review_current_project"
    # Only honored by the memory backend; None means unlimited.
    quota_bytes: int | None = None


@dataclass(frozen=True)
class SwitcherSettings:
    default_model: str = "gemini-2.5-flash"
    # Extra wait after a host callback signals completion, before refreshing.
    settle_delay_s: float = 0.0


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class AppSettings:
    storage: StoreSettings = field(default_factory=StoreSettings)
    switcher: SwitcherSettings = field(default_factory=SwitcherSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError("must be a mapping", path=name)
    return value


def _non_empty_str(d: Mapping[str, Any], key: str, default: str, *, path: str) -> str:
    value = d.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("must be a non-empty string", path=f"{path}.{key}")
    return value


def parse_settings(raw: Mapping[str, Any]) -> AppSettings:
    """Build the typed settings view from an expanded config dict."""

    storage_raw = _section(raw, "storage")
    backend = _non_empty_str(storage_raw, "backend", StoreSettings.backend, path="storage")
    if backend not in _BACKENDS:
        raise ConfigError(f"unsupported backend: {backend!r}", path="storage.backend")

    quota_raw = storage_raw.get("quota_bytes")
    quota_bytes: int | None = None
    if quota_raw is not None:
        try:
            quota_bytes = int(quota_raw)
        except (TypeError, ValueError) as e:
            raise ConfigError("must be an integer", path="storage.quota_bytes") from e
        if quota_bytes < 0:
            raise ConfigError("must be >= 0", path="storage.quota_bytes")

    storage = StoreSettings(
        backend=backend,
        path=_non_empty_str(storage_raw, "path", StoreSettings.path, path="storage"),
        collection_key=_non_empty_str(storage_raw, "collection_key", StoreSettings.collection_key, path="storage"),
        current_key=_non_empty_str(storage_raw, "current_key", StoreSettings.current_key, path="storage"),
        quota_bytes=quota_bytes,
    )
    if storage.collection_key == storage.current_key:
        raise ConfigError("collection_key and current_key must differ", path="storage")

    switcher_raw = _section(raw, "switcher")
    try:
        settle_delay_s = float(switcher_raw.get("settle_delay_s", SwitcherSettings.settle_delay_s))
    except (TypeError, ValueError) as e:
        raise ConfigError("must be a number", path="switcher.settle_delay_s") from e
    if settle_delay_s < 0:
        raise ConfigError("must be >= 0", path="switcher.settle_delay_s")

    switcher = SwitcherSettings(
        default_model=_non_empty_str(switcher_raw, "default_model", SwitcherSettings.default_model, path="switcher"),
        settle_delay_s=settle_delay_s,
    )

    logging_raw = _section(raw, "logging")
    level = _non_empty_str(logging_raw, "level", LoggingSettings.level, path="logging").upper()
    if level not in _LEVELS:
        raise ConfigError(f"unknown level: {level!r}", path="logging.level")

    return AppSettings(storage=storage, switcher=switcher, logging=LoggingSettings(level=level))
