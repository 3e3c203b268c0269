"""YAML config loading with strict ${ENV_VAR} expansion.

Files are deep-merged in order, later files winning. Every merged value keeps
the file it came from, so an unresolved variable is reported against the file
that actually mentions it.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml
from dotenv import load_dotenv

from tabular_review.errors import ConfigError


_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_PROFILES: dict[str, tuple[str, ...]] = {
    "app": ("app.yaml",),
    "dev": ("app.yaml", "dev.yaml"),
}

KeyPath = tuple[str | int, ...]


def _format_key_path(key_path: KeyPath) -> str:
    out = ""
    for part in key_path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else part
    return out or "<root>"


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True, slots=True)
class _Unresolved:
    name: str
    reason: str  # missing | empty
    key_path: KeyPath
    origin: Path | None

    def describe(self) -> str:
        return f"- {self.name} ({self.reason}) at {_format_key_path(self.key_path)} in {self.origin or '<unknown>'}"


def _read_fragment(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError("Config file not found", path=str(path))
    try:
        text = path.read_text(encoding="utf-8")
        data = yaml.safe_load(text) if text.strip() else None
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read YAML config: {e}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("Top-level YAML must be a mapping", path=str(path))
    return _plain(data)


class _Layers:
    """Deep-merged config plus the origin file of every merged subtree."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self._origins: dict[KeyPath, Path] = {}

    def overlay(self, fragment: Mapping[str, Any], origin: Path) -> None:
        self._merge(self.data, fragment, origin, ())

    def _merge(self, target: dict[str, Any], fragment: Mapping[str, Any], origin: Path, prefix: KeyPath) -> None:
        for key, value in fragment.items():
            key_path = (*prefix, key)
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                self._merge(target[key], value, origin, key_path)
                continue
            target[key] = value
            for stale in [p for p in self._origins if len(p) > len(key_path) and p[: len(key_path)] == key_path]:
                del self._origins[stale]
            self._origins[key_path] = origin

    def origin_of(self, key_path: KeyPath) -> Path | None:
        while key_path:
            if key_path in self._origins:
                return self._origins[key_path]
            key_path = key_path[:-1]
        return None


class _EnvExpander:
    def __init__(self, layers: _Layers, environ: Mapping[str, str]) -> None:
        self._layers = layers
        self._environ = environ
        self.unresolved: list[_Unresolved] = []

    def expand(self, value: Any, key_path: KeyPath = ()) -> Any:
        if isinstance(value, str):
            return _PLACEHOLDER.sub(lambda m: self._substitute(m, key_path), value)
        if isinstance(value, dict):
            return {k: self.expand(v, (*key_path, k)) for k, v in value.items()}
        if isinstance(value, list):
            return [self.expand(v, (*key_path, i)) for i, v in enumerate(value)]
        return value

    def _substitute(self, match: re.Match[str], key_path: KeyPath) -> str:
        name = match.group(1)
        value = self._environ.get(name)
        if value:
            return value
        self.unresolved.append(
            _Unresolved(
                name=name,
                reason="missing" if value is None else "empty",
                key_path=key_path,
                origin=self._layers.origin_of(key_path),
            )
        )
        return match.group(0)


def load_config(
    paths: Path | Sequence[Path],
    *,
    load_dotenv_file: bool = True,
    dotenv_path: Path | None = None,
) -> dict[str, Any]:
    """Load and merge YAML config files, then expand ${ENV_VAR} placeholders.

    A `.env` file (default: `./.env`) is loaded first unless
    `load_dotenv_file` is false; it never overrides variables already set.

    Raises:
        ConfigError: on a missing or invalid file, or when any placeholder
            names a variable that is unset or empty.
    """

    files: list[Path] = [paths] if isinstance(paths, Path) else list(paths)
    if not files:
        raise ConfigError("No config files provided")

    if load_dotenv_file:
        load_dotenv(dotenv_path or Path.cwd() / ".env", override=False)

    layers = _Layers()
    for path in files:
        layers.overlay(_read_fragment(path), path)

    expander = _EnvExpander(layers, os.environ)
    expanded = expander.expand(layers.data)
    if expander.unresolved:
        lines = ["Unresolved environment variables in config:", *(u.describe() for u in expander.unresolved)]
        raise ConfigError("\n".join(lines))
    return expanded


def resolve_profile_configs(*, profile: str, configs_dir: Path) -> list[Path]:
    """`app` loads app.yaml; `dev` overlays dev.yaml on top of it."""

    try:
        names = _PROFILES[profile]
    except KeyError:
        raise ConfigError(f"Unknown profile: {profile}", path="profile") from None
    return [configs_dir / name for name in names]
