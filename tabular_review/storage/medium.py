"""Key-value media the project store can sit on.

A medium stores string values under string keys and is synchronous: every
call completes (or raises `MediumError`) before returning.
"""

from __future__ import annotations

import contextlib
import os
import re
from pathlib import Path
from typing import Protocol

from tabular_review.errors import MediumError, MediumQuotaExceededError


class KeyValueMedium(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryMedium:
    """Process-local medium with an optional total-size quota (UTF-8 bytes)."""

    def __init__(self, *, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._items.items() if k != key)
            if used + len(value.encode("utf-8")) > self._quota_bytes:
                raise MediumQuotaExceededError(key=key, quota_bytes=self._quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


def _safe_key(key: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9_.-]", "_", (key or "").strip())
    if not cleaned or cleaned.startswith("."):
        raise MediumError("invalid_key", f"Key cannot be used as a file name: {key!r}", key=key)
    return cleaned


class FileMedium:
    """Directory-backed medium: one UTF-8 file per key, replaced atomically."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / _safe_key(key)

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise MediumError("read_failed", f"Failed to read {path}: {e}", key=key) from e

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise MediumError("write_failed", f"Failed to write {path}: {e}", key=key) from e

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise MediumError("write_failed", f"Failed to remove {path}: {e}", key=key) from e
