from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar


T = TypeVar("T")


def normalize_error(*, error_type: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "type": str(error_type),
        "message": str(message),
        "details": details or {},
    }


@dataclass(frozen=True, slots=True)
class StoreResult(Generic[T]):
    """Outcome of a mutating store call.

    `value` is populated even when the write failed, so callers can still see
    what was attempted (e.g. the freshly constructed project).
    """

    ok: bool
    value: T | None = None
    error: dict[str, Any] | None = None

    @classmethod
    def success(cls, value: T | None = None) -> StoreResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, *, error_type: str, message: str, value: T | None = None, **details: Any) -> StoreResult[T]:
        return cls(ok=False, value=value, error=normalize_error(error_type=error_type, message=message, details=details))
