from __future__ import annotations


class TabularReviewError(Exception):
    """Base exception for this project."""


class ConfigError(TabularReviewError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class MediumError(TabularReviewError):
    """Raised by a key-value medium when a read or write cannot be served."""

    def __init__(self, error_type: str, message: str, *, key: str | None = None):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.key = key


class MediumQuotaExceededError(MediumError):
    def __init__(self, *, key: str, quota_bytes: int):
        super().__init__(
            "quota_exceeded",
            f"Writing {key!r} would exceed the medium quota of {quota_bytes} bytes",
            key=key,
        )
        self.quota_bytes = quota_bytes
