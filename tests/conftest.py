from __future__ import annotations

import pytest

from tabular_review.storage.medium import InMemoryMedium
from tabular_review.storage.project_store import ProjectStore


class FakeClock:
    """Epoch-ms clock that advances by `step_ms` on every read."""

    def __init__(self, start_ms: int = 1_700_000_000_000, step_ms: int = 5) -> None:
        self.now = start_ms
        self.step_ms = step_ms

    def __call__(self) -> int:
        self.now += self.step_ms
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def medium() -> InMemoryMedium:
    return InMemoryMedium()


@pytest.fixture
def store(medium: InMemoryMedium, clock: FakeClock) -> ProjectStore:
    return ProjectStore(medium, clock=clock)
