"""Shared pytest fixtures for the taste timeline tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taste_timeline.store import InMemoryStore


NOW = datetime(2024, 11, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock():
    """Fixed wall-clock source for snapshot capture times."""
    return lambda: NOW
