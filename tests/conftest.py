"""Shared fixtures for registry tests."""

from __future__ import annotations

import pytest

from deadservers import DeadServerRegistry


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 100) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> DeadServerRegistry:
    return DeadServerRegistry(clock=clock)

