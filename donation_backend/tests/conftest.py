import os
from datetime import datetime, timedelta, timezone

import pytest

# Default to memory session storage and no artificial latency for tests
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("SIMULATED_LATENCY_SECONDS", "0")

START = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class TickingClock:
    """Deterministic clock that moves forward by `step` on every reading."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value

    def peek(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()
