"""Shared fixtures: a controllable clock and recording collaborators."""

import pytest

from preaching_timer.storage.duration_store import MemoryDurationStore
from preaching_timer.timer.core import PreachingTimer


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class RecordingVisualAlert:
    def __init__(self) -> None:
        self.calls: list[tuple[int, float, int, str]] = []

    def trigger(self, duration_ms, intensity, repeat_count, color):
        self.calls.append((duration_ms, intensity, repeat_count, color))
        return self._flash()

    async def _flash(self) -> None:
        return None


class BrokenStore:
    def get(self):
        raise OSError("storage unavailable")

    def set(self, seconds):
        raise OSError("storage unavailable")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alert():
    return RecordingVisualAlert()


@pytest.fixture
def store():
    return MemoryDurationStore()


@pytest.fixture
def broken_store():
    return BrokenStore()


@pytest.fixture
def make_timer(clock, alert):
    """Factory for timers wired to the fake clock; closed after the test."""
    created: list[PreachingTimer] = []

    def factory(settings=None, events=None, **kwargs):
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("visual_alert", alert)
        timer = PreachingTimer(settings, events, **kwargs)
        created.append(timer)
        return timer

    yield factory
    for timer in created:
        timer.close()


@pytest.fixture
def timer(make_timer):
    return make_timer()


@pytest.fixture
def run_for(clock):
    """Advance the clock one second at a time, ticking like the real ticker."""

    def advance(timer: PreachingTimer, seconds: int) -> None:
        for _ in range(seconds):
            clock.advance(1)
            timer.tick()

    return advance
