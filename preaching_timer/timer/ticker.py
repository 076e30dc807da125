"""Once-per-second recomputation of the countdown.

``compute_tick`` derives what a tick should change purely from the state and
the current time; the timer applies the result. ``Ticker`` owns the asyncio
task that drives it.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Coroutine, Optional

from preaching_timer.models.state import TimerPhase, TimerState, TimerStatus

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Coroutine[Any, Any, None]]

_PHASE_RANK = {
    TimerPhase.INTRODUCTION: 0,
    TimerPhase.MAIN: 1,
    TimerPhase.CONCLUSION: 2,
    TimerPhase.FINISHED: 3,
}


class TickKind(str, Enum):
    COUNTDOWN = "countdown"
    PHASE_CHANGE = "phase_change"
    FINISH = "finish"
    OVERTIME = "overtime"
    OVERTIME_LIMIT = "overtime_limit"


@dataclass(frozen=True)
class TickOutcome:
    kind: TickKind
    elapsed_seconds: int
    time_remaining: int
    phase: TimerPhase


def elapsed_seconds(start_time: Optional[float], now: float) -> int:
    if start_time is None:
        return 0
    return math.floor(now - start_time)


def phase_for_elapsed(elapsed: int, introduction_duration: int, main_duration: int) -> TimerPhase:
    """Phase a session is in after *elapsed* seconds.

    The conclusion runs from the end of the main phase until the session ends.
    """
    if elapsed < introduction_duration:
        return TimerPhase.INTRODUCTION
    if elapsed < introduction_duration + main_duration:
        return TimerPhase.MAIN
    return TimerPhase.CONCLUSION


def phase_start_offset(phase: TimerPhase, introduction_duration: int, main_duration: int) -> int:
    if phase == TimerPhase.MAIN:
        return introduction_duration
    if phase == TimerPhase.CONCLUSION:
        return introduction_duration + main_duration
    return 0


def compute_tick(state: TimerState, now: float, overtime_limit: int) -> Optional[TickOutcome]:
    if state.start_time is None:
        return None

    elapsed = elapsed_seconds(state.start_time, now)
    remaining = state.total_duration - elapsed

    if state.status != TimerStatus.FINISHED:
        if remaining <= 0:
            return TickOutcome(
                TickKind.FINISH, elapsed, max(remaining, -overtime_limit), TimerPhase.FINISHED
            )
        phase = phase_for_elapsed(elapsed, state.introduction_duration, state.main_duration)
        # Boundaries move when the duration changes mid-session; phases only advance
        if _PHASE_RANK[phase] > _PHASE_RANK[state.current_phase]:
            return TickOutcome(TickKind.PHASE_CHANGE, elapsed, remaining, phase)
        return TickOutcome(TickKind.COUNTDOWN, elapsed, remaining, state.current_phase)

    if remaining <= -overtime_limit:
        return TickOutcome(TickKind.OVERTIME_LIMIT, elapsed, -overtime_limit, TimerPhase.FINISHED)
    return TickOutcome(TickKind.OVERTIME, elapsed, remaining, TimerPhase.FINISHED)


class Ticker:
    """Runs *tick* every *interval* seconds while *guard* holds.

    At most one task exists at a time. Listeners registered with
    :meth:`on_tick` are awaited after each tick.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        guard: Callable[[], bool],
        interval: float = 1.0,
    ) -> None:
        self._tick = tick
        self._guard = guard
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._tick_callbacks: list[TickCallback] = []

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_tick(self, callback: TickCallback) -> None:
        """Register a callback for timer ticks."""
        self._tick_callbacks.append(callback)

    def sync(self) -> None:
        """Start or cancel the task so that it runs exactly when the guard holds."""
        if self._guard():
            if not self.active:
                self._start()
        else:
            self.cancel()

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is _current_task():
            # Cancelled from inside its own tick; the loop exits on the guard.
            return
        task.cancel()

    def _start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, ticker not scheduled")
            return
        self._task = loop.create_task(self._run(), name="preaching-timer-ticker")

    async def _run(self) -> None:
        """Timer loop - ticks every interval until the guard fails."""
        try:
            while self._guard():
                await asyncio.sleep(self._interval)
                if not self._guard():
                    break

                self._tick()

                for cb in self._tick_callbacks:
                    try:
                        await cb()
                    except Exception:
                        logger.exception("Tick callback error")
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Ticker error")
        finally:
            if self._task is _current_task():
                self._task = None


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
