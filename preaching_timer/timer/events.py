"""Lifecycle notifications delivered to the host's handlers."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from preaching_timer.models.state import TimerPhase
from preaching_timer.utils.background import spawn

logger = logging.getLogger(__name__)

# Handlers may be plain functions or coroutine functions
FinishHandler = Callable[[], Any]
PhaseChangeHandler = Callable[[TimerPhase], Any]
EmergencyHandler = Callable[[int], Any]


@dataclass
class TimerEvents:
    on_finish: Optional[FinishHandler] = None
    on_phase_change: Optional[PhaseChangeHandler] = None
    on_emergency: Optional[EmergencyHandler] = None


class EventNotifier:
    """Calls the handlers of a :class:`TimerEvents` bundle.

    A failing handler is logged and never reaches timer state. Awaitables
    returned by async handlers run in the background.
    """

    def __init__(self, events: TimerEvents | None = None) -> None:
        self._events = events or TimerEvents()

    def finished(self) -> None:
        self._dispatch("on_finish", self._events.on_finish)

    def phase_changed(self, phase: TimerPhase) -> None:
        self._dispatch("on_phase_change", self._events.on_phase_change, phase)

    def emergency(self, time_remaining: int) -> None:
        self._dispatch("on_emergency", self._events.on_emergency, time_remaining)

    def _dispatch(self, name: str, handler: Callable[..., Any] | None, *args: Any) -> None:
        if handler is None:
            return
        try:
            result = handler(*args)
        except Exception:
            logger.exception("Timer event handler %s failed", name)
            return
        if inspect.iscoroutine(result):
            spawn(result, name=f"timer-event-{name}")
        elif inspect.isawaitable(result):
            spawn(_await(result), name=f"timer-event-{name}")


async def _await(awaitable: Any) -> None:
    await awaitable
