"""Preaching timer state machine using the `transitions` library."""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from transitions import Machine

from preaching_timer.config import get_settings
from preaching_timer.models.messages import (
    ProgressPayload,
    TimerStatePayload,
    VisualStatePayload,
)
from preaching_timer.models.settings import TimerSettings
from preaching_timer.models.state import PHASE_COLORS, TimerPhase, TimerState, TimerStatus
from preaching_timer.timer import projections
from preaching_timer.timer.clock import Clock, MonotonicClock
from preaching_timer.timer.collaborators import DurationStore, VisualAlert
from preaching_timer.timer.config_resolver import SettingsInput, derive_phase_durations, resolve
from preaching_timer.timer.events import EventNotifier, TimerEvents
from preaching_timer.timer.ticker import (
    TickCallback,
    Ticker,
    TickKind,
    TickOutcome,
    compute_tick,
    elapsed_seconds,
    phase_for_elapsed,
)
from preaching_timer.utils.background import spawn

logger = logging.getLogger(__name__)

# Status transitions. The timer never raises on an invalid trigger; it is
# ignored and the operation becomes a no-op.
TRANSITIONS = [
    {"trigger": "begin", "source": [TimerStatus.IDLE, TimerStatus.RUNNING, TimerStatus.PAUSED], "dest": TimerStatus.RUNNING},
    {"trigger": "hold", "source": TimerStatus.RUNNING, "dest": TimerStatus.PAUSED},
    {"trigger": "release", "source": TimerStatus.PAUSED, "dest": TimerStatus.RUNNING},
    {"trigger": "halt", "source": [TimerStatus.RUNNING, TimerStatus.PAUSED, TimerStatus.FINISHED], "dest": TimerStatus.IDLE},
    {"trigger": "clear", "source": "*", "dest": TimerStatus.IDLE},
    {"trigger": "complete", "source": [TimerStatus.RUNNING, TimerStatus.PAUSED], "dest": TimerStatus.FINISHED},
]

# (duration_ms, intensity, repeat_count)
COMPLETION_ALERT = (500, 0.8, 3)
PHASE_ALERT = (200, 0.8, 3)


class PreachingTimer:
    """Countdown for one speaking session split into three phases.

    Elapsed time is always derived from ``start_time`` and the clock, so
    pausing, resuming and skipping never accumulate drift. Every control
    operation is synchronous, returns ``None`` and never raises.
    """

    def __init__(
        self,
        settings: SettingsInput = None,
        events: TimerEvents | None = None,
        *,
        clock: Clock | None = None,
        duration_store: DurationStore | None = None,
        visual_alert: VisualAlert | None = None,
        tick_interval: float | None = None,
    ) -> None:
        app_settings = get_settings()
        self._clock = clock or MonotonicClock()
        self._store = duration_store
        self._visual_alert = visual_alert
        self._notifier = EventNotifier(events)
        self._overtime_limit = app_settings.overtime_limit_seconds
        self._emergency_threshold = app_settings.emergency_threshold_seconds
        self._emergency_notified = False

        resolved = resolve(settings)
        saved = self._load_saved_duration()
        if saved is not None:
            resolved = resolved.model_copy(update={"total_duration": saved})
        # reset() always returns to these
        self._settings: TimerSettings = resolved

        self._state = self._idle_state(resolved.total_duration)
        self._machine = Machine(
            model=self._state,
            states=TimerStatus,
            transitions=TRANSITIONS,
            initial=TimerStatus.IDLE,
            model_attribute="status",
            auto_transitions=False,
            ignore_invalid_triggers=True,
            send_event=False,
        )
        self._ticker = Ticker(
            tick=self.tick,
            guard=lambda: self._state.should_tick,
            interval=tick_interval or app_settings.tick_interval_seconds,
        )

    # --- Read surface ---

    @property
    def settings(self) -> TimerSettings:
        return self._settings.model_copy()

    @property
    def status(self) -> TimerStatus:
        return self._state.status

    @property
    def ticker_active(self) -> bool:
        return self._ticker.active

    def snapshot(self) -> TimerState:
        """Return a detached copy of the current state."""
        return dataclasses.replace(self._state)

    def elapsed_seconds(self) -> int:
        return elapsed_seconds(self._state.start_time, self._elapsed_reference())

    def state_payload(self) -> TimerStatePayload:
        s = self._state
        return TimerStatePayload(
            status=s.status.value,
            current_phase=s.current_phase.value,
            time_remaining=s.time_remaining,
            total_duration=s.total_duration,
            is_running=s.is_running,
            is_paused=s.is_paused,
            is_finished=s.is_finished,
        )

    def progress(self) -> ProgressPayload:
        return projections.project_progress(self._state, self._elapsed_reference())

    def visual_state(self) -> VisualStatePayload:
        return projections.visual_state(self._state, self._emergency_threshold)

    def on_tick(self, callback: TickCallback) -> None:
        """Register an async callback awaited after every tick."""
        self._ticker.on_tick(callback)

    # --- Control surface ---

    def start(self) -> None:
        now = self._clock.now()
        if not self._state.begin():  # type: ignore[attr-defined]
            return
        s = self._state
        s.is_running = True
        s.is_paused = False
        s.is_finished = False
        if s.start_time is None:
            s.start_time = now
        s.paused_time = None
        s.current_phase = TimerPhase.INTRODUCTION
        s.phase_start_time = 0
        s.time_remaining = s.total_duration
        s.last_phase_change = now
        self._emergency_notified = False
        logger.info("Timer started (%ds)", s.total_duration)
        self._ticker.sync()

    def pause(self) -> None:
        if not self._state.hold():  # type: ignore[attr-defined]
            return
        s = self._state
        s.is_running = False
        s.is_paused = True
        s.paused_time = self._clock.now()
        logger.info("Timer paused at %ds remaining", s.time_remaining)
        self._ticker.sync()

    def resume(self) -> None:
        s = self._state
        if s.paused_time is None or s.start_time is None:
            return
        if not s.release():  # type: ignore[attr-defined]
            return
        pause_duration = self._clock.now() - s.paused_time
        s.start_time += pause_duration
        s.paused_time = None
        s.is_running = True
        s.is_paused = False
        logger.info("Timer resumed after %.1fs pause", pause_duration)
        self._ticker.sync()

    def stop(self) -> None:
        if not self._state.halt():  # type: ignore[attr-defined]
            return
        self._ticker.cancel()
        self._return_to_idle()
        logger.info("Timer stopped")

    def reset(self) -> None:
        self._ticker.cancel()
        self._state.clear()  # type: ignore[attr-defined]
        s = self._state
        s.total_duration = self._settings.total_duration
        (
            s.introduction_duration,
            s.main_duration,
            s.conclusion_duration,
        ) = derive_phase_durations(s.total_duration, self._settings)
        self._return_to_idle()
        logger.info("Timer reset to %ds", s.total_duration)

    def skip(self) -> None:
        """Jump to the start of the next phase, or finish from the conclusion."""
        s = self._state
        if s.start_time is None or s.status not in (TimerStatus.RUNNING, TimerStatus.PAUSED):
            return

        now = self._clock.now()
        elapsed = elapsed_seconds(s.start_time, self._elapsed_reference())
        current = phase_for_elapsed(elapsed, s.introduction_duration, s.main_duration)

        if current == TimerPhase.CONCLUSION:
            s.complete()  # type: ignore[attr-defined]
            s.time_remaining = 0
            s.is_running = False
            s.is_paused = False
            s.is_finished = True
            s.paused_time = None
            s.current_phase = TimerPhase.FINISHED
            s.last_phase_change = now
            s.blink_count = 0
            logger.info("Skipped past conclusion, session finished")
            self._ticker.sync()
            self._notifier.phase_changed(TimerPhase.FINISHED)
            return

        if current == TimerPhase.INTRODUCTION:
            next_phase = TimerPhase.MAIN
            offset = s.introduction_duration
        else:
            next_phase = TimerPhase.CONCLUSION
            offset = s.introduction_duration + s.main_duration

        # Rewrite the origin so the new phase starts with its full allotment
        s.start_time = now - offset
        if s.paused_time is not None:
            s.paused_time = now
        s.current_phase = next_phase
        s.phase_start_time = offset
        s.time_remaining = s.total_duration - offset
        s.last_phase_change = now
        s.blink_count = 0
        logger.info("Skipped to %s phase (%ds remaining)", next_phase.value, s.time_remaining)
        self._notifier.phase_changed(next_phase)

    def set_duration(self, seconds: int) -> None:
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
            logger.warning("Ignoring invalid timer duration %r", seconds)
            return
        s = self._state
        s.total_duration = seconds
        (
            s.introduction_duration,
            s.main_duration,
            s.conclusion_duration,
        ) = derive_phase_durations(seconds, self._settings)
        if s.status == TimerStatus.IDLE:
            s.time_remaining = seconds
        logger.info("Timer duration set to %ds", seconds)
        self._persist_duration(seconds)

    def close(self) -> None:
        """Release the ticker; the timer must not be used afterwards."""
        self._ticker.cancel()

    # --- Tick application ---

    def tick(self) -> None:
        """Recompute the countdown from the clock and apply the result."""
        if not self._state.should_tick:
            return
        now = self._clock.now()
        outcome = compute_tick(self._state, now, self._overtime_limit)
        if outcome is None:
            return
        self._apply_tick(outcome, now)
        self._ticker.sync()

    def _apply_tick(self, outcome: TickOutcome, now: float) -> None:
        s = self._state
        s.time_remaining = outcome.time_remaining

        if outcome.kind == TickKind.FINISH:
            s.complete()  # type: ignore[attr-defined]
            s.is_finished = True
            s.current_phase = TimerPhase.FINISHED
            s.last_phase_change = now
            # is_running stays True so the overtime keeps counting, unless a
            # late tick already lands on the floor
            if s.time_remaining <= -self._overtime_limit:
                s.is_running = False
            logger.info("Session time is up")
            self._notifier.phase_changed(TimerPhase.FINISHED)
            self._notifier.finished()
            self._fire_alert(COMPLETION_ALERT, PHASE_COLORS[TimerPhase.FINISHED])

        elif outcome.kind == TickKind.OVERTIME_LIMIT:
            s.is_running = False
            s.is_paused = False
            logger.info("Overtime limit reached, ticking stops")

        elif outcome.kind == TickKind.PHASE_CHANGE:
            s.current_phase = outcome.phase
            s.phase_start_time = outcome.elapsed_seconds
            s.last_phase_change = now
            s.blink_count = 0
            logger.info("Phase changed to %s", outcome.phase.value)
            self._notifier.phase_changed(outcome.phase)
            self._fire_alert(PHASE_ALERT, PHASE_COLORS[outcome.phase])

        if (
            not self._emergency_notified
            and s.is_running
            and s.status != TimerStatus.FINISHED
            and s.time_remaining < self._emergency_threshold
        ):
            self._emergency_notified = True
            self._notifier.emergency(s.time_remaining)

    # --- Internal helpers ---

    def _elapsed_reference(self) -> float:
        """Time elapsed is measured up to: now, or the pause while paused."""
        if self._state.paused_time is not None:
            return self._state.paused_time
        return self._clock.now()

    def _idle_state(self, total_duration: int) -> TimerState:
        intro, main, conclusion = derive_phase_durations(total_duration, self._settings)
        return TimerState(
            total_duration=total_duration,
            time_remaining=total_duration,
            introduction_duration=intro,
            main_duration=main,
            conclusion_duration=conclusion,
        )

    def _return_to_idle(self) -> None:
        s = self._state
        s.is_running = False
        s.is_paused = False
        s.is_finished = False
        s.time_remaining = s.total_duration
        s.start_time = None
        s.paused_time = None
        s.current_phase = TimerPhase.INTRODUCTION
        s.phase_start_time = 0
        s.last_phase_change = None
        s.blink_count = 0
        self._emergency_notified = False

    def _fire_alert(self, alert: tuple[int, float, int], color: str) -> None:
        if self._visual_alert is None:
            return
        duration_ms, intensity, repeat_count = alert
        try:
            coro = self._visual_alert.trigger(duration_ms, intensity, repeat_count, color)
        except Exception:
            logger.warning("Failed to trigger visual alert", exc_info=True)
            return
        spawn(coro, name="preaching-timer-visual-alert")

    def _load_saved_duration(self) -> Optional[int]:
        if self._store is None:
            return None
        try:
            seconds = self._store.get()
        except Exception:
            logger.warning("Failed to read saved timer duration", exc_info=True)
            return None
        if seconds is None:
            return None
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
            logger.warning("Ignoring saved timer duration %r", seconds)
            return None
        return seconds

    def _persist_duration(self, seconds: int) -> None:
        if self._store is None:
            return
        try:
            self._store.set(seconds)
        except Exception:
            logger.warning("Failed to save timer duration", exc_info=True)
