"""Read-only views of the timer state: progress ratios and display values.

Nothing here caches; every call works from the state and time it is given.
"""

from __future__ import annotations

from preaching_timer.models.messages import ProgressPayload, VisualStatePayload
from preaching_timer.models.state import (
    OVERTIME_COLOR,
    PHASE_COLORS,
    TimerPhase,
    TimerState,
    TimerStatus,
)
from preaching_timer.timer.ticker import elapsed_seconds, phase_start_offset


def _clamp(value: float) -> float:
    return max(0.0, min(value, 1.0))


def total_progress(state: TimerState, elapsed: int) -> float:
    if state.total_duration <= 0:
        return 0.0
    return _clamp(elapsed / state.total_duration)


def phase_progress(state: TimerState, elapsed: int) -> float:
    phase = state.current_phase
    if phase == TimerPhase.FINISHED:
        return 0.0
    durations = {
        TimerPhase.INTRODUCTION: state.introduction_duration,
        TimerPhase.MAIN: state.main_duration,
        TimerPhase.CONCLUSION: state.conclusion_duration,
    }
    start = phase_start_offset(phase, state.introduction_duration, state.main_duration)
    duration = durations[phase]
    if duration <= 0:
        return 1.0
    return _clamp((elapsed - start) / duration)


def project_progress(state: TimerState, now: float) -> ProgressPayload:
    elapsed = elapsed_seconds(state.start_time, now)
    return ProgressPayload(
        total_progress=total_progress(state, elapsed),
        phase_progress=phase_progress(state, elapsed),
        time_elapsed=elapsed,
        time_remaining=state.time_remaining,
    )


def format_time(seconds: int) -> str:
    """Format *seconds* as ``MM:SS``, prefixed with ``-`` when negative."""
    minutes, secs = divmod(abs(seconds), 60)
    sign = "-" if seconds < 0 else ""
    return f"{sign}{minutes:02d}:{secs:02d}"


def display_color(state: TimerState) -> str:
    if state.status == TimerStatus.FINISHED and state.time_remaining < 0:
        return OVERTIME_COLOR
    return PHASE_COLORS.get(state.current_phase, PHASE_COLORS[TimerPhase.INTRODUCTION])


def is_emergency(state: TimerState, threshold: int = 60) -> bool:
    # Stays on through overtime, until the floor stops the timer
    return state.time_remaining < threshold and state.is_running


def visual_state(state: TimerState, emergency_threshold: int = 60) -> VisualStatePayload:
    return VisualStatePayload(
        display_time=format_time(state.time_remaining),
        display_color=display_color(state),
        phase_label=state.current_phase.value,
        is_emergency=is_emergency(state, emergency_threshold),
    )
