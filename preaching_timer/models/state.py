from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TimerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class TimerPhase(str, Enum):
    INTRODUCTION = "introduction"
    MAIN = "main"
    CONCLUSION = "conclusion"
    FINISHED = "finished"


PHASE_COLORS: dict[TimerPhase, str] = {
    TimerPhase.INTRODUCTION: "#FCD34D",
    TimerPhase.MAIN: "#3B82F6",
    TimerPhase.CONCLUSION: "#10B981",
    TimerPhase.FINISHED: "#EF4444",
}

OVERTIME_COLOR = "#EF4444"


@dataclass
class TimerState:
    """Mutable state of one timing session.

    ``status`` is driven by the timer's status machine; the timer binds its
    transition triggers onto this object. Timestamps are clock seconds.
    """

    total_duration: int
    time_remaining: int
    introduction_duration: int
    main_duration: int
    conclusion_duration: int
    status: TimerStatus = TimerStatus.IDLE
    is_running: bool = False
    is_paused: bool = False
    is_finished: bool = False
    start_time: Optional[float] = None
    paused_time: Optional[float] = None
    current_phase: TimerPhase = TimerPhase.INTRODUCTION
    phase_start_time: int = 0
    last_phase_change: Optional[float] = None
    blink_count: int = 0

    @property
    def should_tick(self) -> bool:
        return self.is_running and not self.is_paused and self.start_time is not None

    @property
    def phase_durations(self) -> tuple[int, int, int]:
        return (self.introduction_duration, self.main_duration, self.conclusion_duration)
