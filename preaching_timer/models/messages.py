from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# --- Client -> Server ---


class ClientMessage(BaseModel):
    type: Literal[
        "START",
        "PAUSE",
        "RESUME",
        "STOP",
        "SKIP",
        "RESET",
        "SET_DURATION",
        "GET_STATE",
    ]
    payload: Optional[dict[str, Any]] = None


class SetDurationPayload(BaseModel):
    seconds: int = Field(gt=0)


# --- Server -> Client ---


class TimerStatePayload(BaseModel):
    status: str
    current_phase: str
    time_remaining: int
    total_duration: int
    is_running: bool
    is_paused: bool
    is_finished: bool


class ProgressPayload(BaseModel):
    total_progress: float
    phase_progress: float
    time_elapsed: int
    time_remaining: int


class VisualStatePayload(BaseModel):
    display_time: str
    display_color: str
    phase_label: str
    is_emergency: bool


class VisualAlertPayload(BaseModel):
    duration_ms: int
    intensity: float
    repeat_count: int
    color: str


class ServerMessage(BaseModel):
    type: Literal[
        "STATE_UPDATE",
        "TIMER_TICK",
        "PHASE_CHANGED",
        "EMERGENCY",
        "TIMER_FINISHED",
        "VISUAL_ALERT",
        "ERROR",
    ]
    payload: dict[str, Any]
