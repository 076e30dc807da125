from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TimerSettings(BaseModel):
    """Session length and how it splits into the three phases.

    Ratios are expected to sum to 1.0; that is left to the caller.
    """

    total_duration: int = Field(default=1200, gt=0)
    introduction_ratio: float = Field(default=0.2, gt=0, lt=1)
    main_ratio: float = Field(default=0.6, gt=0, lt=1)
    conclusion_ratio: float = Field(default=0.2, gt=0, lt=1)


class PartialTimerSettings(BaseModel):
    total_duration: Optional[int] = Field(default=None, gt=0)
    introduction_ratio: Optional[float] = Field(default=None, gt=0, lt=1)
    main_ratio: Optional[float] = Field(default=None, gt=0, lt=1)
    conclusion_ratio: Optional[float] = Field(default=None, gt=0, lt=1)
