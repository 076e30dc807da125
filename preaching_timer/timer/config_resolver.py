"""Resolves timer settings and derives the phase split."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Union

from preaching_timer.config import get_settings
from preaching_timer.models.settings import PartialTimerSettings, TimerSettings

SettingsInput = Union[TimerSettings, PartialTimerSettings, Mapping[str, Any], None]

PRESETS: dict[str, TimerSettings] = {
    "devotion": TimerSettings(
        total_duration=300, introduction_ratio=0.3, main_ratio=0.6, conclusion_ratio=0.1
    ),
    "short": TimerSettings(
        total_duration=600, introduction_ratio=0.25, main_ratio=0.65, conclusion_ratio=0.1
    ),
    "standard": TimerSettings(
        total_duration=1200, introduction_ratio=0.2, main_ratio=0.6, conclusion_ratio=0.2
    ),
    "long": TimerSettings(
        total_duration=1800, introduction_ratio=0.15, main_ratio=0.8, conclusion_ratio=0.05
    ),
}

# Quick-pick durations offered by the duration picker, in minutes
PRESET_MINUTES: dict[str, int] = {
    "devotion": 5,
    "short": 10,
    "standard": 20,
    "long": 30,
    "extended": 45,
}


def default_settings() -> TimerSettings:
    settings = get_settings()
    return TimerSettings(
        total_duration=settings.default_total_duration,
        introduction_ratio=settings.default_introduction_ratio,
        main_ratio=settings.default_main_ratio,
        conclusion_ratio=settings.default_conclusion_ratio,
    )


def resolve(partial: SettingsInput = None) -> TimerSettings:
    """Fill every field *partial* leaves unset with the configured default."""
    if isinstance(partial, TimerSettings):
        return partial.model_copy()
    if partial is None:
        overrides: dict[str, Any] = {}
    elif isinstance(partial, PartialTimerSettings):
        overrides = partial.model_dump(exclude_none=True)
    else:
        overrides = PartialTimerSettings.model_validate(dict(partial)).model_dump(
            exclude_none=True
        )
    return default_settings().model_copy(update=overrides)


def derive_phase_durations(
    total_duration: int, settings: TimerSettings
) -> tuple[int, int, int]:
    """Split *total_duration* by the settings ratios, flooring each share.

    The floored shares may add up to slightly less than the total; the
    conclusion phase runs to the end of the session regardless.
    """
    return (
        math.floor(total_duration * settings.introduction_ratio),
        math.floor(total_duration * settings.main_ratio),
        math.floor(total_duration * settings.conclusion_ratio),
    )


def preset_settings(name: str) -> TimerSettings:
    """Return a copy of a named preset. Raises ``KeyError`` for unknown names."""
    return PRESETS[name.lower()].model_copy()
