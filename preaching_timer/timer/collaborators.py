"""Interfaces of the timer's external collaborators."""

from __future__ import annotations

from typing import Optional, Protocol


class DurationStore(Protocol):
    """Remembers the last chosen session duration between sessions."""

    def get(self) -> Optional[int]: ...

    def set(self, seconds: int) -> None: ...


class VisualAlert(Protocol):
    """Flashes the screen or highlights the timer display."""

    async def trigger(
        self, duration_ms: int, intensity: float, repeat_count: int, color: str
    ) -> None: ...
