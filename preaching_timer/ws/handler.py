"""WebSocket handler for browser client connections.

Each connection gets its own timer. The browser sends control messages and
receives state snapshots, tick updates and lifecycle events; it also acts as
the visual-alert surface.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from preaching_timer.config import get_settings
from preaching_timer.models.messages import (
    ClientMessage,
    ServerMessage,
    SetDurationPayload,
    VisualAlertPayload,
)
from preaching_timer.models.settings import PartialTimerSettings
from preaching_timer.models.state import TimerPhase
from preaching_timer.storage.duration_store import JsonFileDurationStore
from preaching_timer.timer.collaborators import DurationStore
from preaching_timer.timer.core import PreachingTimer
from preaching_timer.timer.events import TimerEvents

logger = logging.getLogger(__name__)


class BrowserVisualAlert:
    """Asks the connected browser to flash the screen."""

    def __init__(self, handler: TimerHandler) -> None:
        self._handler = handler

    async def trigger(
        self, duration_ms: int, intensity: float, repeat_count: int, color: str
    ) -> None:
        payload = VisualAlertPayload(
            duration_ms=duration_ms,
            intensity=intensity,
            repeat_count=repeat_count,
            color=color,
        )
        await self._handler.send("VISUAL_ALERT", payload.model_dump())


class TimerHandler:
    """Handles a single timing session for one browser client."""

    def __init__(
        self,
        ws: WebSocket,
        settings: PartialTimerSettings | None = None,
        *,
        duration_store: DurationStore | None = None,
    ) -> None:
        self._ws = ws
        if duration_store is None:
            duration_store = JsonFileDurationStore(get_settings().duration_store_path)

        self._timer = PreachingTimer(
            settings,
            TimerEvents(
                on_finish=self._on_finish,
                on_phase_change=self._on_phase_change,
                on_emergency=self._on_emergency,
            ),
            duration_store=duration_store,
            visual_alert=BrowserVisualAlert(self),
        )
        self._timer.on_tick(self._on_timer_tick)

    @property
    def timer(self) -> PreachingTimer:
        return self._timer

    async def run(self) -> None:
        """Main loop: receive messages from the browser and handle them."""
        try:
            await self._send_state()
            while True:
                raw = await self._ws.receive_text()
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    await self._send_error("Invalid JSON")
                    continue

                try:
                    msg = ClientMessage.model_validate(data)
                except ValidationError:
                    msg_type = data.get("type") if isinstance(data, dict) else None
                    logger.warning("Unknown message type: %s", msg_type)
                    await self._send_error(f"Unknown message type: {msg_type}")
                    continue

                await self._handle_message(msg.type, msg.payload or {})

        except WebSocketDisconnect:
            logger.info("Browser disconnected")
        except Exception:
            logger.exception("WebSocket handler error")
        finally:
            self._cleanup()

    async def _handle_message(self, msg_type: str, payload: dict) -> None:
        """Route incoming messages to the timer controls."""
        controls = {
            "START": self._timer.start,
            "PAUSE": self._timer.pause,
            "RESUME": self._timer.resume,
            "STOP": self._timer.stop,
            "SKIP": self._timer.skip,
            "RESET": self._timer.reset,
        }

        if msg_type in controls:
            controls[msg_type]()
            await self._send_state()

        elif msg_type == "SET_DURATION":
            await self._handle_set_duration(payload)

        elif msg_type == "GET_STATE":
            await self._send_state()

    async def _handle_set_duration(self, payload: dict) -> None:
        try:
            data = SetDurationPayload.model_validate(payload)
        except ValidationError as e:
            await self._send_error(f"Invalid duration: {e.errors()[0]['msg']}")
            return
        self._timer.set_duration(data.seconds)
        await self._send_state()

    # --- Timer callbacks ---

    async def _on_timer_tick(self) -> None:
        """Send timer tick to browser."""
        await self.send("TIMER_TICK", self._snapshot_payload())

    async def _on_finish(self) -> None:
        await self.send("TIMER_FINISHED", self._snapshot_payload())

    async def _on_phase_change(self, phase: TimerPhase) -> None:
        await self.send("PHASE_CHANGED", {"phase": phase.value})

    async def _on_emergency(self, time_remaining: int) -> None:
        await self.send("EMERGENCY", {"time_remaining": time_remaining})

    # --- Utilities ---

    def _snapshot_payload(self) -> dict[str, Any]:
        return {
            "state": self._timer.state_payload().model_dump(),
            "progress": self._timer.progress().model_dump(),
            "visual": self._timer.visual_state().model_dump(),
        }

    async def send(self, msg_type: str, payload: dict[str, Any]) -> None:
        """Send a message to the browser."""
        message = ServerMessage(type=msg_type, payload=payload)
        try:
            await self._ws.send_json(message.model_dump())
        except Exception:
            logger.warning("Failed to send message to browser")

    async def _send_state(self) -> None:
        await self.send("STATE_UPDATE", self._snapshot_payload())

    async def _send_error(self, error: str) -> None:
        await self.send("ERROR", {"message": error})

    def _cleanup(self) -> None:
        """Clean up all resources."""
        self._timer.close()
