"""Duration stores: a JSON file on disk and an in-memory variant."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_DURATION_KEY = "preaching-timer-duration"


class JsonFileDurationStore:
    """Keeps the duration in a small JSON document.

    Errors propagate; the timer decides how to degrade.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Optional[int]:
        if not self._path.exists():
            return None
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed duration file %s", self._path)
            return None
        value = data.get(_DURATION_KEY)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        logger.warning("Ignoring stored duration %r in %s", value, self._path)
        return None

    def set(self, seconds: int) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump({_DURATION_KEY: seconds}, f)
        logger.debug("Saved duration %ds to %s", seconds, self._path)


class MemoryDurationStore:
    def __init__(self, seconds: Optional[int] = None) -> None:
        self.seconds = seconds

    def get(self) -> Optional[int]:
        return self.seconds

    def set(self, seconds: int) -> None:
        self.seconds = seconds
