"""User-facing notification channel (toasts) for a session."""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List

from ratemyfit.config import logger

MAX_PENDING_NOTIFICATIONS = 50

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(slots=True)
class Notification:
    level: str
    message: str
    created_at: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "level": self.level,
            "message": self.message,
            "created_at": self.created_at,
        }


class Notifier:
    """
    Fire-and-forget message queue drained by the client.

    Oldest messages are dropped once ``max_pending`` is reached.
    """

    def __init__(self, max_pending: int = MAX_PENDING_NOTIFICATIONS):
        self._pending: Deque[Notification] = deque(maxlen=max_pending)

    def _push(self, level: str, message: str) -> None:
        logger.log(_LOG_LEVELS[level], "notify[%s]: %s", level, message)
        self._pending.append(Notification(level, message, time.time()))

    def info(self, message: str) -> None:
        self._push("info", message)

    def success(self, message: str) -> None:
        self._push("success", message)

    def warning(self, message: str) -> None:
        self._push("warning", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        drained = list(self._pending)
        self._pending.clear()
        return drained
