"""Transient dashboard notifications."""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    message: str
    kind: NotificationKind
    expires_at: float


class NotificationCenter:
    """Holds at most one notification, which expires after a fixed interval."""

    def __init__(self, timeout_seconds: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self._timeout = timeout_seconds
        self._clock = clock
        self._current: Optional[Notification] = None

    def show(self, message: str, kind: NotificationKind) -> Notification:
        """Replace the current notification."""
        self._current = Notification(
            message=message,
            kind=kind,
            expires_at=self._clock() + self._timeout,
        )
        log = logger.warning if kind == NotificationKind.ERROR else logger.debug
        log(f"Notification ({kind.value}): {message}")
        return self._current

    def success(self, message: str) -> Notification:
        return self.show(message, NotificationKind.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.show(message, NotificationKind.ERROR)

    @property
    def current(self) -> Optional[Notification]:
        if self._current is not None and self._clock() >= self._current.expires_at:
            self._current = None
        return self._current

    def dismiss(self) -> None:
        self._current = None
