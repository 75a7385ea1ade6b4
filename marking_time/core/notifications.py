"""Transient user notifications and the session sync-marker announcement."""

from __future__ import annotations

import inspect
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Deque, List, Optional, Tuple, Union

from .constants import NOTIFICATION_PREFIX
from .logging_utils import get_module_logger

logger = get_module_logger("Notifications")


class NotificationLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, str]:
        return {
            "level": self.level.value,
            "message": self.message,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }


NotificationListener = Callable[[Notification], None]


class Notifier:
    """Publishes short messages meant for transient on-screen display.

    A bounded history is kept so a UI polling the REST surface can pick up
    what it missed; listeners receive messages as they are published.
    """

    def __init__(self, *, history_limit: int = 50, prefix: str = NOTIFICATION_PREFIX) -> None:
        self._history: Deque[Notification] = deque(maxlen=max(1, history_limit))
        self._listeners: List[NotificationListener] = []
        self._prefix = prefix

    @property
    def history(self) -> Tuple[Notification, ...]:
        return tuple(self._history)

    def subscribe(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def info(self, message: str) -> Notification:
        return self._publish(NotificationLevel.INFO, message)

    def warning(self, message: str) -> Notification:
        return self._publish(NotificationLevel.WARNING, message)

    def error(self, message: str) -> Notification:
        return self._publish(NotificationLevel.ERROR, message)

    def _publish(self, level: NotificationLevel, message: str) -> Notification:
        text = f"{self._prefix}: {message}" if self._prefix else message
        notification = Notification(level=level, message=text)
        self._history.append(notification)

        log_method = {
            NotificationLevel.INFO: logger.info,
            NotificationLevel.WARNING: logger.warning,
            NotificationLevel.ERROR: logger.error,
        }[level]
        log_method("NOTIFY: %s", text)

        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener failed")
        return notification


@dataclass(frozen=True, slots=True)
class SyncMarker:
    """Host-visible announcement that tracking started, for lining up recordings."""

    started_at: datetime
    clock_time: str
    recipients: Tuple[str, ...] = ()

    @property
    def content(self) -> str:
        return f"TIMESTAMP TRACKING STARTED | Clock Time: {self.clock_time}"


SyncMarkerAnnouncer = Callable[[SyncMarker], Union[None, Awaitable[None]]]


async def announce(announcer: Optional[SyncMarkerAnnouncer], marker: SyncMarker) -> bool:
    """Deliver the marker; failures are logged and reported as False."""
    if announcer is None:
        target = ", ".join(marker.recipients) or "everyone"
        logger.info("%s (to %s)", marker.content, target)
        return True
    try:
        result = announcer(marker)
        if inspect.isawaitable(result):
            await result
        return True
    except Exception:
        logger.exception("Failed to announce sync marker")
        return False


__all__ = [
    "NotificationLevel",
    "Notification",
    "Notifier",
    "SyncMarker",
    "SyncMarkerAnnouncer",
    "announce",
]
