"""Notification sink used by the editor to report outcomes to the host."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

__all__ = ["NotificationKind", "NotificationSink", "LoggingNotifier"]

LOGGER = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    """Severity attached to a user-facing notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationSink(Protocol):
    """Fire-and-forget receiver for editor notifications."""

    def notify(self, message: str, kind: NotificationKind) -> None:
        ...


_LEVELS: dict[NotificationKind, int] = {
    NotificationKind.INFO: logging.INFO,
    NotificationKind.SUCCESS: logging.INFO,
    NotificationKind.WARNING: logging.WARNING,
    NotificationKind.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Default sink that forwards notifications to :mod:`logging`."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def notify(self, message: str, kind: NotificationKind) -> None:
        level = _LEVELS.get(NotificationKind(kind), logging.INFO)
        self._logger.log(level, "[%s] %s", NotificationKind(kind).value, message)
