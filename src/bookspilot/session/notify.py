"""
Notifications — the user-facing side of error handling.

The session layer never decides how a message is shown. It hands a
``Notification`` to a ``Notifier``; the host (web page, CLI, tests) decides
what to do with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from bookspilot.exceptions import BooksPilotError

logger = logging.getLogger("bookspilot.session.notify")


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """One message for the user, optionally tied to the error that caused it."""

    level: NotificationLevel
    message: str
    error: BooksPilotError | None = None


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Notifier that writes to the log. Default when no host notifier is given."""

    def notify(self, notification: Notification) -> None:
        level = logging.ERROR if notification.level == NotificationLevel.ERROR else logging.INFO
        logger.log(level, "[%s] %s", notification.level.value, notification.message)


class RecordingNotifier:
    """Notifier that keeps every notification, for hosts that render later."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def errors_of(self, error_type: type[BooksPilotError]) -> list[Notification]:
        """Notifications raised for errors of ``error_type``."""
        return [n for n in self.notifications if isinstance(n.error, error_type)]


def notify_error(notifier: Notifier, error: BooksPilotError, message: str | None = None) -> None:
    """Send an error notification built from ``error``."""
    notifier.notify(Notification(NotificationLevel.ERROR, message or str(error), error))


def notify_success(notifier: Notifier, message: str) -> None:
    notifier.notify(Notification(NotificationLevel.SUCCESS, message))
