"""
Logging Notification Service

Writes every notification to the application log and keeps a bounded
history that the dashboard polls through /api/notifications.
"""

import logging
from collections import deque
from typing import Optional

from carta.services.notifications.base import (
    BaseNotifier,
    Notification,
    NotificationLevel,
)

logger = logging.getLogger(__name__)


class LogNotifier(BaseNotifier):
    """Notifier backed by the log and an in-memory ring buffer."""

    def __init__(self, history_size: int = 50):
        self._history: deque[Notification] = deque(maxlen=history_size)
        logger.info(f"LogNotifier initialized (history_size={history_size})")

    @property
    def provider_name(self) -> str:
        return "log"

    def notify(self, notification: Notification) -> None:
        self._history.append(notification)

        text = notification.title
        if notification.description:
            text = f"{text} ({notification.description})"

        if notification.level == NotificationLevel.ERROR:
            logger.warning(f"[{notification.channel.value}] {text}")
        else:
            logger.info(f"[{notification.channel.value}] {text}")

    def recent(self, limit: Optional[int] = None) -> list[Notification]:
        items = list(self._history)
        if limit is not None:
            items = items[-limit:] if limit > 0 else []
        return items

    def clear(self) -> None:
        self._history.clear()
