"""
Notification Service Factory

Returns the notifier used for toasts and spoken feedback.
"""

import logging

from carta.core.config import Settings, get_settings
from carta.services.notifications.base import (
    BaseNotifier,
    Notification,
    NotificationChannel,
    NotificationLevel,
)
from carta.services.notifications.log import LogNotifier

logger = logging.getLogger(__name__)


def create_notifier(settings: Settings | None = None) -> BaseNotifier:
    """Build a notifier for one application instance."""
    settings = settings or get_settings()
    logger.info("Notification Service: Using LogNotifier")
    return LogNotifier(history_size=settings.notification_history_size)


__all__ = [
    "create_notifier",
    "BaseNotifier",
    "LogNotifier",
    "Notification",
    "NotificationChannel",
    "NotificationLevel",
]
