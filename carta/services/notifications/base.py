"""
Notification Service Abstract Base Class

Defines how the backend surfaces transient messages to staff and diners:
toasts (success / error) and spoken announcements. Presentation (the toast
widget, speech synthesis, the order bell) belongs to the client; services
here only decide what is said and keep it available for polling.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class NotificationChannel(str, Enum):
    TOAST = "toast"
    VOICE = "voice"
    SOUND = "sound"


@dataclass
class Notification:
    """One message destined for the dashboard or the customer view."""
    channel: NotificationChannel
    level: NotificationLevel
    title: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "channel": self.channel.value,
            "level": self.level.value,
            "title": self.title,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


class BaseNotifier(ABC):
    """Abstract base class for notification sinks."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Deliver one notification. Must not raise."""
        pass

    @abstractmethod
    def recent(self, limit: Optional[int] = None) -> list[Notification]:
        """Most recent notifications, newest last."""
        pass

    def success(self, title: str, description: Optional[str] = None) -> None:
        self.notify(Notification(NotificationChannel.TOAST, NotificationLevel.SUCCESS, title, description))

    def error(self, title: str, description: Optional[str] = None) -> None:
        self.notify(Notification(NotificationChannel.TOAST, NotificationLevel.ERROR, title, description))

    def announce(self, message: str) -> None:
        """Spoken confirmation or report."""
        self.notify(Notification(NotificationChannel.VOICE, NotificationLevel.INFO, message))

    def order_received(self, table_number: str, total: float, currency: str = "S/") -> None:
        """Bell, toast and voice announcement for a new table order."""
        self.notify(Notification(NotificationChannel.SOUND, NotificationLevel.INFO, "new-order"))
        self.success(f"Pedido Recibido - Mesa {table_number}", f"Total: {currency} {total:.2f}")
        self.announce(f"¡Nuevo pedido entrante de la mesa {table_number}!")
