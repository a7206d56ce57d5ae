"""Repository implementations for infrastructure layer."""

from .notification_gateway import SqlNotificationPersistence
from .notification_repository import NotificationRepository
from .notification_settings_repository import NotificationSettingsRepository

__all__ = [
    "NotificationRepository",
    "NotificationSettingsRepository",
    "SqlNotificationPersistence",
]
