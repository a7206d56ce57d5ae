"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .notification_settings import NotificationSettingsModel

__all__ = ["NotificationModel", "NotificationSettingsModel"]
