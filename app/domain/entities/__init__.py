"""Domain entities exposed by the application."""

from .notification import (
    Notification,
    NotificationDraft,
    NotificationKind,
    NotificationPriority,
)
from .notification_settings import (
    MAX_REMINDER_HOURS,
    MIN_REMINDER_HOURS,
    NotificationSettings,
)
from .push_subscription import PushSubscription

__all__ = [
    "Notification",
    "NotificationDraft",
    "NotificationKind",
    "NotificationPriority",
    "NotificationSettings",
    "MIN_REMINDER_HOURS",
    "MAX_REMINDER_HOURS",
    "PushSubscription",
]
