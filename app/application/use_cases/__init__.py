"""Aggregate application use cases."""

from .notifications import (
    NotificationStore,
    get_notification_settings,
    trigger_generation,
    update_notification_settings,
)

__all__ = [
    "NotificationStore",
    "get_notification_settings",
    "trigger_generation",
    "update_notification_settings",
]
