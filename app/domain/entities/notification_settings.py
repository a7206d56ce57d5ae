"""Domain entity holding per-user notification preferences."""

from __future__ import annotations

from dataclasses import dataclass

MIN_REMINDER_HOURS = 1
MAX_REMINDER_HOURS = 168


@dataclass(frozen=True)
class NotificationSettings:
    """Delivery preferences for a user."""

    email_notifications: bool = True
    push_notifications: bool = False
    deadline_reminders: bool = True
    reminder_hours: int = 24


__all__ = ["NotificationSettings", "MIN_REMINDER_HOURS", "MAX_REMINDER_HOURS"]
