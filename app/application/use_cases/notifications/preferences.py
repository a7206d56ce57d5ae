"""Use cases for reading and updating notification preferences."""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy.orm import Session

from app.domain.entities import (
    MAX_REMINDER_HOURS,
    MIN_REMINDER_HOURS,
    NotificationSettings,
)
from app.infrastructure.repositories import NotificationSettingsRepository


def get_notification_settings(session: Session, user_id: str) -> NotificationSettings:
    """Return the stored preferences of ``user_id`` or the defaults."""

    stored = NotificationSettingsRepository(session).get(user_id)
    return stored or NotificationSettings()


def update_notification_settings(
    session: Session,
    user_id: str,
    *,
    email_notifications: bool | None = None,
    push_notifications: bool | None = None,
    deadline_reminders: bool | None = None,
    reminder_hours: int | None = None,
) -> NotificationSettings:
    """Merge the provided values into the current preferences and persist them."""

    if reminder_hours is not None and not (
        MIN_REMINDER_HOURS <= reminder_hours <= MAX_REMINDER_HOURS
    ):
        raise ValueError(
            f"reminder_hours must be between {MIN_REMINDER_HOURS} and {MAX_REMINDER_HOURS}"
        )

    changes = {
        name: value
        for name, value in {
            "email_notifications": email_notifications,
            "push_notifications": push_notifications,
            "deadline_reminders": deadline_reminders,
            "reminder_hours": reminder_hours,
        }.items()
        if value is not None
    }
    updated = replace(get_notification_settings(session, user_id), **changes)
    return NotificationSettingsRepository(session).save(user_id, updated)


__all__ = ["get_notification_settings", "update_notification_settings"]
