"""Persistence helpers for notification preferences."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import NotificationSettings
from app.infrastructure.models import NotificationSettingsModel


class NotificationSettingsRepository:
    """Read and upsert the single settings row of each user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationSettings | None:
        model = self._get_model(user_id)
        if model is None:
            return None
        return self._to_entity(model)

    def save(self, user_id: str, settings: NotificationSettings) -> NotificationSettings:
        model = self._get_model(user_id)
        if model is None:
            model = NotificationSettingsModel(user_id=user_id)
            self.session.add(model)
        model.email_notifications = settings.email_notifications
        model.push_notifications = settings.push_notifications
        model.deadline_reminders = settings.deadline_reminders
        model.reminder_hours = settings.reminder_hours
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_model(self, user_id: str) -> NotificationSettingsModel | None:
        return (
            self.session.query(NotificationSettingsModel)
            .filter(NotificationSettingsModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: NotificationSettingsModel) -> NotificationSettings:
        return NotificationSettings(
            email_notifications=model.email_notifications,
            push_notifications=model.push_notifications,
            deadline_reminders=model.deadline_reminders,
            reminder_hours=model.reminder_hours,
        )


__all__ = ["NotificationSettingsRepository"]
