"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.infrastructure.database import Base
from app.infrastructure.models.notification import _created_now


class NotificationSettingsModel(Base):
    """Database representation for notification preferences."""

    __tablename__ = "notification_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=False)
    deadline_reminders = Column(Boolean, nullable=False, default=True)
    reminder_hours = Column(Integer, nullable=False, default=24)
    updated_at = Column(DateTime(), nullable=False, default=_created_now, onupdate=_created_now)


__all__ = ["NotificationSettingsModel"]
