"""SQLAlchemy model for persisted notifications."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from app.infrastructure.database import Base
from app.utils import now_in_app_timezone, to_utc_naive


def _new_notification_id() -> str:
    return str(uuid4())


def _created_now():
    return to_utc_naive(now_in_app_timezone())


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_owner_created", "user_id", "created_at"),)

    id = Column(String(36), primary_key=True, default=_new_notification_id)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    deadline_id = Column(String(64), nullable=True)
    deadline_title = Column(String(200), nullable=True)
    priority = Column(String(16), nullable=False, default="medium")
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False, default=_created_now)


__all__ = ["NotificationModel"]
