"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from app.application.use_cases.notifications import url_base64_to_bytes
from app.domain.entities import (
    MAX_REMINDER_HOURS,
    MIN_REMINDER_HOURS,
    Notification,
    NotificationDraft,
    NotificationKind,
    NotificationPriority,
    NotificationSettings,
    PushSubscription,
)
from app.domain.errors import InvalidKey


class NotificationCreate(BaseModel):
    """Payload used to create a notification."""

    type: NotificationKind
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    deadline_id: str | None = Field(default=None, max_length=64)
    deadline_title: str | None = Field(default=None, max_length=200)

    def to_draft(self) -> NotificationDraft:
        return NotificationDraft(
            kind=self.type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            related_entity_id=self.deadline_id,
            related_entity_label=self.deadline_title,
        )


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: str
    type: NotificationKind
    title: str
    message: str
    deadline_id: str | None = None
    deadline_title: str | None = None
    created_at: datetime
    read: bool
    priority: NotificationPriority

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id,
            type=notification.kind,
            title=notification.title,
            message=notification.message,
            deadline_id=notification.related_entity_id,
            deadline_title=notification.related_entity_label,
            created_at=notification.created_at,
            read=notification.read,
            priority=notification.priority,
        )


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int
    stale: bool = Field(
        default=False, description="True when the last refresh failed and cached data was returned"
    )


class UnreadCountResponse(BaseModel):
    unread_count: int


class NotificationSettingsRead(BaseModel):
    email_notifications: bool
    push_notifications: bool
    deadline_reminders: bool
    reminder_hours: int

    @classmethod
    def from_entity(cls, settings: NotificationSettings) -> "NotificationSettingsRead":
        return cls(
            email_notifications=settings.email_notifications,
            push_notifications=settings.push_notifications,
            deadline_reminders=settings.deadline_reminders,
            reminder_hours=settings.reminder_hours,
        )


class NotificationSettingsUpdate(BaseModel):
    email_notifications: bool | None = None
    push_notifications: bool | None = None
    deadline_reminders: bool | None = None
    reminder_hours: int | None = Field(
        default=None, ge=MIN_REMINDER_HOURS, le=MAX_REMINDER_HOURS
    )


class ReminderCreate(BaseModel):
    """Schedule a local alert either at ``at`` or ahead of ``due_at``."""

    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(default="", max_length=1000)
    at: datetime | None = None
    due_at: datetime | None = None

    @model_validator(mode="after")
    def _require_single_moment(self) -> "ReminderCreate":
        if (self.at is None) == (self.due_at is None):
            raise ValueError("Provide exactly one of 'at' or 'due_at'")
        return self


class ReminderRead(BaseModel):
    id: str
    title: str
    body: str
    when: datetime
    pending: bool


class PermissionRead(BaseModel):
    permission: str


class PushSubscriptionRead(BaseModel):
    state: str
    endpoint: str | None = None
    keys: dict[str, str] = Field(default_factory=dict)
    expiration_time: datetime | None = None

    @classmethod
    def from_entity(
        cls, state: str, subscription: PushSubscription | None
    ) -> "PushSubscriptionRead":
        if subscription is None:
            return cls(state=state)
        return cls(
            state=state,
            endpoint=subscription.endpoint,
            keys=dict(subscription.keys),
            expiration_time=subscription.expiration_time,
        )


class PushSubscribeRequest(BaseModel):
    relay_public_key: str | None = Field(
        default=None, description="Overrides the configured VAPID public key"
    )

    @field_validator("relay_public_key")
    @classmethod
    def _decodable_key(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                url_base64_to_bytes(value)
            except InvalidKey as exc:
                raise ValueError(str(exc)) from exc
        return value


class PushDeliveryResponse(BaseModel):
    displayed: bool


class GenerationResponse(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None
    detail: Any = None


__all__ = [
    "GenerationResponse",
    "NotificationCreate",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationSettingsRead",
    "NotificationSettingsUpdate",
    "PermissionRead",
    "PushDeliveryResponse",
    "PushSubscribeRequest",
    "PushSubscriptionRead",
    "ReminderCreate",
    "ReminderRead",
    "UnreadCountResponse",
]
