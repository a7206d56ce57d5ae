"""Domain entities describing user notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationKind(str, Enum):
    """Origin of a notification."""

    DEADLINE_DUE = "deadline_due"
    DEADLINE_OVERDUE = "deadline_overdue"
    REMINDER = "reminder"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class NotificationDraft:
    """Fields supplied by the caller when creating a notification.

    ``id``, ``created_at`` and ``read`` are always assigned by the store.
    """

    kind: NotificationKind
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    related_entity_id: str | None = None
    related_entity_label: str | None = None


@dataclass(frozen=True)
class Notification:
    """Immutable snapshot of a notification owned by a single user.

    ``related_entity_id`` points at the originating deadline but the
    notification never owns it.
    """

    id: str
    kind: NotificationKind
    title: str
    message: str
    created_at: datetime
    read: bool = False
    priority: NotificationPriority = NotificationPriority.MEDIUM
    related_entity_id: str | None = None
    related_entity_label: str | None = None


__all__ = [
    "Notification",
    "NotificationDraft",
    "NotificationKind",
    "NotificationPriority",
]
