"""Sample notifications used to populate ephemeral stores."""

from __future__ import annotations

from datetime import datetime, timedelta

from app.domain.entities import Notification, NotificationKind, NotificationPriority
from app.utils import now_in_app_timezone


def demo_notifications(now: datetime | None = None) -> list[Notification]:
    now = now or now_in_app_timezone()
    return [
        Notification(
            id="demo-1",
            kind=NotificationKind.DEADLINE_DUE,
            title="Deadline Today",
            message="Your project proposal is due today at 5:00 PM",
            created_at=now,
            priority=NotificationPriority.HIGH,
            related_entity_id="demo-deadline-1",
            related_entity_label="Project proposal",
        ),
        Notification(
            id="demo-2",
            kind=NotificationKind.REMINDER,
            title="Upcoming Deadline",
            message="Math assignment due in 2 days",
            created_at=now - timedelta(minutes=30),
            related_entity_id="demo-deadline-2",
            related_entity_label="Math assignment",
        ),
        Notification(
            id="demo-3",
            kind=NotificationKind.DEADLINE_OVERDUE,
            title="Overdue Reminder",
            message="Book report was due yesterday",
            created_at=now - timedelta(hours=2),
            read=True,
            priority=NotificationPriority.HIGH,
            related_entity_id="demo-deadline-3",
            related_entity_label="Book report",
        ),
    ]


__all__ = ["demo_notifications"]
