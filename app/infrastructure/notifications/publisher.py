"""Utility helpers to push messages to websocket subscribers."""

from __future__ import annotations

import asyncio
from typing import Any

from anyio import from_thread

from app.domain.entities import Notification

from .manager import NotificationConnectionManager


class NotificationPublisher:
    """Schedule fire-and-forget delivery of websocket messages."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._tasks: set[asyncio.Task[Any]] = set()

    def dispatch(self, user_id: str, event_type: str, data: Any) -> None:
        """Schedule ``event_type`` with ``data`` for every connection of ``user_id``."""

        message = {"type": event_type, "data": data}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            from_thread.run(self._manager.send_to_user, user_id, message)
        else:
            task = loop.create_task(self._manager.send_to_user(user_id, message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON representation of ``notification`` sent to clients."""

    return {
        "id": notification.id,
        "type": notification.kind.value,
        "title": notification.title,
        "message": notification.message,
        "deadline_id": notification.related_entity_id,
        "deadline_title": notification.related_entity_label,
        "created_at": notification.created_at.isoformat(),
        "read": notification.read,
        "priority": notification.priority.value,
    }


__all__ = ["NotificationPublisher", "serialize_notification"]
