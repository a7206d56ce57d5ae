"""Immediate and timed delivery of notifications through the host."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Mapping
from uuid import uuid4

from app.domain.entities import NotificationSettings
from app.domain.errors import PermissionDenied, UnsupportedPlatform
from app.utils import seconds_until

from .host import NotificationHost, PermissionState

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/favicon.ico"


class ScheduledNotification:
    """Cancellable handle for a notification scheduled with :meth:`DeliveryChannel.show_at`.

    The timer lives in the current process only; if the process exits before
    ``when`` the notification is never shown.
    """

    def __init__(self, channel: "DeliveryChannel", title: str, body: str, when: datetime) -> None:
        self.id = uuid4().hex
        self.title = title
        self.body = body
        self.when = when
        self._channel = channel
        self._timer: asyncio.TimerHandle | None = None
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def cancelled(self) -> bool:
        return self._timer is not None and self._timer.cancelled()

    @property
    def pending(self) -> bool:
        return not (self._fired or self.cancelled)

    def cancel(self) -> None:
        """Prevent the notification from firing. Safe to call more than once."""

        if self._timer is not None and not self._fired:
            self._timer.cancel()
        self._channel._forget(self)

    def _fire(self) -> None:
        self._fired = True
        self._channel._forget(self)
        self._channel.show_now(self.title, self.body)


class DeliveryChannel:
    """Wrap host permission state and expose "show now" and "show at" operations."""

    def __init__(self, host: NotificationHost, *, icon: str = DEFAULT_ICON) -> None:
        self._host = host
        self._icon = icon
        self._scheduled: dict[str, ScheduledNotification] = {}

    @property
    def supported(self) -> bool:
        return bool(self._host.supports_notifications)

    def permission(self) -> PermissionState:
        if not self.supported:
            return PermissionState.DENIED
        return self._host.permission()

    async def request_permission(self) -> PermissionState:
        """Ask the user for permission unless a final answer is already known."""

        if not self.supported:
            raise UnsupportedPlatform("This host does not support notifications")
        current = self._host.permission()
        if current is not PermissionState.DEFAULT:
            return current
        return await self._host.request_permission()

    async def require_permission(self) -> None:
        """Raise :class:`PermissionDenied` unless permission ends up granted."""

        if await self.request_permission() is not PermissionState.GRANTED:
            raise PermissionDenied("Notification permission was not granted")

    def show_now(
        self, title: str, body: str, metadata: Mapping[str, Any] | None = None
    ) -> bool:
        """Display a notification right away; return whether it was handed to the host."""

        if self.permission() is not PermissionState.GRANTED:
            logger.debug("Skipping notification %r: permission not granted", title)
            return False
        options: dict[str, Any] = {"body": body, "icon": self._icon, "badge": self._icon}
        if metadata:
            options["data"] = dict(metadata)
        self._host.display(title, options)
        return True

    def show_at(self, title: str, body: str, when: datetime) -> ScheduledNotification:
        """Schedule :meth:`show_now` for ``when``; past times fire as soon as possible."""

        loop = asyncio.get_running_loop()
        scheduled = ScheduledNotification(self, title, body, when)
        scheduled._timer = loop.call_later(seconds_until(when), scheduled._fire)
        self._scheduled[scheduled.id] = scheduled
        return scheduled

    def get_scheduled(self, scheduled_id: str) -> ScheduledNotification | None:
        return self._scheduled.get(scheduled_id)

    @property
    def scheduled(self) -> tuple[ScheduledNotification, ...]:
        return tuple(self._scheduled.values())

    def cancel_all(self) -> int:
        """Cancel every pending timer created by this channel."""

        pending = list(self._scheduled.values())
        for scheduled in pending:
            scheduled.cancel()
        if pending:
            logger.info("Cancelled %s scheduled notification(s)", len(pending))
        return len(pending)

    def _forget(self, scheduled: ScheduledNotification) -> None:
        self._scheduled.pop(scheduled.id, None)


def schedule_deadline_reminder(
    channel: DeliveryChannel,
    settings: NotificationSettings,
    *,
    title: str,
    due_at: datetime,
) -> ScheduledNotification | None:
    """Schedule a reminder ``settings.reminder_hours`` before ``due_at``.

    Returns ``None`` when the user disabled deadline reminders.
    """

    if not settings.deadline_reminders:
        return None
    remind_at = due_at - timedelta(hours=settings.reminder_hours)
    body = f"'{title}' is due in {settings.reminder_hours} hour(s)"
    return channel.show_at("Upcoming deadline", body, remind_at)


__all__ = [
    "DEFAULT_ICON",
    "DeliveryChannel",
    "ScheduledNotification",
    "schedule_deadline_reminder",
]
