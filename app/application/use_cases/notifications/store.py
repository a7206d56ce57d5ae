"""Stateful notification collection shared by the in-page list and the badge.

The store keeps the collection in descending creation order and maintains the
unread counter incrementally. Two interchangeable backends decide what happens
behind each mutation: :class:`EphemeralBackend` keeps everything in memory,
:class:`DurableBackend` mirrors every change to a persistence gateway.

``mark_read``, ``mark_all_read``, ``delete`` and ``clear`` update local state
first. In durable mode the remote write then runs as a background task; if it
fails the failure is logged and the local change stays in place until the next
``list()`` reconciles it. A durable ``list()`` waits for pending writes before
it queries. ``create`` is never optimistic.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any, Protocol
from uuid import uuid4

from app.domain.entities import Notification, NotificationDraft
from app.domain.errors import RemoteReadFailed, RemoteWriteFailed
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

DEFAULT_FETCH_LIMIT = 50


class NotificationPersistence(Protocol):
    """Owner-scoped query/command interface of the durable store."""

    async def query(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str = "-created_at",
        limit: int | None = DEFAULT_FETCH_LIMIT,
    ) -> Sequence[Notification]: ...

    async def insert(self, draft: NotificationDraft) -> Notification: ...

    async def update(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> int: ...

    async def delete(self, filters: Mapping[str, Any] | None = None) -> int: ...


class EphemeralBackend:
    """Process-memory backend; nothing survives the store."""

    async def fetch(self) -> Sequence[Notification] | None:
        return None

    async def insert(self, draft: NotificationDraft) -> Notification:
        return Notification(
            id=f"local-{uuid4().hex}",
            kind=draft.kind,
            title=draft.title,
            message=draft.message,
            created_at=now_in_app_timezone(),
            read=False,
            priority=draft.priority,
            related_entity_id=draft.related_entity_id,
            related_entity_label=draft.related_entity_label,
        )

    def mark_read(self, notification_id: str) -> None:
        pass

    def mark_all_read(self) -> None:
        pass

    def delete(self, notification_id: str) -> None:
        pass

    def clear(self) -> None:
        pass

    @property
    def pending_writes(self) -> int:
        return 0

    async def flush(self) -> None:
        pass


class DurableBackend:
    """Backend mirroring every mutation to a :class:`NotificationPersistence`."""

    def __init__(
        self, persistence: NotificationPersistence, *, limit: int = DEFAULT_FETCH_LIMIT
    ) -> None:
        self._persistence = persistence
        self._limit = limit
        self._tasks: set[asyncio.Task[Any]] = set()

    async def fetch(self) -> Sequence[Notification] | None:
        # In-flight writes land first so a refresh cannot resurrect deleted rows.
        await self.flush()
        return await self._persistence.query(None, order_by="-created_at", limit=self._limit)

    async def insert(self, draft: NotificationDraft) -> Notification:
        return await self._persistence.insert(draft)

    def mark_read(self, notification_id: str) -> None:
        self._spawn(
            self._persistence.update({"id": notification_id}, {"read": True}),
            f"mark notification {notification_id} as read",
        )

    def mark_all_read(self) -> None:
        self._spawn(
            self._persistence.update({"read": False}, {"read": True}),
            "mark all notifications as read",
        )

    def delete(self, notification_id: str) -> None:
        self._spawn(
            self._persistence.delete({"id": notification_id}),
            f"delete notification {notification_id}",
        )

    def clear(self) -> None:
        self._spawn(self._persistence.delete(None), "clear notifications")

    @property
    def pending_writes(self) -> int:
        return len(self._tasks)

    async def flush(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, write: Awaitable[Any], description: str) -> None:
        task = asyncio.get_running_loop().create_task(write)
        self._tasks.add(task)

        def _done(finished: asyncio.Task[Any]) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                logger.warning("Background write cancelled: %s", description)
                return
            exc = finished.exception()
            if exc is not None:
                logger.error("Failed to %s: %s", description, exc)

        task.add_done_callback(_done)


class NotificationStore:
    """Notification collection plus unread counter over a single backend."""

    def __init__(self, backend: EphemeralBackend | DurableBackend) -> None:
        self._backend = backend
        self._notifications: tuple[Notification, ...] = ()
        self._unread_count = 0
        self.last_error: RemoteReadFailed | None = None
        # Bumped by every local mutation; a fetch that started earlier is stale.
        self._version = 0

    @classmethod
    def ephemeral(cls, seed: Iterable[Notification] = ()) -> "NotificationStore":
        store = cls(EphemeralBackend())
        store._replace(seed)
        return store

    @classmethod
    def durable(
        cls, persistence: NotificationPersistence, *, limit: int = DEFAULT_FETCH_LIMIT
    ) -> "NotificationStore":
        return cls(DurableBackend(persistence, limit=limit))

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self._notifications

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def pending_writes(self) -> int:
        """Number of background writes not yet settled."""

        return self._backend.pending_writes

    def get(self, notification_id: str) -> Notification | None:
        index = self._index_of(notification_id)
        return None if index is None else self._notifications[index]

    async def list(self) -> tuple[Notification, ...]:
        """Refresh from the backend (durable mode) and return the collection.

        A failed fetch keeps the last known state and records ``last_error``. A
        fetch overtaken by a local mutation is not applied; the next call
        reconciles.
        """

        version = self._version
        try:
            fetched = await self._backend.fetch()
        except RemoteReadFailed as exc:
            logger.error("Error fetching notifications: %s", exc)
            self.last_error = exc
            return self._notifications

        self.last_error = None
        if fetched is None:
            return self._notifications
        if version != self._version:
            logger.debug("Discarding notification fetch overtaken by a local change")
            return self._notifications
        self._replace(fetched)
        return self._notifications

    async def create(self, draft: NotificationDraft) -> Notification:
        try:
            notification = await self._backend.insert(draft)
        except RemoteWriteFailed as exc:
            logger.error("Error creating notification: %s", exc)
            raise

        self._version += 1
        if self._index_of(notification.id) is None:
            self._insert_ordered(notification)
            if not notification.read:
                self._unread_count += 1
        return notification

    async def mark_read(self, notification_id: str) -> None:
        self._version += 1
        index = self._index_of(notification_id)
        if index is not None and not self._notifications[index].read:
            items = list(self._notifications)
            items[index] = replace(items[index], read=True)
            self._notifications = tuple(items)
            self._unread_count -= 1
        self._backend.mark_read(notification_id)

    async def mark_all_read(self) -> None:
        self._version += 1
        self._notifications = tuple(
            item if item.read else replace(item, read=True) for item in self._notifications
        )
        self._unread_count = 0
        self._backend.mark_all_read()

    async def delete(self, notification_id: str) -> None:
        index = self._index_of(notification_id)
        if index is None:
            return
        self._version += 1
        removed = self._notifications[index]
        self._notifications = self._notifications[:index] + self._notifications[index + 1 :]
        if not removed.read:
            self._unread_count -= 1
        self._backend.delete(notification_id)

    async def clear(self) -> None:
        self._version += 1
        self._notifications = ()
        self._unread_count = 0
        self._backend.clear()

    async def flush(self) -> None:
        """Wait for outstanding background writes."""

        await self._backend.flush()

    async def aclose(self) -> None:
        await self.flush()

    def _replace(self, notifications: Iterable[Notification]) -> None:
        ordered = tuple(sorted(notifications, key=lambda item: item.created_at, reverse=True))
        self._notifications = ordered
        self._unread_count = sum(1 for item in ordered if not item.read)

    def _insert_ordered(self, notification: Notification) -> None:
        position = 0
        for position, existing in enumerate(self._notifications):
            if existing.created_at <= notification.created_at:
                break
        else:
            position = len(self._notifications)
        self._notifications = (
            self._notifications[:position] + (notification,) + self._notifications[position:]
        )

    def _index_of(self, notification_id: str) -> int | None:
        for index, item in enumerate(self._notifications):
            if item.id == notification_id:
                return index
        return None


__all__ = [
    "DEFAULT_FETCH_LIMIT",
    "DurableBackend",
    "EphemeralBackend",
    "NotificationPersistence",
    "NotificationStore",
]
