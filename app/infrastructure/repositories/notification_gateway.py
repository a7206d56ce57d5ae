"""Async adapter exposing :class:`NotificationRepository` to the event loop."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from typing import Any, TypeVar

from anyio import to_thread
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationDraft
from app.domain.errors import RemoteReadFailed, RemoteWriteFailed

from .notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlNotificationPersistence:
    """Run repository calls in worker threads with a fresh session each time.

    Database errors are translated into :class:`RemoteReadFailed` and
    :class:`RemoteWriteFailed` so callers never see driver exceptions.
    """

    def __init__(self, session_factory: Callable[[], Session], owner_id: str) -> None:
        self._session_factory = session_factory
        self.owner_id = owner_id

    async def query(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str = "-created_at",
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        return await self._run(
            lambda repo: repo.query(filters, order_by=order_by, limit=limit),
            RemoteReadFailed,
        )

    async def insert(self, draft: NotificationDraft) -> Notification:
        return await self._run(lambda repo: repo.insert(draft), RemoteWriteFailed)

    async def update(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        return await self._run(lambda repo: repo.update(filters, patch), RemoteWriteFailed)

    async def delete(self, filters: Mapping[str, Any] | None = None) -> int:
        return await self._run(lambda repo: repo.delete(filters), RemoteWriteFailed)

    async def _run(
        self,
        operation: Callable[[NotificationRepository], T],
        error_type: type[RemoteReadFailed] | type[RemoteWriteFailed],
    ) -> T:
        return await to_thread.run_sync(partial(self._execute, operation, error_type))

    def _execute(
        self,
        operation: Callable[[NotificationRepository], T],
        error_type: type[RemoteReadFailed] | type[RemoteWriteFailed],
    ) -> T:
        session: Session | None = None
        try:
            session = self._session_factory()
            return operation(NotificationRepository(session, self.owner_id))
        except SQLAlchemyError as exc:
            if session is not None:
                session.rollback()
            logger.debug("Notification persistence call failed", exc_info=True)
            raise error_type(str(exc)) from exc
        finally:
            if session is not None:
                session.close()


__all__ = ["SqlNotificationPersistence"]
