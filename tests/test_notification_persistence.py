"""Integration tests for the SQLAlchemy-backed notification persistence."""

from __future__ import annotations

from uuid import uuid4

import pytest

from app.application.use_cases.notifications import NotificationStore
from app.domain.entities import NotificationDraft, NotificationKind, NotificationPriority
from app.domain.errors import RemoteReadFailed
from app.infrastructure.repositories import NotificationRepository, SqlNotificationPersistence

pytestmark = pytest.mark.anyio


def _draft(title: str, kind: NotificationKind = NotificationKind.REMINDER) -> NotificationDraft:
    return NotificationDraft(
        kind=kind,
        title=title,
        message=f"{title} message",
        priority=NotificationPriority.LOW,
        related_entity_id="deadline-7",
        related_entity_label="Lab report",
    )


def _owner() -> str:
    return f"user-{uuid4().hex[:8]}"


async def test_insert_assigns_identity_and_defaults(session_factory) -> None:
    persistence = SqlNotificationPersistence(session_factory, _owner())

    created = await persistence.insert(_draft("Lab"))

    assert created.id
    assert created.read is False
    assert created.created_at.tzinfo is not None
    assert created.kind is NotificationKind.REMINDER
    assert created.related_entity_label == "Lab report"


async def test_queries_are_scoped_to_owner(session_factory) -> None:
    alice = SqlNotificationPersistence(session_factory, _owner())
    bob = SqlNotificationPersistence(session_factory, _owner())
    await alice.insert(_draft("Alice"))

    assert await bob.query() == []
    assert await bob.update({}, {"read": True}) == 0
    assert await bob.delete(None) == 0
    assert [n.title for n in await alice.query()] == ["Alice"]


async def test_update_and_delete_by_filter(session_factory) -> None:
    persistence = SqlNotificationPersistence(session_factory, _owner())
    first = await persistence.insert(_draft("first"))
    await persistence.insert(_draft("second"))

    assert await persistence.update({"id": first.id}, {"read": True}) == 1
    assert [n.title for n in await persistence.query({"read": False})] == ["second"]

    assert await persistence.update({"read": False}, {"read": True}) == 1
    assert await persistence.query({"read": False}) == []

    assert await persistence.delete({"id": first.id}) == 1
    assert [n.title for n in await persistence.query()] == ["second"]


async def test_repository_requires_owner_and_rejects_unknown_fields(session_factory) -> None:
    session = session_factory()
    try:
        with pytest.raises(ValueError):
            NotificationRepository(session, "")
        repository = NotificationRepository(session, _owner())
        with pytest.raises(ValueError):
            repository.update({"id": "x"}, {"title": "changed"})
        with pytest.raises(ValueError):
            repository.query({"owner": "someone-else"})
    finally:
        session.close()


async def test_durable_store_round_trip_through_database(session_factory) -> None:
    owner = _owner()
    store = NotificationStore.durable(SqlNotificationPersistence(session_factory, owner))

    first = await store.create(_draft("first"))
    second = await store.create(_draft("second", NotificationKind.DEADLINE_OVERDUE))
    await store.mark_read(first.id)
    await store.flush()

    reloaded = NotificationStore.durable(SqlNotificationPersistence(session_factory, owner))
    listed = await reloaded.list()

    assert [n.id for n in listed] == [second.id, first.id]
    assert reloaded.unread_count == 1


async def test_database_errors_become_remote_failures() -> None:
    def broken_session():
        from sqlalchemy.exc import OperationalError

        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    persistence = SqlNotificationPersistence(broken_session, _owner())

    with pytest.raises(RemoteReadFailed):
        await persistence.query()
