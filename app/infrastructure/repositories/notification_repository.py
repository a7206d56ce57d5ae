"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Query, Session

from app.domain.entities import (
    Notification,
    NotificationDraft,
    NotificationKind,
    NotificationPriority,
)
from app.infrastructure.models import NotificationModel
from app.utils import ensure_app_timezone, now_in_app_timezone, to_utc_naive

# Entity field name -> ORM column.
_COLUMNS = {
    "id": NotificationModel.id,
    "kind": NotificationModel.type,
    "read": NotificationModel.read,
    "priority": NotificationModel.priority,
    "related_entity_id": NotificationModel.deadline_id,
    "created_at": NotificationModel.created_at,
}

_PATCHABLE = {"read"}


class NotificationRepository:
    """Owner-scoped query/insert/update/delete over stored notifications.

    Every statement is filtered by ``owner_id``; there is no way to issue an
    unscoped query through this class.
    """

    def __init__(self, session: Session, owner_id: str) -> None:
        if not owner_id:
            raise ValueError("owner_id is required for notification queries")
        self.session = session
        self.owner_id = owner_id

    def query(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str = "-created_at",
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = self._scoped(filters)
        descending = order_by.startswith("-")
        column = self._column(order_by.lstrip("-"))
        if descending:
            query = query.order_by(column.desc(), NotificationModel.id.desc())
        else:
            query = query.order_by(column.asc(), NotificationModel.id.asc())
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def insert(self, draft: NotificationDraft) -> Notification:
        model = NotificationModel(
            user_id=self.owner_id,
            type=NotificationKind(draft.kind).value,
            title=draft.title,
            message=draft.message,
            deadline_id=draft.related_entity_id,
            deadline_title=draft.related_entity_label,
            priority=NotificationPriority(draft.priority).value,
            read=False,
            created_at=to_utc_naive(now_in_app_timezone()),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        unknown = set(patch) - _PATCHABLE
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        values = {_COLUMNS[name]: value for name, value in patch.items()}
        updated = self._scoped(filters).update(values, synchronize_session=False)
        self.session.commit()
        return updated

    def delete(self, filters: Mapping[str, Any] | None = None) -> int:
        deleted = self._scoped(filters).delete(synchronize_session=False)
        self.session.commit()
        return deleted

    def _scoped(self, filters: Mapping[str, Any] | None) -> Query:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == self.owner_id
        )
        for name, value in (filters or {}).items():
            column = self._column(name)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_([self._plain(item) for item in value]))
            else:
                query = query.filter(column == self._plain(value))
        return query

    @staticmethod
    def _column(name: str):
        try:
            return _COLUMNS[name]
        except KeyError:
            raise ValueError(f"Unknown notification field '{name}'") from None

    @staticmethod
    def _plain(value: Any) -> Any:
        if isinstance(value, (NotificationKind, NotificationPriority)):
            return value.value
        return value

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            kind=NotificationKind(model.type),
            title=model.title,
            message=model.message,
            created_at=ensure_app_timezone(model.created_at),
            read=bool(model.read),
            priority=NotificationPriority(model.priority),
            related_entity_id=model.deadline_id,
            related_entity_label=model.deadline_title,
        )


__all__ = ["NotificationRepository"]
