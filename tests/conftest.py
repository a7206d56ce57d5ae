"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

import pytest

TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="notifications-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ.setdefault("NOTIFICATION_MODE", "durable")
os.environ.setdefault("APP_TIMEZONE", "UTC")

from app.application.use_cases.notifications import PermissionState  # noqa: E402
from app.domain.entities import PushSubscription  # noqa: E402
from app.infrastructure.database import (  # noqa: E402
    build_engine,
    build_session_factory,
    initialize_database,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_factory():
    """Session factory bound to the shared sqlite test database."""

    engine = build_engine(os.environ["DATABASE_URL"])
    initialize_database(engine)
    yield build_session_factory(engine)
    engine.dispose()


class FakeHost:
    """In-memory notification host recording everything it is asked to do."""

    def __init__(
        self,
        *,
        notifications: bool = True,
        background: bool = True,
        permission: PermissionState = PermissionState.GRANTED,
        prompt_answer: PermissionState = PermissionState.GRANTED,
        register_error: Exception | None = None,
        subscribe_error: Exception | None = None,
    ) -> None:
        self._notifications = notifications
        self._background = background
        self._permission = permission
        self.prompt_answer = prompt_answer
        self.register_error = register_error
        self.subscribe_error = subscribe_error
        self.capability_checks = 0
        self.prompts = 0
        self.calls: list[str] = []
        self.displayed: list[tuple[str, Mapping[str, Any]]] = []
        self.closed: list[str | None] = []
        self.opened: list[str] = []
        self.subscribe_kwargs: dict[str, Any] | None = None

    @property
    def supports_notifications(self) -> bool:
        return self._notifications

    @property
    def supports_background_delivery(self) -> bool:
        self.capability_checks += 1
        return self._background

    def permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        self.prompts += 1
        self._permission = self.prompt_answer
        return self._permission

    def display(self, title: str, options: Mapping[str, Any]) -> None:
        self.displayed.append((title, dict(options)))

    def close_notification(self, tag: str | None) -> None:
        self.calls.append("close")
        self.closed.append(tag)

    async def register_background_handler(self, script_path: str) -> None:
        self.calls.append(f"register:{script_path}")
        await asyncio.sleep(0)
        if self.register_error is not None:
            raise self.register_error

    async def background_ready(self) -> None:
        await asyncio.sleep(0)
        self.calls.append("ready")

    async def subscribe(
        self, *, user_visible_only: bool, application_server_key: bytes
    ) -> PushSubscription:
        self.subscribe_kwargs = {
            "user_visible_only": user_visible_only,
            "application_server_key": application_server_key,
        }
        if self.subscribe_error is not None:
            raise self.subscribe_error
        return PushSubscription(
            endpoint="https://relay.example.com/push/abc",
            keys={"p256dh": "key", "auth": "secret"},
        )

    async def open_window(self, url: str) -> None:
        self.calls.append(f"open:{url}")
        self.opened.append(url)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()
