"""Contract of the platform that actually shows notifications to the user."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Protocol

from app.domain.entities import PushSubscription


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"


class NotificationHost(Protocol):
    """Capabilities the notification subsystem needs from its host.

    ``subscribe`` raises any exception when the platform rejects the request;
    ``register_background_handler`` does the same when registration fails.
    """

    @property
    def supports_notifications(self) -> bool: ...

    @property
    def supports_background_delivery(self) -> bool: ...

    def permission(self) -> PermissionState: ...

    async def request_permission(self) -> PermissionState: ...

    def display(self, title: str, options: Mapping[str, Any]) -> None: ...

    def close_notification(self, tag: str | None) -> None: ...

    async def register_background_handler(self, script_path: str) -> None: ...

    async def background_ready(self) -> None: ...

    async def subscribe(
        self, *, user_visible_only: bool, application_server_key: bytes
    ) -> PushSubscription: ...

    async def open_window(self, url: str) -> None: ...


__all__ = ["NotificationHost", "PermissionState"]
