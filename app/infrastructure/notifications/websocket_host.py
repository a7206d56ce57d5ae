"""Notification host backed by the browser tabs connected over websocket.

Displays, closes and navigation requests are one-way messages. Permission
prompts, background handler registration and push subscription are
request/response exchanges: the server sends ``{"type", "id", "data"}`` and the
client answers with ``{"type": "response", "id", "data"}``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Mapping
from uuid import uuid4

import anyio

from app.application.use_cases.notifications import PermissionState
from app.domain.entities import PushSubscription

from .manager import NotificationConnectionManager
from .publisher import NotificationPublisher

logger = logging.getLogger(__name__)


class HostRequestFailed(RuntimeError):
    """The connected client could not complete a host request."""


class WebSocketNotificationHost:
    """Host implementation for one user's websocket connections."""

    supports_notifications = True
    supports_background_delivery = True

    def __init__(
        self,
        manager: NotificationConnectionManager,
        user_id: str,
        *,
        response_timeout: float = 30.0,
    ) -> None:
        self._manager = manager
        self._publisher = NotificationPublisher(manager)
        self.user_id = user_id
        self._response_timeout = response_timeout
        self._permission = PermissionState.DEFAULT
        self._pending: dict[str, asyncio.Future[dict[str, Any]]] = {}

    def permission(self) -> PermissionState:
        return self._permission

    def update_permission(self, value: str) -> PermissionState:
        """Record the permission state reported by the client."""

        try:
            self._permission = PermissionState(value)
        except ValueError:
            logger.warning("Ignoring unknown permission state %r", value)
        return self._permission

    async def request_permission(self) -> PermissionState:
        reply = await self._request("permission.request", {})
        return self.update_permission(str(reply.get("permission", "default")))

    def display(self, title: str, options: Mapping[str, Any]) -> None:
        self._publisher.dispatch(self.user_id, "notification.show", {"title": title, **options})

    def close_notification(self, tag: str | None) -> None:
        self._publisher.dispatch(self.user_id, "notification.close", {"tag": tag})

    async def register_background_handler(self, script_path: str) -> None:
        reply = await self._request("handler.register", {"path": script_path})
        if not reply.get("ok"):
            raise HostRequestFailed(reply.get("error") or "Handler registration rejected")

    async def background_ready(self) -> None:
        reply = await self._request("handler.ready", {})
        if not reply.get("ok"):
            raise HostRequestFailed(reply.get("error") or "Handler did not become ready")

    async def subscribe(
        self, *, user_visible_only: bool, application_server_key: bytes
    ) -> PushSubscription:
        encoded_key = base64.urlsafe_b64encode(application_server_key).rstrip(b"=").decode()
        reply = await self._request(
            "push.subscribe",
            {"userVisibleOnly": user_visible_only, "applicationServerKey": encoded_key},
        )
        if reply.get("error"):
            raise HostRequestFailed(str(reply["error"]))
        try:
            return PushSubscription.from_payload(reply.get("subscription") or {})
        except ValueError as exc:
            raise HostRequestFailed(str(exc)) from exc

    async def open_window(self, url: str) -> None:
        self._publisher.dispatch(self.user_id, "navigate", {"url": url})

    def resolve(self, request_id: str, data: Any) -> bool:
        """Complete the pending request ``request_id`` with the client's answer."""

        future = self._pending.pop(request_id, None)
        if future is None or future.done():
            return False
        future.set_result(data if isinstance(data, dict) else {"value": data})
        return True

    async def _request(self, message_type: str, data: dict[str, Any]) -> dict[str, Any]:
        if not self._manager.is_connected(self.user_id):
            raise HostRequestFailed("No client is connected for this user")

        request_id = uuid4().hex
        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            delivered = await self._manager.send_to_user(
                self.user_id, {"type": message_type, "id": request_id, "data": data}
            )
            if not delivered:
                raise HostRequestFailed("No client received the request")
            try:
                with anyio.fail_after(self._response_timeout):
                    return await future
            except TimeoutError as exc:
                raise HostRequestFailed(f"Client did not answer {message_type}") from exc
        finally:
            self._pending.pop(request_id, None)


class WebSocketHostRegistry:
    """Keep one :class:`WebSocketNotificationHost` per user."""

    def __init__(self, manager: NotificationConnectionManager, *, response_timeout: float) -> None:
        self._manager = manager
        self._response_timeout = response_timeout
        self._hosts: dict[str, WebSocketNotificationHost] = {}

    def __call__(self, user_id: str) -> WebSocketNotificationHost:
        host = self._hosts.get(user_id)
        if host is None:
            host = WebSocketNotificationHost(
                self._manager, user_id, response_timeout=self._response_timeout
            )
            self._hosts[user_id] = host
        return host

    def __len__(self) -> int:
        return len(self._hosts)

    def discard(self, user_id: str) -> None:
        """Forget the host of ``user_id``; a later call builds a fresh one."""

        self._hosts.pop(user_id, None)


__all__ = ["HostRequestFailed", "WebSocketHostRegistry", "WebSocketNotificationHost"]
