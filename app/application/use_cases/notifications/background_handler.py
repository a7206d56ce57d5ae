"""Handling of inbound push payloads and notification interactions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from app.domain.errors import MalformedPayload

from .host import NotificationHost

logger = logging.getLogger(__name__)

NOTIFICATION_TAG = "deadline-notification"
ACTION_VIEW = "view"
ACTION_DISMISS = "dismiss"
DEFAULT_ICON = "/favicon.ico"


@dataclass(frozen=True)
class PushPayload:
    title: str
    body: str
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationInteraction:
    """A click or close event reported for a displayed notification."""

    action: str | None = None
    tag: str | None = NOTIFICATION_TAG
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NavigationIntent:
    """Request for the routing layer to open ``url``."""

    url: str


def parse_push_payload(raw: str | bytes | Mapping[str, Any] | None) -> PushPayload:
    """Decode ``raw`` into a :class:`PushPayload` or raise :class:`MalformedPayload`."""

    if raw is None or raw in (b"", ""):
        raise MalformedPayload("Push event carried no data")
    if isinstance(raw, Mapping):
        decoded: Any = raw
    else:
        try:
            decoded = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise MalformedPayload(f"Push payload is not JSON: {exc}") from exc

    if not isinstance(decoded, dict):
        raise MalformedPayload("Push payload must be a JSON object")
    title = decoded.get("title")
    body = decoded.get("body")
    if not isinstance(title, str) or not isinstance(body, str):
        raise MalformedPayload("Push payload requires string 'title' and 'body'")
    data = decoded.get("data") or {}
    if not isinstance(data, dict):
        raise MalformedPayload("Push payload 'data' must be an object")
    return PushPayload(title=title, body=body, data=data)


class BackgroundDeliveryHandler:
    """Translate push payloads and interactions into displays or navigation.

    Shares no state with the notification store; it only talks to the host.
    """

    def __init__(self, host: NotificationHost, *, default_url: str = "/dashboard") -> None:
        self._host = host
        self._default_url = default_url

    async def handle_push(self, raw: str | bytes | Mapping[str, Any] | None) -> bool:
        """Display the pushed notification; malformed payloads are dropped."""

        try:
            payload = parse_push_payload(raw)
        except MalformedPayload as exc:
            logger.warning("Dropping malformed push payload: %s", exc)
            return False

        self._host.display(
            payload.title,
            {
                "body": payload.body,
                "icon": DEFAULT_ICON,
                "badge": DEFAULT_ICON,
                "tag": NOTIFICATION_TAG,
                "data": dict(payload.data),
                "actions": [
                    {"action": ACTION_VIEW, "title": "View Deadline"},
                    {"action": ACTION_DISMISS, "title": "Dismiss"},
                ],
            },
        )
        return True

    async def handle_click(self, event: NotificationInteraction) -> NavigationIntent | None:
        """Close the notification, then open the app unless it was dismissed."""

        self._host.close_notification(event.tag)
        if event.action == ACTION_DISMISS:
            return None

        intent = NavigationIntent(url=self._target_url(event.data))
        try:
            await self._host.open_window(intent.url)
        except Exception:
            logger.exception("Failed to open %s after notification click", intent.url)
        return intent

    def handle_close(self, event: NotificationInteraction) -> None:
        logger.info("Notification was closed (tag=%s)", event.tag)

    def _target_url(self, data: Mapping[str, Any]) -> str:
        url = data.get("url") if data else None
        if isinstance(url, str) and url.startswith("/"):
            return url
        return self._default_url


__all__ = [
    "ACTION_DISMISS",
    "ACTION_VIEW",
    "NOTIFICATION_TAG",
    "BackgroundDeliveryHandler",
    "NavigationIntent",
    "NotificationInteraction",
    "PushPayload",
    "parse_push_payload",
]
