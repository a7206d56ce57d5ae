"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager
from .publisher import NotificationPublisher, serialize_notification
from .websocket_host import (
    HostRequestFailed,
    WebSocketHostRegistry,
    WebSocketNotificationHost,
)

__all__ = [
    "NotificationConnectionManager",
    "NotificationPublisher",
    "serialize_notification",
    "HostRequestFailed",
    "WebSocketHostRegistry",
    "WebSocketNotificationHost",
]
