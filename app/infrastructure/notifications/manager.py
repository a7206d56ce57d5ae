"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Manage active websocket connections grouped by user."""

    def __init__(self) -> None:
        self._connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        self._connections[user_id].add(websocket)

    def disconnect(self, user_id: str, websocket: WebSocket) -> bool:
        """Remove ``websocket``; return ``True`` when it was the user's last one."""

        connections = self._connections.get(user_id)
        if connections is None:
            return True
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)
            return True
        return False

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every active connection for ``user_id``.

        Returns how many connections received it.
        """

        delivered = 0
        for connection in list(self._connections.get(user_id, set())):
            try:
                await connection.send_json(message)
            except Exception as exc:
                logger.warning("Dropping websocket for user %s: %s", user_id, exc)
                self.disconnect(user_id, connection)
            else:
                delivered += 1
        return delivered


__all__ = ["NotificationConnectionManager"]
