"""Per-user wiring of the notification components."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from app.domain.entities import Notification, NotificationDraft

from .background_handler import BackgroundDeliveryHandler
from .delivery_channel import DeliveryChannel
from .host import NotificationHost
from .push_registration import PushRegistrationManager, PushServiceConfig
from .store import NotificationStore

logger = logging.getLogger(__name__)


@dataclass
class NotificationContext:
    """Components serving a single user.

    The store and the background handler share nothing; they only meet at the
    host.
    """

    user_id: str
    host: NotificationHost
    store: NotificationStore
    channel: DeliveryChannel
    push: PushRegistrationManager
    background: BackgroundDeliveryHandler

    async def notify(self, draft: NotificationDraft) -> Notification:
        """Create ``draft`` and raise a local toast for it."""

        notification = await self.store.create(draft)
        self.channel.show_now(
            notification.title,
            notification.message,
            {"notification_id": notification.id, "url": "/dashboard"},
        )
        return notification

    async def aclose(self) -> None:
        self.channel.cancel_all()
        await self.store.aclose()


class NotificationContextRegistry:
    """Create contexts lazily and keep the most recently used ones.

    At most ``max_contexts`` contexts are kept. When the limit is exceeded the
    least recently used idle contexts are dropped; a context is idle when its
    user has no live connection, no scheduled reminders and no pending writes.
    Busy contexts are never dropped, so the limit can be exceeded temporarily.
    """

    def __init__(
        self,
        *,
        host_factory: Callable[[str], NotificationHost],
        store_factory: Callable[[str], NotificationStore],
        push_config: PushServiceConfig,
        max_contexts: int = 1000,
        is_active: Callable[[str], bool] | None = None,
        on_evict: Callable[[str], None] | None = None,
    ) -> None:
        if max_contexts < 1:
            raise ValueError("max_contexts must be at least 1")
        self._host_factory = host_factory
        self._store_factory = store_factory
        self._push_config = push_config
        self._max_contexts = max_contexts
        self._is_active = is_active or (lambda user_id: False)
        self._on_evict = on_evict
        self._contexts: OrderedDict[str, NotificationContext] = OrderedDict()

    def __len__(self) -> int:
        return len(self._contexts)

    def get(self, user_id: str) -> NotificationContext:
        context = self._contexts.get(user_id)
        if context is not None:
            self._contexts.move_to_end(user_id)
            return context
        context = self._build(user_id)
        self._contexts[user_id] = context
        self._evict_overflow()
        return context

    def peek(self, user_id: str) -> NotificationContext | None:
        return self._contexts.get(user_id)

    async def release(self, user_id: str) -> bool:
        """Drop the context of ``user_id`` once its pending writes settle.

        Returns ``False`` when the context is still busy and was kept.
        """

        context = self._contexts.get(user_id)
        if context is None:
            return True
        await context.store.flush()
        if self._contexts.get(user_id) is not context:
            return True
        if not self._is_idle(context):
            return False
        self._discard(user_id)
        return True

    async def aclose(self) -> None:
        contexts = list(self._contexts.values())
        self._contexts.clear()
        for context in contexts:
            await context.aclose()
        logger.info("Closed %s notification context(s)", len(contexts))

    def _is_idle(self, context: NotificationContext) -> bool:
        return (
            not self._is_active(context.user_id)
            and not context.channel.scheduled
            and context.store.pending_writes == 0
        )

    def _evict_overflow(self) -> None:
        overflow = len(self._contexts) - self._max_contexts
        if overflow <= 0:
            return
        # The newest entry is the one being handed out; never evict it.
        for user_id in list(self._contexts)[:-1]:
            if overflow == 0:
                break
            if self._is_idle(self._contexts[user_id]):
                self._discard(user_id)
                overflow -= 1

    def _discard(self, user_id: str) -> None:
        self._contexts.pop(user_id, None)
        if self._on_evict is not None:
            self._on_evict(user_id)
        logger.debug("Dropped notification context for user %s", user_id)

    def _build(self, user_id: str) -> NotificationContext:
        host = self._host_factory(user_id)
        channel = DeliveryChannel(host)
        return NotificationContext(
            user_id=user_id,
            host=host,
            store=self._store_factory(user_id),
            channel=channel,
            push=PushRegistrationManager(host, channel, self._push_config),
            background=BackgroundDeliveryHandler(host),
        )


__all__ = ["NotificationContext", "NotificationContextRegistry"]
