"""Registration of the background handler and push relay subscription."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum

from app.domain.entities import PushSubscription
from app.domain.errors import (
    InvalidKey,
    NotReady,
    PlatformUnsupported,
    RegistrationFailed,
    SubscriptionDenied,
)

from .delivery_channel import DeliveryChannel
from .host import NotificationHost, PermissionState

logger = logging.getLogger(__name__)


class RegistrationState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    READY = "ready"
    SUBSCRIBED = "subscribed"
    FAILED = "failed"


@dataclass(frozen=True)
class PushServiceConfig:
    """Static configuration of a :class:`PushRegistrationManager`."""

    vapid_public_key: str | None = None
    service_worker_path: str = "/sw.js"


def url_base64_to_bytes(value: str) -> bytes:
    """Decode a URL-safe base64 relay key, tolerating missing padding.

    The input is padded to a multiple of four characters and ``-``/``_`` are
    mapped to ``+``/``/`` before a strict decode.
    """

    if not isinstance(value, str) or not value.strip():
        raise InvalidKey("Relay public key is empty")
    value = value.strip()
    padding = "=" * ((4 - len(value) % 4) % 4)
    standard = (value + padding).replace("-", "+").replace("_", "/")
    try:
        return base64.b64decode(standard, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKey(f"Relay public key is not valid base64: {exc}") from exc


class PushRegistrationManager:
    """Own the push subscription of one host.

    Unregistered -> Registering -> Ready -> Subscribed, with Failed reachable
    from Registering and from a rejected subscribe.
    """

    def __init__(
        self,
        host: NotificationHost,
        channel: DeliveryChannel,
        config: PushServiceConfig,
    ) -> None:
        self._host = host
        self._channel = channel
        self._config = config
        self._state = RegistrationState.UNREGISTERED
        self._supported: bool | None = None
        self._subscription: PushSubscription | None = None

    @property
    def state(self) -> RegistrationState:
        return self._state

    @property
    def subscription(self) -> PushSubscription | None:
        return self._subscription

    @property
    def supported(self) -> bool:
        if self._supported is None:
            self._supported = bool(
                self._host.supports_background_delivery
                and self._host.supports_notifications
            )
        return self._supported

    async def initialize(self) -> RegistrationState:
        """Register the background handler and wait until it is ready."""

        if not self.supported:
            raise PlatformUnsupported("Push notifications are not supported")
        if self._state in (RegistrationState.READY, RegistrationState.SUBSCRIBED):
            return self._state
        if self._state is RegistrationState.REGISTERING:
            raise NotReady("Registration is already in progress")

        self._state = RegistrationState.REGISTERING
        try:
            await self._host.register_background_handler(self._config.service_worker_path)
            await self._host.background_ready()
        except Exception as exc:
            self._state = RegistrationState.FAILED
            logger.error("Background handler registration failed: %s", exc)
            raise RegistrationFailed(str(exc)) from exc
        except BaseException:
            # Abandoned by the caller; allow a later retry.
            self._state = RegistrationState.UNREGISTERED
            raise

        self._state = RegistrationState.READY
        logger.info("Background handler registered at %s", self._config.service_worker_path)
        return self._state

    async def subscribe(self, relay_public_key: str | None = None) -> PushSubscription:
        """Subscribe to the push relay; only valid once :meth:`initialize` finished."""

        if self._state is not RegistrationState.READY:
            raise NotReady(f"Cannot subscribe while {self._state.value}")

        key = relay_public_key or self._config.vapid_public_key
        if not key:
            raise InvalidKey("Relay public key is not configured")
        application_server_key = url_base64_to_bytes(key)

        if self._channel.permission() is PermissionState.DENIED:
            self._state = RegistrationState.FAILED
            raise SubscriptionDenied("Notification permission is denied")

        try:
            subscription = await self._host.subscribe(
                user_visible_only=True,
                application_server_key=application_server_key,
            )
        except Exception as exc:
            self._state = RegistrationState.FAILED
            logger.error("Failed to subscribe to push notifications: %s", exc)
            raise SubscriptionDenied(str(exc)) from exc

        self._subscription = subscription
        self._state = RegistrationState.SUBSCRIBED
        return subscription


__all__ = [
    "PushRegistrationManager",
    "PushServiceConfig",
    "RegistrationState",
    "url_base64_to_bytes",
]
