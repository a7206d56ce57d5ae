"""Exceptions raised by the notification subsystem."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for notification subsystem failures."""


class UnsupportedPlatform(NotificationError):
    """The host has no notification capability."""


class PlatformUnsupported(UnsupportedPlatform):
    """The host cannot run a background delivery handler."""


class PermissionDenied(NotificationError):
    """The user declined notification permission."""


class NotReady(NotificationError):
    """An operation was invoked out of registration order."""


class InvalidKey(NotificationError):
    """The relay public key is not valid URL-safe base64."""


class RegistrationFailed(NotificationError):
    """The background delivery handler could not be registered."""


class SubscriptionDenied(NotificationError):
    """The platform rejected the push subscription request."""


class RemoteReadFailed(NotificationError):
    """Reading from the durable store failed."""


class RemoteWriteFailed(NotificationError):
    """Writing to the durable store failed."""


class MalformedPayload(NotificationError):
    """An inbound push payload could not be decoded."""


class GenerationFailed(NotificationError):
    """The upstream notification generator reported an error."""


__all__ = [
    "NotificationError",
    "UnsupportedPlatform",
    "PlatformUnsupported",
    "PermissionDenied",
    "NotReady",
    "InvalidKey",
    "RegistrationFailed",
    "SubscriptionDenied",
    "RemoteReadFailed",
    "RemoteWriteFailed",
    "MalformedPayload",
    "GenerationFailed",
]
