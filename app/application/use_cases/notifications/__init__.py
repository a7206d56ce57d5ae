"""Notification components: delivery, push registration, background handling and storage."""

from .background_handler import (
    ACTION_DISMISS,
    ACTION_VIEW,
    NOTIFICATION_TAG,
    BackgroundDeliveryHandler,
    NavigationIntent,
    NotificationInteraction,
    PushPayload,
    parse_push_payload,
)
from .context import NotificationContext, NotificationContextRegistry
from .delivery_channel import DeliveryChannel, ScheduledNotification, schedule_deadline_reminder
from .demo import demo_notifications
from .generation import GenerationResult, NotificationGenerator, trigger_generation
from .host import NotificationHost, PermissionState
from .preferences import get_notification_settings, update_notification_settings
from .push_registration import (
    PushRegistrationManager,
    PushServiceConfig,
    RegistrationState,
    url_base64_to_bytes,
)
from .store import (
    DurableBackend,
    EphemeralBackend,
    NotificationPersistence,
    NotificationStore,
)

__all__ = [
    "ACTION_DISMISS",
    "ACTION_VIEW",
    "NOTIFICATION_TAG",
    "BackgroundDeliveryHandler",
    "NavigationIntent",
    "NotificationInteraction",
    "PushPayload",
    "parse_push_payload",
    "NotificationContext",
    "NotificationContextRegistry",
    "DeliveryChannel",
    "ScheduledNotification",
    "schedule_deadline_reminder",
    "demo_notifications",
    "GenerationResult",
    "NotificationGenerator",
    "trigger_generation",
    "NotificationHost",
    "PermissionState",
    "get_notification_settings",
    "update_notification_settings",
    "PushRegistrationManager",
    "PushServiceConfig",
    "RegistrationState",
    "url_base64_to_bytes",
    "DurableBackend",
    "EphemeralBackend",
    "NotificationPersistence",
    "NotificationStore",
]
