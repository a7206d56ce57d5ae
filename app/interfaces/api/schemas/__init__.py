from .notification import (
    GenerationResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationRead,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    PermissionRead,
    PushDeliveryResponse,
    PushSubscribeRequest,
    PushSubscriptionRead,
    ReminderCreate,
    ReminderRead,
    UnreadCountResponse,
)

__all__ = [
    "GenerationResponse",
    "NotificationCreate",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationSettingsRead",
    "NotificationSettingsUpdate",
    "PermissionRead",
    "PushDeliveryResponse",
    "PushSubscribeRequest",
    "PushSubscriptionRead",
    "ReminderCreate",
    "ReminderRead",
    "UnreadCountResponse",
]
