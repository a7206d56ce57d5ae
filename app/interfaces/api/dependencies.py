"""FastAPI dependency utilities."""

from fastapi import Depends, Header, Request

from app.application.use_cases.notifications import (
    NotificationContext,
    NotificationContextRegistry,
    NotificationGenerator,
)


def get_current_user_id(
    x_user_id: str = Header(..., alias="X-User-Id", min_length=1, max_length=64),
) -> str:
    """Return the owner id forwarded by the authentication layer."""

    return x_user_id.strip()


def get_context_registry(request: Request) -> NotificationContextRegistry:
    return request.app.state.notification_contexts


def get_notification_context(
    user_id: str = Depends(get_current_user_id),
    registry: NotificationContextRegistry = Depends(get_context_registry),
) -> NotificationContext:
    """Return the notification components of the current user."""

    return registry.get(user_id)


def get_notification_generator(request: Request) -> NotificationGenerator:
    return request.app.state.notification_generator
