"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from typing import Any, NoReturn

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Request,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationContext,
    NotificationGenerator,
    NotificationInteraction,
    PermissionState,
    ScheduledNotification,
    get_notification_settings,
    schedule_deadline_reminder,
    trigger_generation,
    update_notification_settings,
)
from app.domain.errors import (
    InvalidKey,
    NotificationError,
    NotReady,
    PermissionDenied,
    RegistrationFailed,
    RemoteWriteFailed,
    SubscriptionDenied,
    UnsupportedPlatform,
)
from app.infrastructure.database import get_db
from app.infrastructure.notifications import HostRequestFailed, serialize_notification
from app.interfaces.api.dependencies import (
    get_current_user_id,
    get_notification_context,
    get_notification_generator,
)
from app.interfaces.api.schemas import (
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

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

_ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (UnsupportedPlatform, status.HTTP_501_NOT_IMPLEMENTED),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (SubscriptionDenied, status.HTTP_403_FORBIDDEN),
    (NotReady, status.HTTP_409_CONFLICT),
    (InvalidKey, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (RegistrationFailed, status.HTTP_502_BAD_GATEWAY),
    (RemoteWriteFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
    (HostRequestFailed, status.HTTP_504_GATEWAY_TIMEOUT),
]


def _raise_http(exc: Exception) -> NoReturn:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    raise exc


def _list_response(context: NotificationContext) -> NotificationListResponse:
    return NotificationListResponse(
        notifications=[NotificationRead.from_entity(n) for n in context.store.notifications],
        unread_count=context.store.unread_count,
        stale=context.store.last_error is not None,
    )


def _reminder_to_schema(scheduled: ScheduledNotification) -> ReminderRead:
    return ReminderRead(
        id=scheduled.id,
        title=scheduled.title,
        body=scheduled.body,
        when=scheduled.when,
        pending=scheduled.pending,
    )


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    context: NotificationContext = Depends(get_notification_context),
) -> NotificationListResponse:
    """Return the most recent notifications for the current user."""

    await context.store.list()
    return _list_response(context)


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    context: NotificationContext = Depends(get_notification_context),
) -> NotificationRead:
    try:
        notification = await context.notify(payload.to_draft())
    except RemoteWriteFailed as exc:
        _raise_http(exc)
    return NotificationRead.from_entity(notification)


@router.post("/read-all", response_model=UnreadCountResponse)
async def mark_all_notifications_read(
    context: NotificationContext = Depends(get_notification_context),
) -> UnreadCountResponse:
    await context.store.mark_all_read()
    return UnreadCountResponse(unread_count=context.store.unread_count)


@router.post("/{notification_id}/read", response_model=UnreadCountResponse)
async def mark_notification_read(
    notification_id: str,
    context: NotificationContext = Depends(get_notification_context),
) -> UnreadCountResponse:
    await context.store.mark_read(notification_id)
    return UnreadCountResponse(unread_count=context.store.unread_count)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    context: NotificationContext = Depends(get_notification_context),
) -> Response:
    await context.store.delete(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_notifications(
    context: NotificationContext = Depends(get_notification_context),
) -> Response:
    await context.store.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/settings", response_model=NotificationSettingsRead)
def read_notification_settings(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NotificationSettingsRead:
    return NotificationSettingsRead.from_entity(get_notification_settings(db, user_id))


@router.put("/settings", response_model=NotificationSettingsRead)
def replace_notification_settings(
    payload: NotificationSettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> NotificationSettingsRead:
    try:
        settings = update_notification_settings(
            db, user_id, **payload.model_dump(exclude_none=True)
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return NotificationSettingsRead.from_entity(settings)


async def _generate(generator: NotificationGenerator) -> JSONResponse:
    result = await trigger_generation(generator)
    if result.success:
        body = GenerationResponse(success=True, message=result.message)
        return JSONResponse(body.model_dump(exclude_none=True))
    body = GenerationResponse(success=False, error=result.message, detail=result.error)
    return JSONResponse(
        body.model_dump(exclude_none=True),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@router.post("/generate", response_model=GenerationResponse)
async def generate_notifications(
    generator: NotificationGenerator = Depends(get_notification_generator),
) -> JSONResponse:
    """Ask the upstream procedure to materialize deadline notifications."""

    return await _generate(generator)


@router.get("/generate", response_model=GenerationResponse)
async def generate_notifications_cron(
    generator: NotificationGenerator = Depends(get_notification_generator),
) -> JSONResponse:
    """Same as ``POST /generate``; convenient for cron-style callers."""

    return await _generate(generator)


@router.post("/push", response_model=PushDeliveryResponse, status_code=status.HTTP_202_ACCEPTED)
async def receive_push(
    request: Request,
    context: NotificationContext = Depends(get_notification_context),
) -> PushDeliveryResponse:
    """Relay webhook: forward a pushed payload to the background handler."""

    displayed = await context.background.handle_push(await request.body())
    return PushDeliveryResponse(displayed=displayed)


@router.post("/permission", response_model=PermissionRead)
async def request_notification_permission(
    user_id: str = Depends(get_current_user_id),
    context: NotificationContext = Depends(get_notification_context),
    db: Session = Depends(get_db),
) -> PermissionRead:
    """Prompt for permission; a grant also enables push in the user's settings."""

    try:
        permission = await context.channel.request_permission()
    except (UnsupportedPlatform, HostRequestFailed) as exc:
        _raise_http(exc)
    if permission is PermissionState.GRANTED:
        update_notification_settings(db, user_id, push_notifications=True)
    return PermissionRead(permission=permission.value)


@router.get("/push/subscription", response_model=PushSubscriptionRead)
def read_push_subscription(
    context: NotificationContext = Depends(get_notification_context),
) -> PushSubscriptionRead:
    return PushSubscriptionRead.from_entity(context.push.state.value, context.push.subscription)


@router.post("/push/subscription", response_model=PushSubscriptionRead)
async def subscribe_to_push(
    payload: PushSubscribeRequest,
    context: NotificationContext = Depends(get_notification_context),
) -> PushSubscriptionRead:
    """Register the background handler if needed and subscribe to the relay."""

    try:
        await context.push.initialize()
        subscription = await context.push.subscribe(payload.relay_public_key)
    except NotificationError as exc:
        _raise_http(exc)
    return PushSubscriptionRead.from_entity(context.push.state.value, subscription)


@router.get("/reminders", response_model=list[ReminderRead])
def list_reminders(
    context: NotificationContext = Depends(get_notification_context),
) -> list[ReminderRead]:
    return [_reminder_to_schema(item) for item in context.channel.scheduled]


@router.post("/reminders", response_model=ReminderRead, status_code=status.HTTP_201_CREATED)
async def schedule_reminder(
    payload: ReminderCreate,
    user_id: str = Depends(get_current_user_id),
    context: NotificationContext = Depends(get_notification_context),
    db: Session = Depends(get_db),
) -> ReminderRead:
    """Schedule a best-effort local alert; it is lost if the service restarts."""

    if payload.at is not None:
        scheduled = context.channel.show_at(payload.title, payload.body, payload.at)
    else:
        settings = get_notification_settings(db, user_id)
        scheduled = schedule_deadline_reminder(
            context.channel, settings, title=payload.title, due_at=payload.due_at
        )
        if scheduled is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Deadline reminders are disabled for this user",
            )
    return _reminder_to_schema(scheduled)


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_reminder(
    reminder_id: str,
    context: NotificationContext = Depends(get_notification_context),
) -> Response:
    scheduled = context.channel.get_scheduled(reminder_id)
    if scheduled is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")
    scheduled.cancel()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _handle_client_message(context: NotificationContext, message: dict[str, Any]) -> None:
    message_type = message.get("type")
    data = message.get("data") if isinstance(message.get("data"), dict) else {}

    if message_type == "response":
        context.host.resolve(str(message.get("id")), data)
    elif message_type == "permission":
        context.host.update_permission(str(data.get("permission", "default")))
    elif message_type == "ack":
        ids = message.get("ids", [])
        if isinstance(ids, list):
            for notification_id in ids:
                await context.store.mark_read(str(notification_id))
    elif message_type in ("notification.click", "notification.close"):
        event = NotificationInteraction(
            action=data.get("action") or None,
            tag=data.get("tag"),
            data=data.get("data") if isinstance(data.get("data"), dict) else {},
        )
        if message_type == "notification.click":
            await context.background.handle_click(event)
        else:
            context.background.handle_close(event)


async def _send_snapshot(
    websocket: WebSocket, context: NotificationContext, message_type: str
) -> None:
    await context.store.list()
    await websocket.send_json(
        {
            "type": message_type,
            "data": {
                "notifications": [
                    serialize_notification(n) for n in context.store.notifications
                ],
                "unread_count": context.store.unread_count,
            },
        }
    )


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint acting as the notification host of the connected user."""

    user_id = (websocket.query_params.get("user_id") or "").strip()
    if not user_id:
        await websocket.close(code=1008)
        return

    manager = websocket.app.state.notification_connections
    contexts = websocket.app.state.notification_contexts
    context = contexts.get(user_id)
    await manager.connect(user_id, websocket)
    try:
        await _send_snapshot(websocket, context, "init")
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue
            if message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
                continue
            if message.get("type") == "refresh":
                await _send_snapshot(websocket, context, "snapshot")
                continue
            await _handle_client_message(context, message)
    except WebSocketDisconnect:
        pass
    finally:
        if manager.disconnect(user_id, websocket):
            # Last tab closed: reminders would have nowhere to show.
            context.channel.cancel_all()
            await contexts.release(user_id)


__all__ = ["router"]
