from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, status

from src.application.notifications.types import NotificationType
from src.application.use_cases.notifications import (
    clear_notifications,
    delete_notification,
    get_preferences,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    update_preferences,
)
from src.config.settings import Settings, get_settings
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.infrastructure.realtime.channel import RealtimeChannel, RealtimeEventType
from src.infrastructure.realtime.events import publish_notifications
from src.infrastructure.realtime.stream import stream_subscription
from src.interfaces.http.deps import get_channel, get_current_user, get_uow
from src.interfaces.http.schemas.notifications import (
    DeleteResponse,
    MarkAsReadResponse,
    NotificationListResponse,
    NotificationSchema,
    PreferencesSchema,
    UpdateNotificationRequest,
    UpdatePreferencesRequest,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, farm_id: UUID | None = None) -> None:
    """Stream INSERT/UPDATE/DELETE events for the caller's notifications.

    The caller is identified by the gateway identity header, as on the HTTP
    routes; `farm_id` optionally narrows the stream to one farm.
    """
    settings: Settings = getattr(websocket.app.state, "settings", None) or get_settings()
    try:
        user_id = UUID(websocket.headers.get(settings.identity_header, ""))
    except ValueError:
        logger.warning(
            "WebSocket rejected: missing or invalid %s header", settings.identity_header
        )
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication failed")
        return

    channel: RealtimeChannel = websocket.app.state.realtime_channel
    await websocket.accept()
    subscription = channel.subscribe(user_id, farm_id)
    try:
        await stream_subscription(websocket, subscription)
    finally:
        channel.unsubscribe(subscription)


@router.get("", response_model=NotificationListResponse)
async def list_user_notifications(
    unread_only: bool = False,
    type: list[NotificationType] | None = Query(default=None),
    farm_id: UUID | None = None,
    limit: int = 50,
    offset: int = 0,
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
) -> NotificationListResponse:
    result = await list_notifications.execute(
        uow,
        user_id,
        unread_only=unread_only,
        types=type,
        farm_id=farm_id,
        limit=limit,
        offset=offset,
    )
    return NotificationListResponse(
        notifications=[NotificationSchema.model_validate(n) for n in result.items],
        total=result.total,
        unread_count=result.unread_count,
    )


@router.post("/mark-all-read", response_model=MarkAsReadResponse)
async def mark_all_notifications_as_read(
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    channel: RealtimeChannel = Depends(get_channel),
) -> MarkAsReadResponse:
    updated = await mark_all_as_read.execute(uow, user_id)
    publish_notifications(channel, RealtimeEventType.UPDATE, updated)
    return MarkAsReadResponse(marked_count=len(updated))


@router.get("/preferences", response_model=PreferencesSchema)
async def get_notification_preferences(
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
) -> PreferencesSchema:
    prefs = await get_preferences.execute(uow, user_id)
    return PreferencesSchema.model_validate(prefs)


@router.put("/preferences", response_model=PreferencesSchema)
async def update_notification_preferences(
    payload: UpdatePreferencesRequest,
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
) -> PreferencesSchema:
    prefs = await update_preferences.execute(uow, user_id, payload.model_dump(exclude_unset=True))
    return PreferencesSchema.model_validate(prefs)


@router.patch("/{notification_id}", response_model=MarkAsReadResponse)
async def update_notification(
    notification_id: UUID,
    payload: UpdateNotificationRequest,
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    channel: RealtimeChannel = Depends(get_channel),
) -> MarkAsReadResponse:
    if not payload.is_read:
        # Notifications cannot be marked unread again
        return MarkAsReadResponse(marked_count=0)
    updated = await mark_as_read.execute(uow, user_id, notification_id)
    publish_notifications(channel, RealtimeEventType.UPDATE, updated)
    return MarkAsReadResponse(marked_count=len(updated))


@router.delete("/{notification_id}", response_model=DeleteResponse)
async def delete_user_notification(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    channel: RealtimeChannel = Depends(get_channel),
) -> DeleteResponse:
    deleted = await delete_notification.execute(uow, user_id, notification_id)
    publish_notifications(channel, RealtimeEventType.DELETE, [deleted])
    return DeleteResponse(deleted_count=1)


@router.delete("", response_model=DeleteResponse)
async def clear_user_notifications(
    user_id: UUID = Depends(get_current_user),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    channel: RealtimeChannel = Depends(get_channel),
) -> DeleteResponse:
    deleted = await clear_notifications.execute(uow, user_id)
    publish_notifications(channel, RealtimeEventType.DELETE, deleted)
    return DeleteResponse(deleted_count=len(deleted))
