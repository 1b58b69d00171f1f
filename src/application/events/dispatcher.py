from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.events.models import (
    ActivityCompletedEvent,
    ActivityCreatedEvent,
    MemberJoinedEvent,
)
from src.config.settings import Settings, get_settings
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.infrastructure.push.factory import PushSender
from src.infrastructure.realtime.channel import RealtimeChannel
from src.infrastructure.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


async def dispatch_events(
    session_factory: async_sessionmaker[AsyncSession],
    events: Iterable[object],
    *,
    channel: RealtimeChannel | None = None,
    push_sender: PushSender | None = None,
    settings: Settings | None = None,
) -> int:
    """
    Dispatch domain events post-commit. Uses a transient session for reads and
    notification writes. Safe to call in a background task.
    Returns the number of notifications created.
    """
    events = list(events)
    if not events:
        return 0

    settings = settings or get_settings()
    created = 0
    async with SQLAlchemyUnitOfWork(session_factory) as uow:
        service = NotificationService.from_settings(
            uow, channel, settings, push_sender=push_sender
        )
        for event in events:
            try:
                created += await _dispatch_one(service, event)
            except Exception as e:
                await uow.rollback()
                logger.error(
                    "Error dispatching event %s: %s", type(event).__name__, e, exc_info=True
                )
    return created


async def _dispatch_one(service: NotificationService, event: object) -> int:
    if isinstance(event, ActivityCreatedEvent):
        return await service.notify_activity_created(event.activity_id, event.actor_user_id)
    if isinstance(event, ActivityCompletedEvent):
        return await service.notify_activity_completed(event.activity_id, event.actor_user_id)
    if isinstance(event, MemberJoinedEvent):
        return await service.notify_member_joined(event.farm_id, event.new_member_id)
    logger.warning("No handler for event %s", type(event).__name__)
    return 0
