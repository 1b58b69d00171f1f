from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.scheduler.daily_tasks import DailyTasksSummary, run_daily_tasks
from src.config.settings import Settings
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.infrastructure.push.factory import PushSender
from src.infrastructure.realtime.channel import RealtimeChannel
from src.infrastructure.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


async def run_scheduled_daily_tasks(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    *,
    channel: RealtimeChannel | None = None,
    push_sender: PushSender | None = None,
    now: datetime | None = None,
) -> DailyTasksSummary:
    """Run the daily cycle against the SQL store, one session per step."""

    def service_factory(uow) -> NotificationService:
        return NotificationService.from_settings(uow, channel, settings, push_sender=push_sender)

    return await run_daily_tasks(
        lambda: SQLAlchemyUnitOfWork(session_factory),
        service_factory,
        settings,
        now=now,
    )
