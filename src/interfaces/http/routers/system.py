from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from src.config.settings import Settings
from src.infrastructure.scheduler.runner import run_scheduled_daily_tasks
from src.infrastructure.services.notification_service import NotificationService
from src.interfaces.http.deps import (
    get_app_settings,
    get_notification_service,
    require_cron_secret,
)
from src.interfaces.http.schemas.system import (
    AnnouncementRequest,
    AnnouncementResponse,
    DailyTasksResponse,
)

router = APIRouter(
    prefix="/system", tags=["system"], dependencies=[Depends(require_cron_secret)]
)
logger = logging.getLogger(__name__)


@router.post("/daily-tasks", response_model=DailyTasksResponse, response_model_by_alias=True)
async def trigger_daily_tasks(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> DailyTasksResponse:
    summary = await run_scheduled_daily_tasks(
        request.app.state.session_factory,
        settings,
        channel=request.app.state.realtime_channel,
        push_sender=getattr(request.app.state, "push_sender", None),
    )
    return DailyTasksResponse(**summary.to_dict())


@router.post("/announcements", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(
    payload: AnnouncementRequest,
    service: NotificationService = Depends(get_notification_service),
) -> AnnouncementResponse:
    created = await service.notify_system_announcement(
        payload.title, payload.message, payload.farm_ids, payload.priority
    )
    logger.info("System announcement sent to %d recipients", created)
    return AnnouncementResponse(created_count=created)
