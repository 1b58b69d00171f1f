from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.application.notifications.types import NotificationPriority


class DailyTasksResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    duration_ms: int
    recurring_schedules_processed: int
    notifications_sent: int
    invitations_cleaned_up: int
    notifications_cleaned_up: int
    errors_count: int
    errors: list[str]


class AnnouncementRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    farm_ids: list[UUID] | None = None
    priority: NotificationPriority = NotificationPriority.NORMAL


class AnnouncementResponse(BaseModel):
    created_count: int
