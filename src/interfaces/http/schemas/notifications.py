from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from src.application.notifications.types import (
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from src.utils.datetime_tz import format_hhmm, parse_hhmm


class NotificationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    data: dict | None = None
    priority: NotificationPriority
    is_read: bool
    created_at: datetime
    read_at: datetime | None = None
    scheduled_at: datetime | None = None
    farm_id: UUID | None = None
    related_entity_type: RelatedEntityType | None = None
    related_entity_id: UUID | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationSchema]
    total: int
    unread_count: int


class UpdateNotificationRequest(BaseModel):
    is_read: bool = True


class MarkAsReadResponse(BaseModel):
    marked_count: int


class DeleteResponse(BaseModel):
    deleted_count: int


class PreferencesSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    activity_reminders: bool
    overdue_alerts: bool
    farm_invitations: bool
    member_joined: bool
    new_activities: bool
    push_enabled: bool
    email_enabled: bool
    reminder_lead_minutes: int
    quiet_start: time | None = None
    quiet_end: time | None = None
    updated_at: datetime

    @field_serializer("quiet_start", "quiet_end")
    def _hhmm(self, value: time | None) -> str | None:
        return format_hhmm(value)


class UpdatePreferencesRequest(BaseModel):
    activity_reminders: bool | None = None
    overdue_alerts: bool | None = None
    farm_invitations: bool | None = None
    member_joined: bool | None = None
    new_activities: bool | None = None
    push_enabled: bool | None = None
    email_enabled: bool | None = None
    reminder_lead_minutes: int | None = Field(default=None, ge=1, le=1440)
    quiet_start: time | None = None
    quiet_end: time | None = None

    @field_validator("quiet_start", "quiet_end", mode="before")
    @classmethod
    def parse_time_of_day(cls, value):
        if isinstance(value, str):
            try:
                return parse_hhmm(value)
            except ValueError as exc:
                raise ValueError("expected HH:MM") from exc
        return value
