"""Typed payload shapes stored in ``Notification.data``.

The store keeps the payload as a JSON blob; clients that understand a
notification type decode it with :func:`parse_payload` instead of reaching
into untyped dicts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .types import NotificationType


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    def to_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ReminderPayload(_Payload):
    activity_id: UUID | None = None
    schedule_id: UUID | None = None
    animal_id: UUID
    animal_name: str
    scheduled_date: datetime
    reminder_minutes: int
    is_recurring: bool | None = None


class OverduePayload(_Payload):
    activity_id: UUID | None = None
    schedule_id: UUID | None = None
    animal_id: UUID
    animal_name: str
    original_date: datetime
    overdue_days: int


class InvitationPayload(_Payload):
    invitation_id: UUID
    farm_id: UUID
    farm_name: str
    inviter_name: str
    invitee_phone_number: str


class MemberJoinedPayload(_Payload):
    farm_id: UUID
    farm_name: str
    new_member_id: UUID
    new_member_name: str


class ActivityEventPayload(_Payload):
    activity_id: UUID
    animal_id: UUID
    animal_name: str
    actor_name: str
    activity_date: datetime | None = None
    occurred_at: datetime


class AnnouncementPayload(_Payload):
    target_farm_ids: list[UUID] | None = None
    announcement_date: datetime


PAYLOAD_MODELS: dict[NotificationType, type[_Payload]] = {
    NotificationType.ACTIVITY_REMINDER: ReminderPayload,
    NotificationType.SCHEDULE_REMINDER: ReminderPayload,
    NotificationType.ACTIVITY_OVERDUE: OverduePayload,
    NotificationType.FARM_INVITATION: InvitationPayload,
    NotificationType.MEMBER_JOINED: MemberJoinedPayload,
    NotificationType.ACTIVITY_COMPLETED: ActivityEventPayload,
    NotificationType.ACTIVITY_CREATED: ActivityEventPayload,
    NotificationType.SYSTEM_ANNOUNCEMENT: AnnouncementPayload,
}


def parse_payload(ntype: NotificationType | str, data: dict[str, Any] | None) -> _Payload:
    model = PAYLOAD_MODELS[NotificationType(ntype)]
    return model.model_validate(data or {})
