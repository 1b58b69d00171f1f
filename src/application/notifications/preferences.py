from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, time, timezone
from typing import Any, Iterable, Mapping
from uuid import UUID
from zoneinfo import ZoneInfo

from src.application.errors import ValidationError
from src.application.interfaces.repositories.preferences import PreferencesRepository
from src.domain.models.delivery_preferences import DeliveryPreferences, is_quiet_hours

from .types import NotificationType

logger = logging.getLogger(__name__)

# Notification type -> DeliveryPreferences toggle. Types absent here are never filtered.
CATEGORY_FIELDS: dict[NotificationType, str] = {
    NotificationType.ACTIVITY_REMINDER: "activity_reminders",
    NotificationType.SCHEDULE_REMINDER: "activity_reminders",
    NotificationType.ACTIVITY_OVERDUE: "overdue_alerts",
    NotificationType.FARM_INVITATION: "farm_invitations",
    NotificationType.MEMBER_JOINED: "member_joined",
    NotificationType.ACTIVITY_COMPLETED: "new_activities",
    NotificationType.ACTIVITY_CREATED: "new_activities",
}

UPDATABLE_FIELDS = frozenset(
    {
        "activity_reminders",
        "overdue_alerts",
        "farm_invitations",
        "member_joined",
        "new_activities",
        "push_enabled",
        "email_enabled",
        "reminder_lead_minutes",
        "quiet_start",
        "quiet_end",
    }
)


def allows(preferences: DeliveryPreferences, ntype: NotificationType | str) -> bool:
    field_name = CATEGORY_FIELDS.get(NotificationType(ntype))
    if field_name is None:
        return True
    return bool(getattr(preferences, field_name))


class PreferencesResolver:
    """Reads and applies per-user delivery preferences."""

    def __init__(self, repo: PreferencesRepository, *, tz: ZoneInfo | None = None) -> None:
        self.repo = repo
        self.tz = tz

    async def get_or_create(self, user_id: UUID) -> DeliveryPreferences:
        prefs = await self.repo.get(user_id)
        if prefs is None:
            prefs = await self.repo.add(DeliveryPreferences.defaults(user_id))
            logger.info("Created default notification preferences for user=%s", user_id)
        return prefs

    async def update(self, user_id: UUID, changes: Mapping[str, Any]) -> DeliveryPreferences:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown preference fields", details={"fields": sorted(unknown)}
            )
        lead = changes.get("reminder_lead_minutes")
        if lead is not None and not 1 <= int(lead) <= 1440:
            raise ValidationError("reminder_lead_minutes must be between 1 and 1440")
        for key in ("quiet_start", "quiet_end"):
            if key in changes and changes[key] is not None and not isinstance(changes[key], time):
                raise ValidationError(f"{key} must be a time of day")

        current = await self.get_or_create(user_id)
        updated = replace(current, **dict(changes), updated_at=datetime.now(timezone.utc))
        return await self.repo.update(updated)

    async def should_notify(self, user_id: UUID, ntype: NotificationType | str) -> bool:
        ntype = NotificationType(ntype)
        if ntype is NotificationType.SYSTEM_ANNOUNCEMENT:
            return True
        prefs = await self.get_or_create(user_id)
        return allows(prefs, ntype)

    async def filter_recipients(
        self, user_ids: Iterable[UUID], ntype: NotificationType | str
    ) -> list[UUID]:
        """Drop recipients who opted out of the category, without creating rows."""
        ntype = NotificationType(ntype)
        user_ids = list(user_ids)
        if ntype not in CATEGORY_FIELDS or not user_ids:
            return user_ids
        stored = await self.repo.list_for_users(user_ids)
        return [uid for uid in user_ids if uid not in stored or allows(stored[uid], ntype)]

    def is_quiet_hours(self, prefs: DeliveryPreferences, now: datetime) -> bool:
        return is_quiet_hours(prefs.quiet_start, prefs.quiet_end, now, self.tz)
