from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

DEFAULT_REMINDER_LEAD_MINUTES = 30


@dataclass(slots=True)
class DeliveryPreferences:
    id: UUID
    user_id: UUID
    activity_reminders: bool = True
    overdue_alerts: bool = True
    farm_invitations: bool = True
    member_joined: bool = True
    new_activities: bool = True
    push_enabled: bool = False
    email_enabled: bool = False
    reminder_lead_minutes: int = DEFAULT_REMINDER_LEAD_MINUTES
    quiet_start: time | None = None
    quiet_end: time | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def defaults(cls, user_id: UUID) -> DeliveryPreferences:
        return cls(id=uuid4(), user_id=user_id)

    def is_quiet_hours(self, now: datetime, tz: ZoneInfo | None = None) -> bool:
        return is_quiet_hours(self.quiet_start, self.quiet_end, now, tz)


def is_quiet_hours(
    start: time | None,
    end: time | None,
    now: datetime | time,
    tz: ZoneInfo | None = None,
) -> bool:
    """Return True when `now` falls inside the [start, end] quiet window.

    A window with start > end wraps past midnight (22:00-06:00). Both bounds
    are inclusive and compared at minute resolution. Aware datetimes are
    converted to `tz` before taking the time of day.
    """
    if start is None or end is None:
        return False
    if isinstance(now, datetime):
        if tz is not None and now.tzinfo is not None:
            now = now.astimezone(tz)
        now = now.time()
    current = now.hour * 60 + now.minute
    start_min = start.hour * 60 + start.minute
    end_min = end.hour * 60 + end.minute
    if start_min > end_min:
        return current >= start_min or current <= end_min
    return start_min <= current <= end_min
