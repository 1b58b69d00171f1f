from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.models.scheduled_activity import ScheduledActivity
from src.domain.value_objects.activity_status import ActivityStatus


class SchedulesRepository(Protocol):
    async def add(self, schedule: ScheduledActivity) -> ScheduledActivity: ...

    async def get(self, schedule_id: UUID) -> ScheduledActivity | None: ...

    async def set_status(self, schedule_id: UUID, status: ActivityStatus) -> None: ...

    async def list_due_recurring(self, now: datetime) -> list[ScheduledActivity]: ...

    async def list_pending_between(
        self, start: datetime, end: datetime
    ) -> list[ScheduledActivity]: ...

    async def list_pending_before(self, instant: datetime) -> list[ScheduledActivity]: ...
