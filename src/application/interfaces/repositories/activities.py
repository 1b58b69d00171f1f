from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.domain.models.activity import Activity


class ActivitiesRepository(Protocol):
    async def get(self, activity_id: UUID) -> Activity | None: ...

    async def list_pending_between(self, start: datetime, end: datetime) -> list[Activity]: ...

    async def list_pending_before(self, instant: datetime) -> list[Activity]: ...
