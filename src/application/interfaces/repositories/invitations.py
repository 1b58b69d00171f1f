from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.models.invitation import Invitation


class InvitationsRepository(Protocol):
    async def list_open(self, now: datetime) -> list[Invitation]: ...

    async def delete_pending_created_before(self, cutoff: datetime) -> int: ...
