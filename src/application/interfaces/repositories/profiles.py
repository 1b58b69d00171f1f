from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.profile import Profile


class ProfilesRepository(Protocol):
    async def get(self, profile_id: UUID) -> Profile | None: ...

    async def get_by_phone(self, phone_number: str) -> Profile | None: ...

    async def list_ids(self) -> list[UUID]: ...
