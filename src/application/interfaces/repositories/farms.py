from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.domain.models.farm import Animal, Farm


class FarmsRepository(Protocol):
    async def get(self, farm_id: UUID) -> Farm | None: ...

    async def get_animal(self, animal_id: UUID) -> Animal | None: ...
