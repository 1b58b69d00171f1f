from __future__ import annotations

from typing import Iterable, Protocol
from uuid import UUID

from src.domain.models.delivery_preferences import DeliveryPreferences


class PreferencesRepository(Protocol):
    async def get(self, user_id: UUID) -> DeliveryPreferences | None: ...

    async def add(self, preferences: DeliveryPreferences) -> DeliveryPreferences: ...

    async def update(self, preferences: DeliveryPreferences) -> DeliveryPreferences: ...

    async def list_for_users(self, user_ids: Iterable[UUID]) -> dict[UUID, DeliveryPreferences]: ...
