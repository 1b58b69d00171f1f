from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.notifications.preferences import PreferencesResolver
from src.domain.models.delivery_preferences import DeliveryPreferences


async def execute(
    uow: UnitOfWork, user_id: UUID, changes: Mapping[str, Any]
) -> DeliveryPreferences:
    prefs = await PreferencesResolver(uow.preferences).update(user_id, changes)
    await uow.commit()
    return prefs
