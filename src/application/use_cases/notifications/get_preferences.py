from __future__ import annotations

from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.notifications.preferences import PreferencesResolver
from src.domain.models.delivery_preferences import DeliveryPreferences


async def execute(uow: UnitOfWork, user_id: UUID) -> DeliveryPreferences:
    prefs = await PreferencesResolver(uow.preferences).get_or_create(user_id)
    await uow.commit()
    return prefs
