from __future__ import annotations

from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.notification import Notification


async def execute(uow: UnitOfWork, user_id: UUID) -> list[Notification]:
    updated = await uow.notifications.mark_all_as_read(user_id)
    await uow.commit()
    return updated
