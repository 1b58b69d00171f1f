from __future__ import annotations

from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.notification import Notification


async def execute(uow: UnitOfWork, user_id: UUID) -> list[Notification]:
    deleted = await uow.notifications.delete_all_for_user(user_id)
    await uow.commit()
    return deleted
