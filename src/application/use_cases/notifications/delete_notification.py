from __future__ import annotations

from uuid import UUID

from src.application.errors import NotFound
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.notification import Notification


async def execute(uow: UnitOfWork, user_id: UUID, notification_id: UUID) -> Notification:
    deleted = await uow.notifications.delete(user_id, notification_id)
    if deleted is None:
        raise NotFound("Notification not found")
    await uow.commit()
    return deleted
