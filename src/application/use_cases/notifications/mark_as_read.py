from __future__ import annotations

from uuid import UUID

from src.application.errors import NotFound
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.models.notification import Notification


async def execute(uow: UnitOfWork, user_id: UUID, notification_id: UUID) -> list[Notification]:
    """Mark one of the caller's notifications read; returns the rows that changed."""
    existing = await uow.notifications.get(notification_id)
    if existing is None or existing.user_id != user_id:
        raise NotFound("Notification not found")
    updated = await uow.notifications.mark_as_read(user_id, [notification_id])
    await uow.commit()
    return updated
