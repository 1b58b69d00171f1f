from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from src.application.errors import ValidationError
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.notifications.types import NotificationType
from src.domain.models.notification import Notification

MAX_PAGE_SIZE = 100


@dataclass(slots=True)
class ListNotificationsResult:
    items: list[Notification]
    total: int
    unread_count: int


async def execute(
    uow: UnitOfWork,
    user_id: UUID,
    *,
    unread_only: bool = False,
    types: list[NotificationType] | None = None,
    farm_id: UUID | None = None,
    limit: int = 50,
    offset: int = 0,
) -> ListNotificationsResult:
    if limit <= 0 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise ValidationError("offset must be >= 0")

    items = await uow.notifications.list_by_user(
        user_id,
        unread_only=unread_only,
        types=types,
        farm_id=farm_id,
        limit=limit,
        offset=offset,
    )
    total = await uow.notifications.count_by_user(
        user_id, unread_only=unread_only, types=types, farm_id=farm_id
    )
    unread_count = await uow.notifications.count_unread(user_id)
    return ListNotificationsResult(items=items, total=total, unread_count=unread_count)
