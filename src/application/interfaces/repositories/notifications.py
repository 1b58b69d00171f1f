from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence
from uuid import UUID

from src.application.notifications.types import NotificationType, RelatedEntityType
from src.domain.models.notification import Notification


class NotificationsRepository(Protocol):
    async def add(self, notification: Notification) -> Notification: ...

    async def add_many(self, notifications: Sequence[Notification]) -> int: ...

    async def get(self, notification_id: UUID) -> Notification | None: ...

    async def list_by_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        types: Sequence[NotificationType] | None = None,
        farm_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]: ...

    async def count_by_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        types: Sequence[NotificationType] | None = None,
        farm_id: UUID | None = None,
    ) -> int: ...

    async def count_unread(self, user_id: UUID) -> int: ...

    async def mark_as_read(
        self, user_id: UUID, notification_ids: Sequence[UUID]
    ) -> list[Notification]: ...

    async def mark_all_as_read(self, user_id: UUID) -> list[Notification]: ...

    async def delete(self, user_id: UUID, notification_id: UUID) -> Notification | None: ...

    async def delete_all_for_user(self, user_id: UUID) -> list[Notification]: ...

    async def exists_for_entity(
        self,
        type: NotificationType,
        related_entity_type: RelatedEntityType,
        related_entity_id: UUID,
    ) -> bool: ...

    async def exists_for_recipient(
        self, type: NotificationType, farm_id: UUID, user_id: UUID
    ) -> bool: ...

    async def delete_read_older_than(self, cutoff: datetime) -> list[Notification]: ...
