from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy import case, delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.notifications.types import (
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from src.domain.models.notification import Notification
from src.infrastructure.db.orm.notification import NotificationORM
from src.utils.datetime_tz import ensure_aware, to_utc

_PRIORITY_RANK = case(
    # Enum columns store member names
    {p.name: p.rank for p in NotificationPriority},
    value=NotificationORM.priority,
    else_=0,
)


class NotificationsSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: NotificationORM) -> Notification:
        return Notification(
            id=orm.id,
            user_id=orm.user_id,
            type=NotificationType(orm.type),
            title=orm.title,
            message=orm.message,
            data=orm.data,
            priority=NotificationPriority(orm.priority),
            is_read=orm.is_read,
            created_at=ensure_aware(orm.created_at),
            read_at=ensure_aware(orm.read_at) if orm.read_at else None,
            scheduled_at=ensure_aware(orm.scheduled_at) if orm.scheduled_at else None,
            farm_id=orm.farm_id,
            related_entity_type=(
                RelatedEntityType(orm.related_entity_type) if orm.related_entity_type else None
            ),
            related_entity_id=orm.related_entity_id,
        )

    def _values(self, notification: Notification) -> dict:
        return {
            "id": notification.id,
            "user_id": notification.user_id,
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "data": notification.data,
            "priority": notification.priority,
            "is_read": notification.is_read,
            "created_at": to_utc(notification.created_at),
            "read_at": to_utc(notification.read_at) if notification.read_at else None,
            "scheduled_at": (
                to_utc(notification.scheduled_at) if notification.scheduled_at else None
            ),
            "farm_id": notification.farm_id,
            "related_entity_type": notification.related_entity_type,
            "related_entity_id": notification.related_entity_id,
        }

    def _filtered(
        self,
        stmt,
        user_id: UUID,
        *,
        unread_only: bool = False,
        types: Sequence[NotificationType] | None = None,
        farm_id: UUID | None = None,
    ):
        stmt = stmt.where(NotificationORM.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationORM.is_read == False)  # noqa: E712
        if types:
            stmt = stmt.where(NotificationORM.type.in_([NotificationType(t) for t in types]))
        if farm_id is not None:
            stmt = stmt.where(NotificationORM.farm_id == farm_id)
        return stmt

    async def add(self, notification: Notification) -> Notification:
        orm = NotificationORM(**self._values(notification))
        self.session.add(orm)
        await self.session.flush()
        return self._to_domain(orm)

    async def add_many(self, notifications: Sequence[Notification]) -> int:
        """Insert all rows with a single executemany statement."""
        if not notifications:
            return 0
        await self.session.execute(
            insert(NotificationORM), [self._values(n) for n in notifications]
        )
        return len(notifications)

    async def get(self, notification_id: UUID) -> Notification | None:
        stmt = select(NotificationORM).where(NotificationORM.id == notification_id)
        result = await self.session.execute(stmt)
        orm = result.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list_by_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        types: Sequence[NotificationType] | None = None,
        farm_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        stmt = self._filtered(
            select(NotificationORM),
            user_id,
            unread_only=unread_only,
            types=types,
            farm_id=farm_id,
        )
        stmt = (
            stmt.order_by(_PRIORITY_RANK.desc(), NotificationORM.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]

    async def count_by_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        types: Sequence[NotificationType] | None = None,
        farm_id: UUID | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(NotificationORM),
            user_id,
            unread_only=unread_only,
            types=types,
            farm_id=farm_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_unread(self, user_id: UUID) -> int:
        return await self.count_by_user(user_id, unread_only=True)

    async def _mark(self, stmt) -> list[Notification]:
        result = await self.session.execute(stmt)
        rows = list(result.scalars().all())
        now = datetime.now(timezone.utc)
        for orm in rows:
            orm.is_read = True
            orm.read_at = now
        await self.session.flush()
        return [self._to_domain(orm) for orm in rows]

    async def mark_as_read(
        self, user_id: UUID, notification_ids: Sequence[UUID]
    ) -> list[Notification]:
        if not notification_ids:
            return []
        stmt = select(NotificationORM).where(
            NotificationORM.user_id == user_id,
            NotificationORM.id.in_(list(notification_ids)),
            NotificationORM.is_read == False,  # noqa: E712
        )
        return await self._mark(stmt)

    async def mark_all_as_read(self, user_id: UUID) -> list[Notification]:
        stmt = select(NotificationORM).where(
            NotificationORM.user_id == user_id,
            NotificationORM.is_read == False,  # noqa: E712
        )
        return await self._mark(stmt)

    async def _delete_rows(self, stmt) -> list[Notification]:
        result = await self.session.execute(stmt)
        rows = [self._to_domain(orm) for orm in result.scalars().all()]
        if rows:
            await self.session.execute(
                delete(NotificationORM).where(NotificationORM.id.in_([n.id for n in rows]))
            )
        return rows

    async def delete(self, user_id: UUID, notification_id: UUID) -> Notification | None:
        rows = await self._delete_rows(
            select(NotificationORM).where(
                NotificationORM.id == notification_id, NotificationORM.user_id == user_id
            )
        )
        return rows[0] if rows else None

    async def delete_all_for_user(self, user_id: UUID) -> list[Notification]:
        return await self._delete_rows(
            select(NotificationORM).where(NotificationORM.user_id == user_id)
        )

    async def exists_for_entity(
        self,
        type: NotificationType,
        related_entity_type: RelatedEntityType,
        related_entity_id: UUID,
    ) -> bool:
        stmt = (
            select(NotificationORM.id)
            .where(
                NotificationORM.type == NotificationType(type),
                NotificationORM.related_entity_type == RelatedEntityType(related_entity_type),
                NotificationORM.related_entity_id == related_entity_id,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def exists_for_recipient(
        self, type: NotificationType, farm_id: UUID, user_id: UUID
    ) -> bool:
        stmt = (
            select(NotificationORM.id)
            .where(
                NotificationORM.type == NotificationType(type),
                NotificationORM.farm_id == farm_id,
                NotificationORM.user_id == user_id,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def delete_read_older_than(self, cutoff: datetime) -> list[Notification]:
        return await self._delete_rows(
            select(NotificationORM).where(
                NotificationORM.is_read == True,  # noqa: E712
                NotificationORM.created_at < to_utc(cutoff),
            )
        )
