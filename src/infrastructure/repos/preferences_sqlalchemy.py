from __future__ import annotations

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models.delivery_preferences import DeliveryPreferences
from src.infrastructure.db.orm.notification_preferences import NotificationPreferencesORM
from src.utils.datetime_tz import ensure_aware

_FIELDS = (
    "activity_reminders",
    "overdue_alerts",
    "farm_invitations",
    "member_joined",
    "new_activities",
    "push_enabled",
    "email_enabled",
    "reminder_lead_minutes",
    "quiet_start",
    "quiet_end",
)


class PreferencesSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: NotificationPreferencesORM) -> DeliveryPreferences:
        return DeliveryPreferences(
            id=orm.id,
            user_id=orm.user_id,
            created_at=ensure_aware(orm.created_at),
            updated_at=ensure_aware(orm.updated_at),
            **{name: getattr(orm, name) for name in _FIELDS},
        )

    async def _get_orm(self, user_id: UUID) -> NotificationPreferencesORM | None:
        stmt = select(NotificationPreferencesORM).where(
            NotificationPreferencesORM.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, user_id: UUID) -> DeliveryPreferences | None:
        orm = await self._get_orm(user_id)
        return self._to_domain(orm) if orm else None

    async def add(self, preferences: DeliveryPreferences) -> DeliveryPreferences:
        orm = NotificationPreferencesORM(
            id=preferences.id,
            user_id=preferences.user_id,
            created_at=preferences.created_at,
            updated_at=preferences.updated_at,
            **{name: getattr(preferences, name) for name in _FIELDS},
        )
        self.session.add(orm)
        await self.session.flush()
        return self._to_domain(orm)

    async def update(self, preferences: DeliveryPreferences) -> DeliveryPreferences:
        orm = await self._get_orm(preferences.user_id)
        if orm is None:
            return await self.add(preferences)
        for name in _FIELDS:
            setattr(orm, name, getattr(preferences, name))
        orm.updated_at = preferences.updated_at
        await self.session.flush()
        return self._to_domain(orm)

    async def list_for_users(self, user_ids: Iterable[UUID]) -> dict[UUID, DeliveryPreferences]:
        ids = list(user_ids)
        if not ids:
            return {}
        stmt = select(NotificationPreferencesORM).where(
            NotificationPreferencesORM.user_id.in_(ids)
        )
        result = await self.session.execute(stmt)
        return {orm.user_id: self._to_domain(orm) for orm in result.scalars().all()}
