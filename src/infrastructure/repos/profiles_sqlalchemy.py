from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models.profile import Profile
from src.infrastructure.db.orm.profile import ProfileORM


class ProfilesSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: ProfileORM) -> Profile:
        return Profile(
            id=orm.id,
            phone_number=orm.phone_number,
            first_name=orm.first_name,
            last_name=orm.last_name,
        )

    async def get(self, profile_id: UUID) -> Profile | None:
        result = await self.session.execute(select(ProfileORM).where(ProfileORM.id == profile_id))
        orm = result.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def get_by_phone(self, phone_number: str) -> Profile | None:
        result = await self.session.execute(
            select(ProfileORM).where(ProfileORM.phone_number == phone_number.strip())
        )
        orm = result.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list_ids(self) -> list[UUID]:
        result = await self.session.execute(select(ProfileORM.id).order_by(ProfileORM.created_at))
        return list(result.scalars().all())
