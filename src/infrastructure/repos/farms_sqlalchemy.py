from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models.farm import Animal, Farm
from src.infrastructure.db.orm.animal import AnimalORM
from src.infrastructure.db.orm.farm import FarmMemberORM, FarmORM


class FarmsSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, farm_id: UUID) -> Farm | None:
        result = await self.session.execute(select(FarmORM).where(FarmORM.id == farm_id))
        orm = result.scalar_one_or_none()
        if orm is None:
            return None
        members = await self.session.execute(
            select(FarmMemberORM.user_id)
            .where(FarmMemberORM.farm_id == farm_id)
            .order_by(FarmMemberORM.joined_at)
        )
        return Farm(
            id=orm.id,
            name=orm.name,
            owner_id=orm.owner_id,
            locale=orm.locale,
            member_ids=list(members.scalars().all()),
        )

    async def get_animal(self, animal_id: UUID) -> Animal | None:
        result = await self.session.execute(select(AnimalORM).where(AnimalORM.id == animal_id))
        orm = result.scalar_one_or_none()
        if orm is None:
            return None
        return Animal(id=orm.id, farm_id=orm.farm_id, name=orm.name, animal_type=orm.animal_type)
