from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models.activity import Activity
from src.domain.value_objects.activity_status import ActivityStatus
from src.infrastructure.db.orm.activity import ActivityORM
from src.utils.datetime_tz import ensure_aware, to_utc


class ActivitiesSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: ActivityORM) -> Activity:
        return Activity(
            id=orm.id,
            farm_id=orm.farm_id,
            animal_id=orm.animal_id,
            title=orm.title,
            activity_date=ensure_aware(orm.activity_date),
            status=ActivityStatus(orm.status),
            description=orm.description,
            created_at=ensure_aware(orm.created_at),
        )

    async def add(self, activity: Activity) -> Activity:
        orm = ActivityORM(
            id=activity.id,
            farm_id=activity.farm_id,
            animal_id=activity.animal_id,
            title=activity.title,
            description=activity.description,
            activity_date=to_utc(activity.activity_date),
            status=activity.status,
            created_at=activity.created_at,
        )
        self.session.add(orm)
        await self.session.flush()
        return self._to_domain(orm)

    async def get(self, activity_id: UUID) -> Activity | None:
        result = await self.session.execute(
            select(ActivityORM).where(ActivityORM.id == activity_id)
        )
        orm = result.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def list_pending_between(self, start: datetime, end: datetime) -> list[Activity]:
        stmt = (
            select(ActivityORM)
            .where(
                ActivityORM.status == ActivityStatus.PENDING,
                ActivityORM.activity_date >= to_utc(start),
                ActivityORM.activity_date <= to_utc(end),
            )
            .order_by(ActivityORM.activity_date)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]

    async def list_pending_before(self, instant: datetime) -> list[Activity]:
        stmt = (
            select(ActivityORM)
            .where(
                ActivityORM.status == ActivityStatus.PENDING,
                ActivityORM.activity_date < to_utc(instant),
            )
            .order_by(ActivityORM.activity_date)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]
