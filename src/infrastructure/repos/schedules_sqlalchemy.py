from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models.scheduled_activity import ScheduledActivity
from src.domain.value_objects.activity_status import ActivityStatus
from src.domain.value_objects.recurrence import RecurrenceRule
from src.infrastructure.db.orm.activity_schedule import ActivityScheduleORM
from src.utils.datetime_tz import ensure_aware, to_utc


class SchedulesSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: ActivityScheduleORM) -> ScheduledActivity:
        return ScheduledActivity(
            id=orm.id,
            farm_id=orm.farm_id,
            animal_id=orm.animal_id,
            title=orm.title,
            scheduled_at=ensure_aware(orm.scheduled_at),
            status=ActivityStatus(orm.status),
            is_recurring=orm.is_recurring,
            recurrence_rule=RecurrenceRule(orm.recurrence_rule) if orm.recurrence_rule else None,
            recurrence_day=orm.recurrence_day,
            description=orm.description,
            notes=orm.notes,
            created_at=ensure_aware(orm.created_at),
        )

    async def add(self, schedule: ScheduledActivity) -> ScheduledActivity:
        orm = ActivityScheduleORM(
            id=schedule.id,
            farm_id=schedule.farm_id,
            animal_id=schedule.animal_id,
            title=schedule.title,
            description=schedule.description,
            notes=schedule.notes,
            scheduled_at=to_utc(schedule.scheduled_at),
            status=schedule.status,
            is_recurring=schedule.is_recurring,
            recurrence_rule=schedule.recurrence_rule,
            recurrence_day=schedule.recurrence_day,
            created_at=schedule.created_at,
        )
        self.session.add(orm)
        await self.session.flush()
        return self._to_domain(orm)

    async def get(self, schedule_id: UUID) -> ScheduledActivity | None:
        result = await self.session.execute(
            select(ActivityScheduleORM).where(ActivityScheduleORM.id == schedule_id)
        )
        orm = result.scalar_one_or_none()
        return self._to_domain(orm) if orm else None

    async def set_status(self, schedule_id: UUID, status: ActivityStatus) -> None:
        await self.session.execute(
            update(ActivityScheduleORM)
            .where(ActivityScheduleORM.id == schedule_id)
            .values(status=status)
        )

    async def list_due_recurring(self, now: datetime) -> list[ScheduledActivity]:
        stmt = (
            select(ActivityScheduleORM)
            .where(
                ActivityScheduleORM.status == ActivityStatus.PENDING,
                ActivityScheduleORM.is_recurring == True,  # noqa: E712
                ActivityScheduleORM.scheduled_at <= to_utc(now),
            )
            .order_by(ActivityScheduleORM.scheduled_at)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]

    async def list_pending_between(
        self, start: datetime, end: datetime
    ) -> list[ScheduledActivity]:
        stmt = (
            select(ActivityScheduleORM)
            .where(
                ActivityScheduleORM.status == ActivityStatus.PENDING,
                ActivityScheduleORM.scheduled_at >= to_utc(start),
                ActivityScheduleORM.scheduled_at <= to_utc(end),
            )
            .order_by(ActivityScheduleORM.scheduled_at)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]

    async def list_pending_before(self, instant: datetime) -> list[ScheduledActivity]:
        stmt = (
            select(ActivityScheduleORM)
            .where(
                ActivityScheduleORM.status == ActivityStatus.PENDING,
                ActivityScheduleORM.scheduled_at < to_utc(instant),
            )
            .order_by(ActivityScheduleORM.scheduled_at)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]
