from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.models.invitation import Invitation, InvitationStatus
from src.infrastructure.db.orm.invitation import InvitationORM
from src.utils.datetime_tz import ensure_aware, to_utc


class InvitationsSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _to_domain(self, orm: InvitationORM) -> Invitation:
        return Invitation(
            id=orm.id,
            farm_id=orm.farm_id,
            inviter_id=orm.inviter_id,
            phone_number=orm.phone_number,
            expires_at=ensure_aware(orm.expires_at),
            status=InvitationStatus(orm.status),
            created_at=ensure_aware(orm.created_at),
        )

    async def list_open(self, now: datetime) -> list[Invitation]:
        stmt = (
            select(InvitationORM)
            .where(
                InvitationORM.status == InvitationStatus.PENDING,
                InvitationORM.expires_at > to_utc(now),
            )
            .order_by(InvitationORM.created_at)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(orm) for orm in result.scalars().all()]

    async def delete_pending_created_before(self, cutoff: datetime) -> int:
        stmt = delete(InvitationORM).where(
            InvitationORM.status == InvitationStatus.PENDING,
            InvitationORM.created_at < to_utc(cutoff),
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
