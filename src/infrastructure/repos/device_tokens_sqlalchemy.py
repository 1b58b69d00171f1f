from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.db.orm.device_token import DeviceTokenORM


class DeviceTokensSQLAlchemyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_active_tokens(self, *, user_id: UUID) -> list[str]:
        stmt = select(DeviceTokenORM.token).where(
            DeviceTokenORM.user_id == user_id,
            DeviceTokenORM.disabled == False,  # noqa: E712
        )
        res = await self.session.execute(stmt)
        return list(res.scalars())

    async def disable_tokens(self, tokens: list[str]) -> int:
        """Stop delivering to tokens FCM no longer accepts; returns rows changed."""
        if not tokens:
            return 0
        stmt = (
            update(DeviceTokenORM)
            .where(DeviceTokenORM.token.in_(tokens))
            .values(disabled=True, disabled_at=datetime.now(timezone.utc))
        )
        res = await self.session.execute(stmt)
        return res.rowcount or 0
