from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.application.interfaces.unit_of_work import UnitOfWork

_REPOS = (
    "notifications",
    "preferences",
    "schedules",
    "activities",
    "farms",
    "profiles",
    "invitations",
    "device_tokens",
)


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, echo=False, future=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


class SQLAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory
        self.session: AsyncSession | None = None
        self._clear_repos()

    def _clear_repos(self) -> None:
        for name in _REPOS:
            setattr(self, name, None)

    async def __aenter__(self) -> UnitOfWork:
        self.session = self._session_factory()
        from src.infrastructure.repos.activities_sqlalchemy import ActivitiesSQLAlchemyRepository
        from src.infrastructure.repos.device_tokens_sqlalchemy import (
            DeviceTokensSQLAlchemyRepository,
        )
        from src.infrastructure.repos.farms_sqlalchemy import FarmsSQLAlchemyRepository
        from src.infrastructure.repos.invitations_sqlalchemy import (
            InvitationsSQLAlchemyRepository,
        )
        from src.infrastructure.repos.notifications_sqlalchemy import (
            NotificationsSQLAlchemyRepository,
        )
        from src.infrastructure.repos.preferences_sqlalchemy import (
            PreferencesSQLAlchemyRepository,
        )
        from src.infrastructure.repos.profiles_sqlalchemy import ProfilesSQLAlchemyRepository
        from src.infrastructure.repos.schedules_sqlalchemy import SchedulesSQLAlchemyRepository

        self.notifications = NotificationsSQLAlchemyRepository(self.session)
        self.preferences = PreferencesSQLAlchemyRepository(self.session)
        self.schedules = SchedulesSQLAlchemyRepository(self.session)
        self.activities = ActivitiesSQLAlchemyRepository(self.session)
        self.farms = FarmsSQLAlchemyRepository(self.session)
        self.profiles = ProfilesSQLAlchemyRepository(self.session)
        self.invitations = InvitationsSQLAlchemyRepository(self.session)
        self.device_tokens = DeviceTokensSQLAlchemyRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self.session:
            return
        try:
            if exc:
                await self.session.rollback()
        finally:
            await self.session.close()
            self.session = None
            self._clear_repos()

    async def commit(self) -> None:
        if not self.session:
            return
        await self.session.commit()

    async def rollback(self) -> None:
        if not self.session:
            return
        await self.session.rollback()
