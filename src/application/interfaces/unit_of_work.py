from __future__ import annotations

from typing import Protocol

from src.application.interfaces.repositories.activities import ActivitiesRepository
from src.application.interfaces.repositories.device_tokens import DeviceTokensRepository
from src.application.interfaces.repositories.farms import FarmsRepository
from src.application.interfaces.repositories.invitations import InvitationsRepository
from src.application.interfaces.repositories.notifications import NotificationsRepository
from src.application.interfaces.repositories.preferences import PreferencesRepository
from src.application.interfaces.repositories.profiles import ProfilesRepository
from src.application.interfaces.repositories.schedules import SchedulesRepository


class UnitOfWork(Protocol):
    notifications: NotificationsRepository
    preferences: PreferencesRepository
    schedules: SchedulesRepository
    activities: ActivitiesRepository
    farms: FarmsRepository
    profiles: ProfilesRepository
    invitations: InvitationsRepository
    device_tokens: DeviceTokensRepository

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
