from __future__ import annotations

import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///default.db")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

# ruff: noqa: E402
from fakes import CRON_SECRET, FakeUnitOfWork
from src.config.settings import Settings
from src.infrastructure.db.base import Base
from src.infrastructure.db.orm import (  # noqa: F401
    activity,
    activity_schedule,
    animal,
    device_token,
    farm,
    invitation,
    notification,
    notification_preferences,
    profile,
)
from src.infrastructure.realtime.channel import RealtimeChannel
from src.infrastructure.services.notification_service import NotificationService
from src.interfaces.http.main import create_app


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    db_path = tmp_path / "test.db"
    return Settings.model_validate(
        {
            "database_url": f"sqlite+aiosqlite:///{db_path}",
            "identity_header": "X-User-ID",
            "cron_secret": CRON_SECRET,
            "default_locale": "en",
            "app_timezone": "UTC",
            "log_level": "INFO",
            "environment": "test",
        }
    )


@pytest.fixture()
def app(test_settings: Settings):
    return create_app(settings=test_settings)


@pytest.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        engine = app.state.engine
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield client
    await app.state.engine.dispose()


@pytest.fixture()
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture()
def channel() -> RealtimeChannel:
    return RealtimeChannel(queue_size=10)


@pytest.fixture()
def service(uow: FakeUnitOfWork, channel: RealtimeChannel) -> NotificationService:
    return NotificationService(uow, channel, default_locale="en", push_retry_delay=0)
