from __future__ import annotations

import hmac
from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import Depends, Request

from src.application.errors import AuthError, PermissionDenied
from src.config.settings import Settings, get_settings
from src.infrastructure.db.session import SQLAlchemyUnitOfWork
from src.infrastructure.realtime.channel import RealtimeChannel
from src.infrastructure.services.notification_service import NotificationService


async def get_current_user(request: Request) -> UUID:
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise AuthError("Authentication required")
    return user_id


async def get_uow(request: Request) -> AsyncIterator[SQLAlchemyUnitOfWork]:
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise RuntimeError("Session factory not configured")
    uow = SQLAlchemyUnitOfWork(session_factory)
    async with uow:
        yield uow


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_channel(request: Request) -> RealtimeChannel:
    channel = getattr(request.app.state, "realtime_channel", None)
    if channel is None:
        raise RuntimeError("Realtime channel not configured")
    return channel


def get_notification_service(
    request: Request,
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    channel: RealtimeChannel = Depends(get_channel),
    settings: Settings = Depends(get_app_settings),
) -> NotificationService:
    return NotificationService.from_settings(
        uow,
        channel,
        settings,
        push_sender=getattr(request.app.state, "push_sender", None),
    )


def require_cron_secret(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> None:
    if settings.cron_secret is None:
        raise PermissionDenied("System endpoints are disabled")
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Missing bearer token")
    if not hmac.compare_digest(token, settings.cron_secret.get_secret_value()):
        raise AuthError("Invalid cron secret")
