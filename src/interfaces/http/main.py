from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config.log_config import configure_logging
from src.config.settings import Settings, get_settings
from src.infrastructure.db.session import create_engine, create_session_factory
from src.infrastructure.push.factory import PushSender, build_push_sender
from src.infrastructure.realtime.channel import RealtimeChannel
from src.interfaces.http.routers import notifications as notifications_router
from src.interfaces.http.routers import system as system_router
from src.interfaces.middleware.error_handler import register_error_handlers
from src.interfaces.middleware.identity_middleware import IdentityMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Notification API started (env=%s)", app.state.settings.environment)
    yield
    open_subscriptions = app.state.realtime_channel.get_connection_count()
    if open_subscriptions:
        logger.info("Shutting down with %d realtime subscriptions", open_subscriptions)
    await app.state.engine.dispose()


def create_app(
    *,
    settings: Settings | None = None,
    channel: RealtimeChannel | None = None,
    push_sender: PushSender | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Farm Notifications Backend",
        version="0.1.0",
        description="Scheduling and notification engine for farm records",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = create_engine(settings.database_url)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.realtime_channel = channel or RealtimeChannel(
        queue_size=settings.realtime_queue_size
    )
    app.state.push_sender = push_sender or build_push_sender(settings)
    register_error_handlers(app)

    # Group all API routes behind a single versioned prefix
    api = APIRouter(prefix="/api/v1")
    api.include_router(notifications_router.router)
    api.include_router(system_router.router)

    @api.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api)

    # Add identity first, then CORS last so CORS runs outermost and can handle preflight OPTIONS
    app.add_middleware(IdentityMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
