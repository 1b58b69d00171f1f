from __future__ import annotations

from typing import Iterable
from uuid import UUID

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from src.application.errors import AuthError
from src.config.settings import Settings

PUBLIC_PATHS: Iterable[str] = (
    "/api/v1/health",
    # Guarded by the cron secret instead of a user identity
    "/api/v1/system",
    "/docs",
    "/openapi.json",
    "/redoc",
)


class IdentityMiddleware(BaseHTTPMiddleware):
    """Reads the verified user id forwarded by the upstream auth gateway."""

    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next) -> Response:
        # Let CORS preflight pass without identity checks
        if request.method == "OPTIONS":
            return await call_next(request)
        if any(request.url.path.startswith(path) for path in PUBLIC_PATHS):
            return await call_next(request)

        try:
            value = request.headers.get(self.settings.identity_header)
            if not value:
                raise AuthError(f"Missing {self.settings.identity_header} header")
            try:
                request.state.user_id = UUID(value)
            except ValueError as exc:
                raise AuthError("User identifier is not a valid UUID") from exc
            return await call_next(request)
        except AuthError as exc:
            payload = {"code": exc.code, "message": exc.message}
            if exc.details is not None:
                payload["details"] = exc.details
            return JSONResponse(status_code=exc.status_code, content=payload)
