from __future__ import annotations

import logging
from typing import Any, Protocol
from uuid import UUID

import httpx

from src.interfaces.http.schemas.notifications import (
    NotificationListResponse,
    PreferencesSchema,
)

logger = logging.getLogger(__name__)


class NotificationsApi(Protocol):
    async def list_notifications(
        self, *, unread_only: bool = False, limit: int = 100, offset: int = 0
    ) -> NotificationListResponse: ...

    async def mark_as_read(self, notification_id: UUID) -> None: ...

    async def mark_all_as_read(self) -> None: ...

    async def delete(self, notification_id: UUID) -> None: ...

    async def clear_all(self) -> None: ...

    async def get_preferences(self) -> PreferencesSchema: ...


class NotificationsApiClient:
    """httpx client for the /api/v1/notifications endpoints."""

    def __init__(
        self,
        base_url: str,
        user_id: UUID,
        *,
        identity_header: str = "X-User-ID",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.identity_header = identity_header
        self.timeout = timeout
        self._client = client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {self.identity_header: str(self.user_id)}
        url = f"{self.base_url}/api/v1/notifications{path}"
        if self._client is not None:
            resp = await self._client.request(method, url, headers=headers, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.request(method, url, headers=headers, **kwargs)
        if resp.status_code >= 400:
            logger.warning("Notifications API %s %s failed: %s", method, path, resp.status_code)
        resp.raise_for_status()
        return resp

    async def list_notifications(
        self, *, unread_only: bool = False, limit: int = 100, offset: int = 0
    ) -> NotificationListResponse:
        params = {"unread_only": str(unread_only).lower(), "limit": limit, "offset": offset}
        resp = await self._request("GET", "", params=params)
        return NotificationListResponse.model_validate(resp.json())

    async def mark_as_read(self, notification_id: UUID) -> None:
        await self._request("PATCH", f"/{notification_id}", json={"is_read": True})

    async def mark_all_as_read(self) -> None:
        await self._request("POST", "/mark-all-read")

    async def delete(self, notification_id: UUID) -> None:
        await self._request("DELETE", f"/{notification_id}")

    async def clear_all(self) -> None:
        await self._request("DELETE", "")

    async def get_preferences(self) -> PreferencesSchema:
        resp = await self._request("GET", "/preferences")
        return PreferencesSchema.model_validate(resp.json())
