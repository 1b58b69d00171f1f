from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from uuid import UUID
from zoneinfo import ZoneInfo

from src.application.notifications.preferences import allows
from src.client.api import NotificationsApi
from src.domain.models.delivery_preferences import is_quiet_hours
from src.infrastructure.realtime.channel import RealtimeEvent, RealtimeEventType
from src.interfaces.http.schemas.notifications import NotificationSchema, PreferencesSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperationResult:
    ok: bool
    error: str | None = None


class NotificationCache:
    """Client-side list of the session's notifications, newest first.

    The server list is the source of truth: `refresh()` replaces local state.
    Realtime events are merged in between refreshes. Mutations update local
    state first and then call the server; a failed call is reported through
    the returned `OperationResult` and local state is kept until the next
    refresh.
    """

    def __init__(
        self,
        api: NotificationsApi,
        preferences: PreferencesSchema | None = None,
        on_present: Callable[[NotificationSchema], None] | None = None,
        now: Callable[[], datetime] | None = None,
        *,
        tz: ZoneInfo | None = None,
        page_size: int = 100,
    ) -> None:
        self.api = api
        self.preferences = preferences
        self.on_present = on_present
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.tz = tz
        self.page_size = page_size
        self._items: list[NotificationSchema] = []

    @property
    def notifications(self) -> list[NotificationSchema]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.is_read)

    async def refresh(self) -> OperationResult:
        try:
            response = await self.api.list_notifications(limit=self.page_size)
        except Exception as e:
            logger.error("Failed to refresh notifications: %s", e)
            return OperationResult(False, str(e))
        self._items = sorted(response.notifications, key=lambda n: n.created_at, reverse=True)
        return OperationResult(True)

    def apply_event(self, event: RealtimeEvent | Mapping[str, Any]) -> None:
        if isinstance(event, RealtimeEvent):
            event_type, record = event.type, event.record
        else:
            event_type, record = RealtimeEventType(event["type"]), event["record"]
        notification = NotificationSchema.model_validate(record)

        if event_type is RealtimeEventType.INSERT:
            if self._index(notification.id) is not None:
                # Duplicate delivery
                return
            self._items.insert(0, notification)
            if self._should_present(notification):
                self.on_present(notification)
        elif event_type is RealtimeEventType.UPDATE:
            idx = self._index(notification.id)
            if idx is not None:
                self._items[idx] = notification
        elif event_type is RealtimeEventType.DELETE:
            self._items = [n for n in self._items if n.id != notification.id]

    async def mark_as_read(self, notification_id: UUID) -> OperationResult:
        idx = self._index(notification_id)
        if idx is not None and not self._items[idx].is_read:
            self._items[idx] = self._items[idx].model_copy(
                update={"is_read": True, "read_at": self._now()}
            )
        return await self._call("mark notification as read", self.api.mark_as_read(notification_id))

    async def mark_all_as_read(self) -> OperationResult:
        read_at = self._now()
        self._items = [
            n if n.is_read else n.model_copy(update={"is_read": True, "read_at": read_at})
            for n in self._items
        ]
        return await self._call("mark all notifications as read", self.api.mark_all_as_read())

    async def delete(self, notification_id: UUID) -> OperationResult:
        self._items = [n for n in self._items if n.id != notification_id]
        return await self._call("delete notification", self.api.delete(notification_id))

    async def clear_all(self) -> OperationResult:
        self._items = []
        return await self._call("clear notifications", self.api.clear_all())

    async def _call(self, label: str, pending) -> OperationResult:
        try:
            await pending
        except Exception as e:
            logger.error("Failed to %s: %s", label, e)
            return OperationResult(False, str(e))
        return OperationResult(True)

    def _index(self, notification_id: UUID) -> int | None:
        for idx, n in enumerate(self._items):
            if n.id == notification_id:
                return idx
        return None

    def _should_present(self, notification: NotificationSchema) -> bool:
        if self.on_present is None:
            return False
        prefs = self.preferences
        if prefs is None:
            return True
        if not allows(prefs, notification.type):
            return False
        return not is_quiet_hours(prefs.quiet_start, prefs.quiet_end, self._now(), self.tz)
