from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from uuid import uuid4

import pytest

from src.application.notifications.types import NotificationType
from src.client.cache import NotificationCache
from src.domain.models.notification import Notification
from src.infrastructure.realtime.channel import RealtimeEventType
from src.infrastructure.realtime.events import notification_event
from src.interfaces.http.schemas.notifications import (
    NotificationListResponse,
    NotificationSchema,
    PreferencesSchema,
)

USER = uuid4()
NOON = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


def _schema(*, is_read=False, minutes_ago=0, ntype=NotificationType.MEMBER_JOINED):
    n = Notification.create(USER, ntype, "t", "m")
    n.created_at = NOON - timedelta(minutes=minutes_ago)
    if is_read:
        n.mark_as_read()
    return NotificationSchema.model_validate(n)


class FakeApi:
    def __init__(self, items=()) -> None:
        self.items = list(items)
        self.calls: list[tuple] = []
        self.fail = False

    async def _record(self, *call):
        self.calls.append(call)
        if self.fail:
            raise RuntimeError("offline")

    async def list_notifications(self, *, unread_only=False, limit=100, offset=0):
        await self._record("list")
        return NotificationListResponse(
            notifications=self.items,
            total=len(self.items),
            unread_count=sum(1 for n in self.items if not n.is_read),
        )

    async def mark_as_read(self, notification_id):
        await self._record("read", notification_id)

    async def mark_all_as_read(self):
        await self._record("read_all")

    async def delete(self, notification_id):
        await self._record("delete", notification_id)

    async def clear_all(self):
        await self._record("clear")

    async def get_preferences(self):
        raise NotImplementedError


def _prefs(**overrides) -> PreferencesSchema:
    values = dict(
        user_id=USER,
        activity_reminders=True,
        overdue_alerts=True,
        farm_invitations=True,
        member_joined=True,
        new_activities=True,
        push_enabled=False,
        email_enabled=False,
        reminder_lead_minutes=30,
        updated_at=NOON,
    )
    values.update(overrides)
    return PreferencesSchema(**values)


async def _loaded(*items, **kwargs) -> tuple[NotificationCache, FakeApi]:
    api = FakeApi(items)
    cache = NotificationCache(api, now=lambda: NOON, **kwargs)
    assert (await cache.refresh()).ok
    return cache, api


async def test_refresh_orders_newest_first():
    old, new = _schema(minutes_ago=30), _schema(minutes_ago=1)
    cache, _ = await _loaded(old, new)
    assert [n.id for n in cache.notifications] == [new.id, old.id]
    assert cache.unread_count == 2


async def test_refresh_failure_keeps_state():
    cache, api = await _loaded(_schema())
    api.fail = True
    result = await cache.refresh()
    assert not result.ok and result.error == "offline"
    assert len(cache.notifications) == 1


async def test_delete_unread_decrements_count():
    unread, read = _schema(), _schema(is_read=True)
    cache, api = await _loaded(unread, read)

    await cache.delete(read.id)
    assert cache.unread_count == 1

    await cache.delete(unread.id)
    assert cache.unread_count == 0
    assert api.calls[-1] == ("delete", unread.id)


async def test_mark_as_read_is_optimistic():
    item = _schema()
    cache, api = await _loaded(item)
    api.fail = True
    result = await cache.mark_as_read(item.id)
    assert not result.ok
    assert cache.notifications[0].is_read
    assert cache.notifications[0].read_at == NOON
    assert cache.unread_count == 0


async def test_mark_all_and_clear():
    cache, api = await _loaded(_schema(), _schema(), _schema(is_read=True))
    assert (await cache.mark_all_as_read()).ok
    assert cache.unread_count == 0
    assert (await cache.clear_all()).ok
    assert cache.notifications == []
    assert [c[0] for c in api.calls] == ["list", "read_all", "clear"]


def _event(event_type, schema: NotificationSchema) -> dict:
    return {"type": event_type.value, "record": schema.model_dump(mode="json")}


async def test_insert_event_prepends_and_ignores_duplicates():
    existing = _schema(minutes_ago=5)
    cache, _ = await _loaded(existing)
    fresh = _schema()
    cache.apply_event(_event(RealtimeEventType.INSERT, fresh))
    cache.apply_event(_event(RealtimeEventType.INSERT, fresh))
    assert [n.id for n in cache.notifications] == [fresh.id, existing.id]
    assert cache.unread_count == 2


async def test_update_and_delete_events():
    item = _schema()
    cache, _ = await _loaded(item)
    cache.apply_event(_event(RealtimeEventType.UPDATE, item.model_copy(update={"is_read": True})))
    assert cache.unread_count == 0
    cache.apply_event(_event(RealtimeEventType.DELETE, item))
    assert cache.notifications == []


async def test_update_for_unknown_row_is_ignored():
    cache, _ = await _loaded()
    cache.apply_event(_event(RealtimeEventType.UPDATE, _schema()))
    assert cache.notifications == []


async def test_accepts_realtime_event_objects():
    cache, _ = await _loaded()
    n = Notification.create(USER, NotificationType.SYSTEM_ANNOUNCEMENT, "t", "m")
    cache.apply_event(notification_event(RealtimeEventType.INSERT, n))
    assert cache.notifications[0].id == n.id


@pytest.mark.parametrize(
    ("prefs", "expected"),
    [
        (None, 1),
        (_prefs(), 1),
        (_prefs(member_joined=False), 0),
        (_prefs(quiet_start=time(11, 0), quiet_end=time(13, 0)), 0),
        (_prefs(quiet_start=time(22, 0), quiet_end=time(6, 0)), 1),
    ],
)
async def test_presentation_respects_preferences(prefs, expected):
    presented = []
    cache, _ = await _loaded(preferences=prefs, on_present=presented.append)
    cache.apply_event(_event(RealtimeEventType.INSERT, _schema()))
    assert len(presented) == expected
    # stored regardless of presentation
    assert cache.unread_count == 1
