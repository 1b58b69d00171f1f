from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from src.application.errors import NotFound, ValidationError
from src.application.notifications.types import NotificationType
from src.application.use_cases.notifications import (
    clear_notifications,
    delete_notification,
    get_preferences,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    update_preferences,
)
from src.domain.models.notification import Notification


def _add(
    uow, user_id, ntype=NotificationType.SYSTEM_ANNOUNCEMENT, *, minutes_ago=0, farm_id=None
):
    n = Notification.create(user_id, ntype, "t", "m", farm_id=farm_id)
    n.created_at -= timedelta(minutes=minutes_ago)
    uow.notifications.rows[n.id] = n
    return n


async def test_list_returns_page_with_counts(uow):
    user = uuid4()
    older = _add(uow, user, minutes_ago=10)
    newer = _add(uow, user, NotificationType.MEMBER_JOINED)
    newer.mark_as_read()
    _add(uow, uuid4())

    result = await list_notifications.execute(uow, user, limit=1)

    assert [n.id for n in result.items] == [newer.id]
    assert result.total == 2
    assert result.unread_count == 1

    unread = await list_notifications.execute(uow, user, unread_only=True)
    assert [n.id for n in unread.items] == [older.id]


async def test_list_filters_by_type_and_farm(uow):
    user, farm_id = uuid4(), uuid4()
    wanted = _add(uow, user, NotificationType.ACTIVITY_OVERDUE, farm_id=farm_id)
    _add(uow, user, NotificationType.ACTIVITY_OVERDUE)
    _add(uow, user, NotificationType.MEMBER_JOINED, farm_id=farm_id)
    result = await list_notifications.execute(
        uow, user, types=[NotificationType.ACTIVITY_OVERDUE], farm_id=farm_id
    )
    assert [n.id for n in result.items] == [wanted.id]


@pytest.mark.parametrize(("limit", "offset"), [(0, 0), (101, 0), (10, -1)])
async def test_list_rejects_bad_paging(uow, limit, offset):
    with pytest.raises(ValidationError):
        await list_notifications.execute(uow, uuid4(), limit=limit, offset=offset)


async def test_mark_as_read_sets_read_at(uow):
    user = uuid4()
    n = _add(uow, user)
    changed = await mark_as_read.execute(uow, user, n.id)
    assert [c.id for c in changed] == [n.id]
    assert n.is_read and n.read_at is not None
    # already read: nothing changes
    assert await mark_as_read.execute(uow, user, n.id) == []


async def test_mark_as_read_of_foreign_row_is_not_found(uow):
    n = _add(uow, uuid4())
    with pytest.raises(NotFound):
        await mark_as_read.execute(uow, uuid4(), n.id)
    assert not n.is_read


async def test_mark_all_as_read_only_touches_caller(uow):
    user, other = uuid4(), uuid4()
    mine = [_add(uow, user), _add(uow, user)]
    theirs = _add(uow, other)
    changed = await mark_all_as_read.execute(uow, user)
    assert {c.id for c in changed} == {n.id for n in mine}
    assert not theirs.is_read


async def test_delete_checks_ownership(uow):
    user = uuid4()
    n = _add(uow, user)
    with pytest.raises(NotFound):
        await delete_notification.execute(uow, uuid4(), n.id)
    deleted = await delete_notification.execute(uow, user, n.id)
    assert deleted.id == n.id
    assert n.id not in uow.notifications.rows


async def test_clear_removes_all_for_user(uow):
    user, other = uuid4(), uuid4()
    _add(uow, user)
    _add(uow, user)
    kept = _add(uow, other)
    removed = await clear_notifications.execute(uow, user)
    assert len(removed) == 2
    assert list(uow.notifications.rows) == [kept.id]


async def test_preferences_round_trip(uow):
    user = uuid4()
    prefs = await get_preferences.execute(uow, user)
    assert prefs.push_enabled is False
    updated = await update_preferences.execute(uow, user, {"push_enabled": True})
    assert updated.id == prefs.id
    assert (await get_preferences.execute(uow, user)).push_enabled is True
    assert uow.commits == 3
