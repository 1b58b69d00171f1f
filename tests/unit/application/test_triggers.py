from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from uuid import uuid4

import pytest

from fakes import utc
from src.application.notifications.types import NotificationPriority, NotificationType
from src.application.scheduler.triggers import NotificationTriggers
from src.domain.models.activity import Activity
from src.domain.models.invitation import Invitation
from src.domain.models.notification import Notification
from src.domain.value_objects.recurrence import RecurrenceRule
from src.infrastructure.realtime.channel import RealtimeEventType

NOW = utc(2024, 6, 10, 8)


@pytest.fixture()
def triggers(uow, service) -> NotificationTriggers:
    return NotificationTriggers(uow, service, reminder_lead_minutes=30, retention_days=30)


@pytest.fixture()
def farm_setup(uow):
    owner = uow.add_profile("+66800000001", "Owner")
    farm, animal = uow.add_farm(owner)
    return owner, farm, animal


async def test_overdue_scan_is_idempotent(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    uow.add_activity(farm, animal, NOW - timedelta(days=1, minutes=5))
    first = await triggers.check_overdue_activities(NOW)
    second = await triggers.check_overdue_activities(NOW + timedelta(hours=1))
    assert first.created == 1
    assert second.created == 0
    assert len(uow.notifications.rows) == 1


async def test_overdue_scan_priority_by_age(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    recent = uow.add_activity(farm, animal, NOW - timedelta(days=1, hours=2))
    stale = uow.add_activity(farm, animal, NOW - timedelta(days=10, hours=2))
    await triggers.check_overdue_activities(NOW)
    by_activity = {
        n.related_entity_id: n.priority
        for n in uow.notifications.of_type(NotificationType.ACTIVITY_OVERDUE)
    }
    assert by_activity == {
        recent.id: NotificationPriority.NORMAL,
        stale.id: NotificationPriority.URGENT,
    }


async def test_upcoming_scan_uses_lead_window(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    inside = uow.add_activity(farm, animal, NOW + timedelta(minutes=20))
    uow.add_activity(farm, animal, NOW + timedelta(minutes=45))
    result = await triggers.check_upcoming_activities(NOW)
    assert result.created == 1
    [row] = uow.notifications.of_type(NotificationType.ACTIVITY_REMINDER)
    assert row.related_entity_id == inside.id
    assert (await triggers.check_upcoming_activities(NOW)).created == 0


async def test_zero_lead_window_only_catches_items_due_now(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    due_now = uow.add_activity(farm, animal, NOW)
    uow.add_activity(farm, animal, NOW + timedelta(minutes=10))
    result = await triggers.check_upcoming_activities(NOW, lead_minutes=0)
    assert result.created == 1
    [row] = uow.notifications.of_type(NotificationType.ACTIVITY_REMINDER)
    assert row.related_entity_id == due_now.id


async def test_reminder_reports_minutes_left_until_due(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    uow.add_activity(farm, animal, NOW + timedelta(hours=5))
    await triggers.check_upcoming_activities(NOW, lead_minutes=24 * 60)
    [row] = uow.notifications.of_type(NotificationType.ACTIVITY_REMINDER)
    assert "300 minutes" in row.message


async def test_upcoming_schedules_scan(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    schedule = uow.add_schedule(
        farm, animal, NOW + timedelta(minutes=10), rule=RecurrenceRule.DAILY
    )
    result = await triggers.check_upcoming_schedules(NOW, lead_minutes=15)
    assert result.created == 1
    [row] = uow.notifications.of_type(NotificationType.SCHEDULE_REMINDER)
    assert row.related_entity_id == schedule.id
    assert row.data["is_recurring"] is True


async def test_one_failing_item_does_not_stop_the_scan(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    orphan = Activity.create(uuid4(), animal.id, "Orphan", NOW - timedelta(days=2))
    uow.activities.rows[orphan.id] = orphan
    healthy = uow.add_activity(farm, animal, NOW - timedelta(days=2))
    result = await triggers.check_overdue_activities(NOW)
    assert result.created == 1
    assert len(result.errors) == 1
    assert str(orphan.id) in result.errors[0]
    assert uow.rollbacks == 1
    [row] = uow.notifications.rows.values()
    assert row.related_entity_id == healthy.id


async def test_invitation_notified_once_per_farm_and_invitee(uow, triggers, farm_setup):
    owner, farm, _ = farm_setup
    invitee = uow.add_profile("+66800000042", "Nok")
    invitation = Invitation.create(farm.id, owner.id, invitee.phone_number)
    uow.invitations.rows[invitation.id] = invitation
    now = invitation.created_at + timedelta(minutes=1)

    assert (await triggers.process_invitation_notifications(now)).created == 1
    # a second invitation to the same farm does not produce a duplicate
    again = Invitation.create(farm.id, owner.id, invitee.phone_number)
    uow.invitations.rows[again.id] = again
    assert (await triggers.process_invitation_notifications(now)).created == 0

    [row] = uow.notifications.of_type(NotificationType.FARM_INVITATION)
    assert row.user_id == invitee.id
    assert row.data["inviter_name"] == "Owner"


async def test_invitation_for_unknown_phone_is_skipped(uow, triggers, farm_setup):
    owner, farm, _ = farm_setup
    invitation = Invitation.create(farm.id, owner.id, "+66899999999")
    uow.invitations.rows[invitation.id] = invitation
    result = await triggers.process_invitation_notifications(invitation.created_at)
    assert result.created == 0
    assert result.errors == []


async def test_expired_invitation_is_ignored(uow, triggers, farm_setup):
    owner, farm, _ = farm_setup
    invitee = uow.add_profile("+66800000042")
    invitation = Invitation.create(farm.id, owner.id, invitee.phone_number, ttl_days=1)
    uow.invitations.rows[invitation.id] = invitation
    later = invitation.created_at + timedelta(days=2)
    assert (await triggers.process_invitation_notifications(later)).created == 0


def _stored(uow, *, age_days: int, is_read: bool) -> Notification:
    n = Notification.create(uuid4(), NotificationType.SYSTEM_ANNOUNCEMENT, "t", "m")
    n = replace(n, created_at=NOW - timedelta(days=age_days), is_read=is_read)
    uow.notifications.rows[n.id] = n
    return n


async def test_cleanup_removes_only_old_read_rows(uow, triggers, channel):
    old_read = _stored(uow, age_days=45, is_read=True)
    old_unread = _stored(uow, age_days=45, is_read=False)
    recent_read = _stored(uow, age_days=5, is_read=True)
    sub = channel.subscribe(old_read.user_id)

    result = await triggers.cleanup_old_notifications(NOW)

    assert result.deleted == 1
    assert set(uow.notifications.rows) == {old_unread.id, recent_read.id}
    event = sub.queue.get_nowait()
    assert event.type is RealtimeEventType.DELETE
    assert event.record["id"] == str(old_read.id)


async def test_run_all_checks_combines_scans(uow, triggers, farm_setup):
    _, farm, animal = farm_setup
    uow.add_activity(farm, animal, NOW - timedelta(days=3))
    uow.add_schedule(farm, animal, NOW + timedelta(minutes=5))
    _stored(uow, age_days=60, is_read=True)
    total = await triggers.run_all_checks(NOW)
    assert total.created == 2
    assert total.deleted == 1
    assert total.errors == []
