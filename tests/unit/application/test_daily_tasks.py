from __future__ import annotations

from datetime import timedelta

import pytest

from fakes import utc
from src.application.notifications.types import NotificationType
from src.application.scheduler.daily_tasks import roll_recurring_schedules, run_daily_tasks
from src.domain.models.invitation import Invitation
from src.domain.value_objects.activity_status import ActivityStatus
from src.domain.value_objects.recurrence import RecurrenceRule
from src.infrastructure.services.notification_service import NotificationService

NOW = utc(2024, 1, 31, 7)


@pytest.fixture()
def farm_setup(uow):
    owner = uow.add_profile("+66800000001", "Owner")
    farm, animal = uow.add_farm(owner)
    return owner, farm, animal


def _run(uow, settings, now=NOW):
    return run_daily_tasks(
        lambda: uow,
        lambda u: NotificationService(u, None, default_locale="en", push_retry_delay=0),
        settings,
        now,
    )


async def test_rollover_completes_due_schedule_and_creates_next(uow, farm_setup):
    _, farm, animal = farm_setup
    due = uow.add_schedule(farm, animal, utc(2024, 1, 31, 6), rule=RecurrenceRule.MONTHLY)
    future = uow.add_schedule(farm, animal, utc(2024, 2, 5, 6), rule=RecurrenceRule.DAILY)

    processed, errors = await roll_recurring_schedules(uow, NOW)

    assert (processed, errors) == (1, [])
    assert uow.schedules.rows[due.id].status is ActivityStatus.COMPLETED
    assert uow.schedules.rows[future.id].status is ActivityStatus.PENDING
    successors = [
        s for s in uow.schedules.rows.values() if s.id not in {due.id, future.id}
    ]
    assert [s.scheduled_at for s in successors] == [utc(2024, 2, 29, 6)]
    assert successors[0].status is ActivityStatus.PENDING


async def test_rollover_failure_leaves_schedule_pending(uow, farm_setup):
    _, farm, animal = farm_setup
    due = uow.add_schedule(farm, animal, utc(2024, 1, 30, 6), rule=RecurrenceRule.DAILY)
    uow.schedules.fail_on_add = True

    processed, errors = await roll_recurring_schedules(uow, NOW)

    assert processed == 0
    assert len(errors) == 1
    assert uow.schedules.rows[due.id].status is ActivityStatus.PENDING
    assert uow.rollbacks == 1


async def test_daily_run_summary(uow, test_settings, farm_setup):
    owner, farm, animal = farm_setup
    uow.add_schedule(farm, animal, utc(2024, 1, 30, 10), rule=RecurrenceRule.DAILY)
    uow.add_activity(farm, animal, NOW + timedelta(minutes=10))
    stale = Invitation.create(farm.id, owner.id, "+66811111111")
    stale.created_at = NOW - timedelta(days=30)
    uow.invitations.rows[stale.id] = stale

    summary = await _run(uow, test_settings)

    assert summary.recurring_schedules_processed == 1
    assert summary.notifications_sent == 2
    assert uow.notifications.of_type(NotificationType.ACTIVITY_REMINDER)
    # the successor due at 10:00 today is inside the look-ahead window
    assert uow.notifications.of_type(NotificationType.SCHEDULE_REMINDER)
    assert summary.invitations_cleaned_up == 1
    assert summary.errors_count == 0
    assert summary.duration_ms >= 0
    assert set(summary.to_dict()) == {
        "duration_ms",
        "recurring_schedules_processed",
        "notifications_sent",
        "invitations_cleaned_up",
        "notifications_cleaned_up",
        "errors_count",
        "errors",
    }


async def test_failing_step_does_not_stop_later_steps(uow, test_settings, farm_setup, monkeypatch):
    owner, farm, animal = farm_setup
    uow.add_activity(farm, animal, NOW - timedelta(days=2))
    stale = Invitation.create(farm.id, owner.id, "+66811111111")
    stale.created_at = NOW - timedelta(days=30)
    uow.invitations.rows[stale.id] = stale

    async def broken(now):
        raise RuntimeError("invitation store down")

    monkeypatch.setattr(uow.invitations, "list_open", broken)

    summary = await _run(uow, test_settings)

    assert summary.notifications_sent == 1
    assert any("invitation store down" in e for e in summary.errors)
    assert uow.notifications.of_type(NotificationType.ACTIVITY_OVERDUE)
    # stale invitation cleanup runs on its own
    assert summary.invitations_cleaned_up == 1
    assert uow.invitations.rows == {}


async def test_second_run_creates_nothing_new(uow, test_settings, farm_setup):
    _, farm, animal = farm_setup
    uow.add_activity(farm, animal, NOW - timedelta(days=2))
    first = await _run(uow, test_settings)
    second = await _run(uow, test_settings)
    assert first.notifications_sent == 1
    assert second.notifications_sent == 0


async def test_daily_schedule_is_reminded_every_day(uow, test_settings, farm_setup):
    _, farm, animal = farm_setup
    first = uow.add_schedule(farm, animal, utc(2024, 1, 31, 9), rule=RecurrenceRule.DAILY)

    for day in range(5):
        summary = await _run(uow, test_settings, NOW + timedelta(days=day))
        assert summary.notifications_sent == 1
        assert summary.errors == []

    reminders = uow.notifications.of_type(NotificationType.SCHEDULE_REMINDER)
    assert len(reminders) == 5
    assert len({n.related_entity_id for n in reminders}) == 5
    assert first.id in {n.related_entity_id for n in reminders}
    assert uow.notifications.of_type(NotificationType.ACTIVITY_OVERDUE) == []
    statuses = sorted(
        (s.scheduled_at, s.status) for s in uow.schedules.rows.values()
    )
    assert [status for _, status in statuses] == [ActivityStatus.COMPLETED] * 4 + [
        ActivityStatus.PENDING
    ]
    assert statuses[-1][0] == utc(2024, 2, 4, 9)


async def test_rollover_cutoff_follows_app_timezone(uow, test_settings, farm_setup):
    _, farm, animal = farm_setup
    settings = test_settings.model_copy(update={"app_timezone": "Asia/Bangkok"})
    # NOW is 14:00 in Bangkok, so the local day started at 17:00 UTC the day before
    yesterday = uow.add_schedule(farm, animal, utc(2024, 1, 30, 16), rule=RecurrenceRule.WEEKLY)
    today = uow.add_schedule(farm, animal, utc(2024, 1, 30, 18), rule=RecurrenceRule.WEEKLY)

    summary = await _run(uow, settings)

    assert summary.recurring_schedules_processed == 1
    assert uow.schedules.rows[yesterday.id].status is ActivityStatus.COMPLETED
    assert uow.schedules.rows[today.id].status is ActivityStatus.PENDING


async def test_monthly_rollover_keeps_the_original_day(uow, farm_setup):
    _, farm, animal = farm_setup
    uow.add_schedule(farm, animal, utc(2024, 1, 31, 6), rule=RecurrenceRule.MONTHLY)

    await roll_recurring_schedules(uow, utc(2024, 2, 1))
    await roll_recurring_schedules(uow, utc(2024, 3, 1))
    await roll_recurring_schedules(uow, utc(2024, 4, 1))

    assert sorted(s.scheduled_at for s in uow.schedules.rows.values()) == [
        utc(2024, 1, 31, 6),
        utc(2024, 2, 29, 6),
        utc(2024, 3, 31, 6),
        utc(2024, 4, 30, 6),
    ]
