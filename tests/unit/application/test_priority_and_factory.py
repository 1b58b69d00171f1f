from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from src.application.notifications.factory import build_notification
from src.application.notifications.payloads import OverduePayload, parse_payload
from src.application.notifications.priority import overdue_days, overdue_priority
from src.application.notifications.types import NotificationPriority, NotificationType


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (0, NotificationPriority.NORMAL),
        (2, NotificationPriority.NORMAL),
        (3, NotificationPriority.HIGH),
        (7, NotificationPriority.HIGH),
        (8, NotificationPriority.URGENT),
        (30, NotificationPriority.URGENT),
    ],
)
def test_overdue_priority_thresholds(days, expected):
    assert overdue_priority(days) is expected


def test_overdue_priority_never_decreases():
    ranks = [overdue_priority(d).rank for d in range(0, 40)]
    assert ranks == sorted(ranks)


def test_overdue_days_counts_whole_days():
    now = datetime(2024, 5, 10, 12, tzinfo=timezone.utc)
    assert overdue_days(now - timedelta(hours=23), now) == 0
    assert overdue_days(now - timedelta(days=2, hours=1), now) == 2
    assert overdue_days(now + timedelta(days=1), now) == 0


def test_overdue_message_carries_days_and_payload():
    due = datetime(2024, 5, 1, 8, tzinfo=timezone.utc)
    activity_id, animal_id = uuid4(), uuid4()
    built = build_notification(
        NotificationType.ACTIVITY_OVERDUE,
        locale="en",
        title="Deworming",
        animal_name="Daisy",
        activity_id=activity_id,
        animal_id=animal_id,
        original_date=due,
        overdue_days=4,
    )
    assert built.title == "Overdue: Deworming"
    assert "4 day(s) overdue" in built.message
    payload = parse_payload(built.type, built.data)
    assert isinstance(payload, OverduePayload)
    assert payload.activity_id == activity_id
    assert payload.overdue_days == 4


def test_unknown_locale_falls_back_to_english():
    built = build_notification(
        NotificationType.FARM_INVITATION,
        locale="fr",
        invitation_id=uuid4(),
        farm_id=uuid4(),
        farm_name="Green Acres",
        inviter_name="Somchai",
        invitee_phone_number="+66800000001",
    )
    assert built.message == 'Somchai invited you to join "Green Acres"'


def test_long_names_are_shortened():
    built = build_notification(
        NotificationType.MEMBER_JOINED,
        locale="en",
        farm_id=uuid4(),
        farm_name="Green Acres",
        new_member_id=uuid4(),
        new_member_name="A" * 40,
    )
    assert "A" * 23 + "…" in built.message
    assert built.data["new_member_name"] == "A" * 40


def test_thai_reminder_template():
    built = build_notification(
        NotificationType.ACTIVITY_REMINDER,
        locale="th",
        title="ฉีดวัคซีน",
        animal_name="แดง",
        activity_id=uuid4(),
        animal_id=uuid4(),
        scheduled_date=datetime(2024, 5, 1, 8, tzinfo=timezone.utc),
        reminder_minutes=15,
    )
    assert built.title == "เตือน: ฉีดวัคซีน"
    assert "15" in built.message
