from __future__ import annotations

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from src.domain.models.delivery_preferences import is_quiet_hours


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (time(21, 59), False),
        (time(22, 0), True),
        (time(23, 30), True),
        (time(0, 0), True),
        (time(6, 0), True),
        (time(6, 1), False),
        (time(12, 0), False),
    ],
)
def test_wrapping_window(now, expected):
    assert is_quiet_hours(time(22, 0), time(6, 0), now) is expected


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (time(12, 59), False),
        (time(13, 0), True),
        (time(13, 45), True),
        (time(14, 0), True),
        (time(14, 1), False),
    ],
)
def test_non_wrapping_window(now, expected):
    assert is_quiet_hours(time(13, 0), time(14, 0), now) is expected


def test_compared_at_minute_resolution():
    assert is_quiet_hours(time(13, 0), time(14, 0), time(14, 0, 59))


def test_missing_bound_disables_quiet_hours():
    assert not is_quiet_hours(time(22, 0), None, time(23, 0))
    assert not is_quiet_hours(None, time(6, 0), time(1, 0))


def test_aware_datetime_converted_to_zone():
    # 16:00 UTC is 23:00 in Bangkok
    now = datetime(2024, 5, 1, 16, 0, tzinfo=timezone.utc)
    assert is_quiet_hours(time(22, 0), time(6, 0), now, ZoneInfo("Asia/Bangkok"))
    assert not is_quiet_hours(time(22, 0), time(6, 0), now, ZoneInfo("UTC"))
