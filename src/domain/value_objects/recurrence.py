from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from enum import Enum


class RecurrenceRule(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


def add_months(anchor: datetime, months: int, *, day: int | None = None) -> datetime:
    """Add calendar months, clamping the day to the target month's length.

    Jan 31 + 1 month is Feb 28 (or 29 in a leap year). `day` overrides the
    day of month to aim for, which lets a series keep its original day.
    """
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return anchor.replace(year=year, month=month, day=min(day or anchor.day, last_day))


def next_occurrence(
    rule: RecurrenceRule | str | None, anchor: datetime, *, day: int | None = None
) -> datetime | None:
    """Return the occurrence following `anchor`, or None for non-recurring items.

    `day` is the series' day of month for MONTHLY/YEARLY rules. Passing it
    keeps a series that started on the 31st from drifting to the 28th after
    February.
    """
    if rule is None:
        return None
    rule = RecurrenceRule(rule)
    if rule is RecurrenceRule.DAILY:
        return anchor + timedelta(days=1)
    if rule is RecurrenceRule.WEEKLY:
        return anchor + timedelta(days=7)
    if rule is RecurrenceRule.MONTHLY:
        return add_months(anchor, 1, day=day)
    return add_months(anchor, 12, day=day)
