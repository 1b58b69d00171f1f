from __future__ import annotations

from datetime import datetime

from .types import NotificationPriority

SECONDS_PER_DAY = 24 * 60 * 60


def overdue_days(due_at: datetime, now: datetime) -> int:
    """Whole days elapsed since `due_at` (0 for anything under a day)."""
    return max(0, int((now - due_at).total_seconds() // SECONDS_PER_DAY))


def overdue_priority(
    days: int, *, high_after: int = 3, urgent_after: int = 7
) -> NotificationPriority:
    """Escalate with elapsed days: NORMAL < high_after <= HIGH <= urgent_after < URGENT."""
    if days > urgent_after:
        return NotificationPriority.URGENT
    if days >= high_after:
        return NotificationPriority.HIGH
    return NotificationPriority.NORMAL
