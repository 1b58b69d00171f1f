from __future__ import annotations

from enum import Enum


class NotificationType(str, Enum):
    """Canonical notification type names used across backend/frontend."""

    ACTIVITY_REMINDER = "ACTIVITY_REMINDER"
    ACTIVITY_OVERDUE = "ACTIVITY_OVERDUE"
    SCHEDULE_REMINDER = "SCHEDULE_REMINDER"
    FARM_INVITATION = "FARM_INVITATION"
    MEMBER_JOINED = "MEMBER_JOINED"
    ACTIVITY_COMPLETED = "ACTIVITY_COMPLETED"
    ACTIVITY_CREATED = "ACTIVITY_CREATED"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    NotificationPriority.LOW: 0,
    NotificationPriority.NORMAL: 1,
    NotificationPriority.HIGH: 2,
    NotificationPriority.URGENT: 3,
}


class RelatedEntityType(str, Enum):
    ACTIVITY = "activity"
    SCHEDULE = "schedule"
    FARM = "farm"
    INVITATION = "invitation"
