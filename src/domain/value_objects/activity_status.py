from __future__ import annotations

from enum import Enum


class ActivityStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in {ActivityStatus.COMPLETED, ActivityStatus.CANCELLED}

    def can_transition_to(self, target: ActivityStatus) -> bool:
        if self.is_terminal:
            return False
        if target is ActivityStatus.IN_PROGRESS:
            return self is ActivityStatus.PENDING
        return target in {ActivityStatus.COMPLETED, ActivityStatus.CANCELLED}
