from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.application.errors import ConflictError, ValidationError
from src.domain.value_objects.activity_status import ActivityStatus
from src.domain.value_objects.recurrence import RecurrenceRule, next_occurrence


@dataclass(slots=True)
class ScheduledActivity:
    id: UUID
    farm_id: UUID
    animal_id: UUID
    title: str
    scheduled_at: datetime
    status: ActivityStatus = ActivityStatus.PENDING
    is_recurring: bool = False
    recurrence_rule: RecurrenceRule | None = None
    # Day of month the series was first scheduled on; month-based rules aim for it
    recurrence_day: int | None = None
    description: str | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.recurrence_rule is not None and not self.is_recurring:
            raise ValidationError("recurrence_rule requires is_recurring")
        if self.recurrence_day is not None and not 1 <= self.recurrence_day <= 31:
            raise ValidationError("recurrence_day must be between 1 and 31")

    @classmethod
    def create(
        cls,
        farm_id: UUID,
        animal_id: UUID,
        title: str,
        scheduled_at: datetime,
        *,
        recurrence_rule: RecurrenceRule | None = None,
        recurrence_day: int | None = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> ScheduledActivity:
        if scheduled_at.tzinfo is None:
            scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)
        if recurrence_rule is not None and recurrence_day is None:
            recurrence_day = scheduled_at.day
        return cls(
            id=uuid4(),
            farm_id=farm_id,
            animal_id=animal_id,
            title=title,
            scheduled_at=scheduled_at,
            status=ActivityStatus.PENDING,
            is_recurring=recurrence_rule is not None,
            recurrence_rule=recurrence_rule,
            recurrence_day=recurrence_day if recurrence_rule is not None else None,
            description=description,
            notes=notes,
        )

    def transition_to(self, target: ActivityStatus) -> None:
        if not self.status.can_transition_to(target):
            raise ConflictError(
                f"Cannot move schedule from {self.status.value} to {target.value}",
                details={"schedule_id": str(self.id)},
            )
        self.status = target

    def next_instance(self) -> ScheduledActivity | None:
        """Build the following PENDING occurrence of a recurring schedule."""
        if not self.is_recurring:
            return None
        next_at = next_occurrence(
            self.recurrence_rule, self.scheduled_at, day=self.recurrence_day
        )
        if next_at is None:
            return None
        return ScheduledActivity.create(
            farm_id=self.farm_id,
            animal_id=self.animal_id,
            title=self.title,
            scheduled_at=next_at,
            recurrence_rule=self.recurrence_rule,
            recurrence_day=self.recurrence_day,
            description=self.description,
            notes=self.notes,
        )
