from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.application.errors import ConflictError
from src.domain.value_objects.activity_status import ActivityStatus


@dataclass(slots=True)
class Activity:
    id: UUID
    farm_id: UUID
    animal_id: UUID
    title: str
    activity_date: datetime
    status: ActivityStatus = ActivityStatus.PENDING
    description: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        farm_id: UUID,
        animal_id: UUID,
        title: str,
        activity_date: datetime,
        description: str | None = None,
    ) -> Activity:
        if activity_date.tzinfo is None:
            activity_date = activity_date.replace(tzinfo=timezone.utc)
        return cls(
            id=uuid4(),
            farm_id=farm_id,
            animal_id=animal_id,
            title=title,
            activity_date=activity_date,
            description=description,
        )

    def transition_to(self, target: ActivityStatus) -> None:
        if not self.status.can_transition_to(target):
            raise ConflictError(
                f"Cannot move activity from {self.status.value} to {target.value}",
                details={"activity_id": str(self.id)},
            )
        self.status = target
