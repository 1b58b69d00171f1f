from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from src.application.errors import ValidationError
from src.application.notifications.types import (
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)


@dataclass(frozen=True, slots=True)
class RelatedEntity:
    type: RelatedEntityType
    id: UUID


@dataclass(slots=True)
class Notification:
    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] | None = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: datetime | None = None
    scheduled_at: datetime | None = None
    farm_id: UUID | None = None
    related_entity_type: RelatedEntityType | None = None
    related_entity_id: UUID | None = None

    def __post_init__(self) -> None:
        if (self.related_entity_type is None) != (self.related_entity_id is None):
            raise ValidationError(
                "related_entity_type and related_entity_id must be set together"
            )

    @classmethod
    def create(
        cls,
        user_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        farm_id: UUID | None = None,
        related_entity: RelatedEntity | None = None,
        scheduled_at: datetime | None = None,
    ) -> Notification:
        return cls(
            id=uuid4(),
            user_id=user_id,
            type=NotificationType(type),
            title=title,
            message=message,
            data=data,
            priority=NotificationPriority(priority),
            is_read=False,
            created_at=datetime.now(timezone.utc),
            read_at=None,
            scheduled_at=scheduled_at,
            farm_id=farm_id,
            related_entity_type=related_entity.type if related_entity else None,
            related_entity_id=related_entity.id if related_entity else None,
        )

    def mark_as_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = datetime.now(timezone.utc)
