from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.value_objects.activity_status import ActivityStatus
from src.domain.value_objects.recurrence import RecurrenceRule
from src.infrastructure.db.base import Base


class ActivityScheduleORM(Base):
    __tablename__ = "activity_schedules"
    __table_args__ = (
        Index("ix_activity_schedules_status_scheduled", "status", "scheduled_at"),
        Index("ix_activity_schedules_farm", "farm_id"),
        CheckConstraint(
            "recurrence_rule IS NULL OR is_recurring",
            name="ck_activity_schedules_rule_requires_recurring",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    farm_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("farms.id", ondelete="CASCADE"), nullable=False
    )
    animal_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("animals.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ActivityStatus] = mapped_column(
        Enum(ActivityStatus, native_enum=False, length=16),
        nullable=False,
        default=ActivityStatus.PENDING,
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurrence_rule: Mapped[RecurrenceRule | None] = mapped_column(
        Enum(RecurrenceRule, native_enum=False, length=16), nullable=True
    )
    recurrence_day: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
