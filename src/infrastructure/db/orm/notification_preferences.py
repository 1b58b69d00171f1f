from __future__ import annotations

from datetime import datetime, time
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.db.base import Base


class NotificationPreferencesORM(Base):
    __tablename__ = "notification_preferences"
    __table_args__ = (
        CheckConstraint(
            "reminder_lead_minutes BETWEEN 1 AND 1440",
            name="ck_notification_preferences_lead_range",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, unique=True)
    activity_reminders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    overdue_alerts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    farm_invitations: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    member_joined: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    new_activities: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    push_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reminder_lead_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    quiet_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    quiet_end: Mapped[time | None] = mapped_column(Time, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
