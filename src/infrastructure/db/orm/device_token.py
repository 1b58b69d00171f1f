from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.db.base import Base


class DeviceTokenORM(Base):
    """Push registration of one device; owned by the mobile client surface."""

    __tablename__ = "device_tokens"
    __table_args__ = (
        Index("uq_device_tokens_token", "token", unique=True),
        Index("ix_device_tokens_user_active", "user_id", "disabled"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    platform: Mapped[str] = mapped_column(String(20), nullable=False)  # ios | android | web
    token: Mapped[str] = mapped_column(String(512), nullable=False)
    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # Set when FCM reports the token as unregistered
    disabled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
