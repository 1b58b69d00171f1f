from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID, uuid4

DEFAULT_INVITATION_TTL_DAYS = 7


class InvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


@dataclass(slots=True)
class Invitation:
    id: UUID
    farm_id: UUID
    inviter_id: UUID
    phone_number: str
    expires_at: datetime
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        farm_id: UUID,
        inviter_id: UUID,
        phone_number: str,
        *,
        ttl_days: int = DEFAULT_INVITATION_TTL_DAYS,
    ) -> Invitation:
        now = datetime.now(timezone.utc)
        return cls(
            id=uuid4(),
            farm_id=farm_id,
            inviter_id=inviter_id,
            phone_number=phone_number,
            expires_at=now + timedelta(days=ttl_days),
            created_at=now,
        )

    def is_open(self, now: datetime) -> bool:
        return self.status is InvitationStatus.PENDING and self.expires_at > now
