from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class ActivityCreatedEvent:
    actor_user_id: UUID
    activity_id: UUID


@dataclass(frozen=True)
class ActivityCompletedEvent:
    actor_user_id: UUID
    activity_id: UUID


@dataclass(frozen=True)
class MemberJoinedEvent:
    farm_id: UUID
    new_member_id: UUID
