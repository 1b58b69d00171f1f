from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(slots=True)
class Farm:
    id: UUID
    name: str
    owner_id: UUID
    locale: str | None = None
    member_ids: list[UUID] = field(default_factory=list)


@dataclass(slots=True)
class Animal:
    id: UUID
    farm_id: UUID
    name: str
    animal_type: str | None = None
