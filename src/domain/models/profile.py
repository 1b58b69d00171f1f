from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(slots=True)
class Profile:
    id: UUID
    phone_number: str
    first_name: str | None = None
    last_name: str | None = None

    @property
    def display_name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.phone_number
