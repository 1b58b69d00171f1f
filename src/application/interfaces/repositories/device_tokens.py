from __future__ import annotations

from typing import Protocol
from uuid import UUID


class DeviceTokensRepository(Protocol):
    async def list_active_tokens(self, *, user_id: UUID) -> list[str]: ...

    async def disable_tokens(self, tokens: list[str]) -> int: ...
