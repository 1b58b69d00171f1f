from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)


class RealtimeEventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True, slots=True)
class RealtimeEvent:
    type: RealtimeEventType
    record: dict[str, Any]

    def to_message(self) -> dict[str, Any]:
        return {"type": self.type.value, "record": self.record}


@dataclass(eq=False, slots=True)
class Subscription:
    """One connected client. Events are buffered in a bounded queue."""

    user_id: UUID
    farm_id: UUID | None
    queue: asyncio.Queue
    id: UUID = field(default_factory=uuid4)
    dropped: int = 0

    def matches(self, record: dict[str, Any]) -> bool:
        if str(record.get("user_id")) != str(self.user_id):
            return False
        if self.farm_id is not None:
            return str(record.get("farm_id")) == str(self.farm_id)
        return True

    async def next_event(self) -> RealtimeEvent:
        return await self.queue.get()


class RealtimeChannel:
    """Best-effort pub/sub of notification row changes to connected clients.

    Nothing is kept for recipients without a live subscription; a client that
    reconnects is expected to re-read its notifications over HTTP.
    """

    def __init__(self, *, queue_size: int = 100) -> None:
        self.queue_size = queue_size
        # Key: user_id -> subscriptions (tabs/devices/components)
        self.subscriptions: dict[UUID, list[Subscription]] = {}

    def subscribe(self, user_id: UUID, farm_id: UUID | None = None) -> Subscription:
        sub = Subscription(
            user_id=user_id, farm_id=farm_id, queue=asyncio.Queue(maxsize=self.queue_size)
        )
        subs = self.subscriptions.setdefault(user_id, [])
        subs.append(sub)
        logger.info(
            "Realtime subscribed: user=%s farm=%s total=%s", user_id, farm_id, len(subs)
        )
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subs = self.subscriptions.get(subscription.user_id)
        if not subs:
            return
        remaining = [s for s in subs if s is not subscription]
        if remaining:
            self.subscriptions[subscription.user_id] = remaining
        else:
            del self.subscriptions[subscription.user_id]
        logger.info(
            "Realtime unsubscribed: user=%s remaining=%s", subscription.user_id, len(remaining)
        )

    def publish(self, event: RealtimeEvent) -> int:
        """Queue `event` for every matching subscription without blocking.

        Returns the number of subscriptions the event was delivered to.
        """
        user_id = event.record.get("user_id")
        if user_id is None:
            return 0
        try:
            key = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            logger.warning("Realtime event with invalid user_id=%s dropped", user_id)
            return 0
        delivered = 0
        for sub in self.subscriptions.get(key, []):
            if not sub.matches(event.record):
                continue
            try:
                sub.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                sub.dropped += 1
                logger.warning(
                    "Realtime queue full, event dropped: user=%s subscription=%s",
                    sub.user_id,
                    sub.id,
                )
        return delivered

    def is_connected(self, user_id: UUID) -> bool:
        return bool(self.subscriptions.get(user_id))

    def get_connection_count(self) -> int:
        return sum(len(v) for v in self.subscriptions.values())
