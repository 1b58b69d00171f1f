from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi import WebSocketDisconnect

from src.application.notifications.types import NotificationType
from src.domain.models.notification import Notification
from src.infrastructure.realtime.channel import RealtimeChannel, RealtimeEvent, RealtimeEventType
from src.infrastructure.realtime.events import notification_event, publish_notifications
from src.infrastructure.realtime.stream import stream_subscription


def _notification(user_id, farm_id=None) -> Notification:
    return Notification.create(
        user_id, NotificationType.SYSTEM_ANNOUNCEMENT, "t", "m", farm_id=farm_id
    )


def test_events_reach_only_the_recipient():
    channel = RealtimeChannel()
    alice, bob = uuid4(), uuid4()
    alice_sub = channel.subscribe(alice)
    bob_sub = channel.subscribe(bob)

    delivered = publish_notifications(channel, RealtimeEventType.INSERT, [_notification(alice)])

    assert delivered == 1
    assert alice_sub.queue.qsize() == 1
    assert bob_sub.queue.empty()


def test_farm_scoped_subscription_filters_other_farms():
    channel = RealtimeChannel()
    user, farm_a, farm_b = uuid4(), uuid4(), uuid4()
    scoped = channel.subscribe(user, farm_a)
    everything = channel.subscribe(user)

    publish_notifications(
        channel,
        RealtimeEventType.INSERT,
        [_notification(user, farm_a), _notification(user, farm_b), _notification(user)],
    )

    assert scoped.queue.qsize() == 1
    assert everything.queue.qsize() == 3


def test_full_queue_drops_events():
    channel = RealtimeChannel(queue_size=1)
    user = uuid4()
    sub = channel.subscribe(user)
    delivered = publish_notifications(
        channel, RealtimeEventType.INSERT, [_notification(user), _notification(user)]
    )
    assert delivered == 1
    assert sub.dropped == 1


def test_unsubscribe_forgets_user():
    channel = RealtimeChannel()
    user = uuid4()
    sub = channel.subscribe(user)
    assert channel.is_connected(user)
    channel.unsubscribe(sub)
    assert not channel.is_connected(user)
    assert channel.get_connection_count() == 0
    assert publish_notifications(channel, RealtimeEventType.INSERT, [_notification(user)]) == 0


def test_event_message_shape():
    n = _notification(uuid4())
    message = notification_event(RealtimeEventType.UPDATE, n).to_message()
    assert message["type"] == "UPDATE"
    assert message["record"]["id"] == str(n.id)
    assert message["record"]["type"] == "SYSTEM_ANNOUNCEMENT"


def test_event_without_valid_user_is_dropped():
    channel = RealtimeChannel()
    channel.subscribe(uuid4())
    assert channel.publish(RealtimeEvent(RealtimeEventType.INSERT, {"user_id": "nope"})) == 0
    assert channel.publish(RealtimeEvent(RealtimeEventType.INSERT, {})) == 0


def test_no_channel_publishes_nothing():
    assert publish_notifications(None, RealtimeEventType.DELETE, [_notification(uuid4())]) == 0


class BrokenSocket:
    """Accepts reads forever and fails on the first outgoing event."""

    def __init__(self) -> None:
        self.texts: list[str] = []

    async def send_json(self, message) -> None:
        raise RuntimeError("socket gone")

    async def send_text(self, text: str) -> None:
        self.texts.append(text)

    async def receive_text(self) -> str:
        await asyncio.Event().wait()
        return ""


class ScriptedSocket:
    def __init__(self, incoming: list[str]) -> None:
        self.incoming = list(incoming)
        self.texts: list[str] = []
        self.messages: list[dict] = []

    async def send_json(self, message) -> None:
        self.messages.append(message)

    async def send_text(self, text: str) -> None:
        self.texts.append(text)

    async def receive_text(self) -> str:
        if not self.incoming:
            raise WebSocketDisconnect(code=1000)
        return self.incoming.pop(0)


async def test_stream_stops_when_sending_fails():
    channel = RealtimeChannel()
    user = uuid4()
    sub = channel.subscribe(user)
    publish_notifications(channel, RealtimeEventType.INSERT, [_notification(user)])

    await asyncio.wait_for(stream_subscription(BrokenSocket(), sub), timeout=1)


async def test_stream_answers_ping_and_ends_on_disconnect():
    channel = RealtimeChannel()
    sub = channel.subscribe(uuid4())
    socket = ScriptedSocket(["ping", "hello", "ping"])

    await asyncio.wait_for(stream_subscription(socket, sub), timeout=1)

    assert socket.texts == ["pong", "pong"]
