from __future__ import annotations

from typing import Iterable

from src.domain.models.notification import Notification
from src.infrastructure.realtime.channel import RealtimeChannel, RealtimeEvent, RealtimeEventType
from src.interfaces.http.schemas.notifications import NotificationSchema


def notification_event(event_type: RealtimeEventType, notification: Notification) -> RealtimeEvent:
    record = NotificationSchema.model_validate(notification).model_dump(mode="json")
    return RealtimeEvent(type=event_type, record=record)


def publish_notifications(
    channel: RealtimeChannel | None,
    event_type: RealtimeEventType,
    notifications: Iterable[Notification],
) -> int:
    """Publish one event per row; returns how many subscriptions were reached."""
    if channel is None:
        return 0
    return sum(channel.publish(notification_event(event_type, n)) for n in notifications)
