from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.notifications.types import NotificationType, RelatedEntityType
from src.infrastructure.realtime.channel import RealtimeEventType
from src.infrastructure.realtime.events import publish_notifications
from src.infrastructure.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def _minutes_until(due: datetime, now: datetime) -> int:
    return max(0, math.ceil((due - now).total_seconds() / 60))


@dataclass(slots=True)
class ScanResult:
    created: int = 0
    deleted: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: ScanResult) -> ScanResult:
        self.created += other.created
        self.deleted += other.deleted
        self.errors.extend(other.errors)
        return self


class NotificationTriggers:
    """Re-runnable scans that turn due/overdue work into notifications.

    Every scan checks the store for an existing notification before creating
    one, so running a scan twice creates nothing the second time. A failing
    item is rolled back, logged and recorded; the remaining items still run.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        service: NotificationService,
        *,
        reminder_lead_minutes: int = 30,
        retention_days: int = 30,
    ) -> None:
        self.uow = uow
        self.service = service
        self.reminder_lead_minutes = reminder_lead_minutes
        self.retention_days = retention_days

    async def _guarded(
        self, result: ScanResult, label: str, action: Callable[[], Awaitable[int]]
    ) -> None:
        try:
            result.created += await action()
        except Exception as e:
            await self.uow.rollback()
            logger.error("%s failed: %s", label, e, exc_info=True)
            result.errors.append(f"{label}: {e}")

    async def check_overdue_activities(self, now: datetime | None = None) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        result = ScanResult()
        for activity in await self.uow.activities.list_pending_before(now):
            if await self.uow.notifications.exists_for_entity(
                NotificationType.ACTIVITY_OVERDUE, RelatedEntityType.ACTIVITY, activity.id
            ):
                continue
            await self._guarded(
                result,
                f"overdue activity {activity.id}",
                lambda a=activity: self.service.notify_activity_overdue(a.id, now=now),
            )
        logger.info("Overdue activities scan: created=%d", result.created)
        return result

    async def check_overdue_schedules(self, now: datetime | None = None) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        result = ScanResult()
        for schedule in await self.uow.schedules.list_pending_before(now):
            if await self.uow.notifications.exists_for_entity(
                NotificationType.ACTIVITY_OVERDUE, RelatedEntityType.SCHEDULE, schedule.id
            ):
                continue
            await self._guarded(
                result,
                f"overdue schedule {schedule.id}",
                lambda s=schedule: self.service.notify_schedule_overdue(s.id, now=now),
            )
        logger.info("Overdue schedules scan: created=%d", result.created)
        return result

    async def check_upcoming_activities(
        self, now: datetime | None = None, lead_minutes: int | None = None
    ) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        lead = self.reminder_lead_minutes if lead_minutes is None else lead_minutes
        result = ScanResult()
        upcoming = await self.uow.activities.list_pending_between(
            now, now + timedelta(minutes=lead)
        )
        for activity in upcoming:
            if await self.uow.notifications.exists_for_entity(
                NotificationType.ACTIVITY_REMINDER, RelatedEntityType.ACTIVITY, activity.id
            ):
                continue
            await self._guarded(
                result,
                f"activity reminder {activity.id}",
                lambda a=activity: self.service.notify_activity_reminder(
                    a.id, _minutes_until(a.activity_date, now), now=now
                ),
            )
        logger.info("Upcoming activities scan: created=%d", result.created)
        return result

    async def check_upcoming_schedules(
        self, now: datetime | None = None, lead_minutes: int | None = None
    ) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        lead = self.reminder_lead_minutes if lead_minutes is None else lead_minutes
        result = ScanResult()
        upcoming = await self.uow.schedules.list_pending_between(
            now, now + timedelta(minutes=lead)
        )
        for schedule in upcoming:
            if await self.uow.notifications.exists_for_entity(
                NotificationType.SCHEDULE_REMINDER, RelatedEntityType.SCHEDULE, schedule.id
            ):
                continue
            await self._guarded(
                result,
                f"schedule reminder {schedule.id}",
                lambda s=schedule: self.service.notify_schedule_reminder(
                    s.id, _minutes_until(s.scheduled_at, now), now=now
                ),
            )
        logger.info("Upcoming schedules scan: created=%d", result.created)
        return result

    async def process_invitation_notifications(self, now: datetime | None = None) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        result = ScanResult()
        for invitation in await self.uow.invitations.list_open(now):
            invitee = await self.uow.profiles.get_by_phone(invitation.phone_number)
            if invitee is None:
                # Not registered yet; picked up on a later run once they sign up
                continue
            if await self.uow.notifications.exists_for_recipient(
                NotificationType.FARM_INVITATION, invitation.farm_id, invitee.id
            ):
                continue
            await self._guarded(
                result,
                f"invitation {invitation.id}",
                lambda i=invitation: self.service.notify_farm_invitation(i),
            )
        logger.info("Invitation scan: created=%d", result.created)
        return result

    async def cleanup_old_notifications(
        self, now: datetime | None = None, retention_days: int | None = None
    ) -> ScanResult:
        """Hard-delete read notifications older than the retention window."""
        now = now or datetime.now(timezone.utc)
        days = retention_days if retention_days is not None else self.retention_days
        result = ScanResult()
        try:
            removed = await self.uow.notifications.delete_read_older_than(
                now - timedelta(days=days)
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error("Notification cleanup failed: %s", e, exc_info=True)
            result.errors.append(f"cleanup: {e}")
            return result
        result.deleted = len(removed)
        publish_notifications(self.service.channel, RealtimeEventType.DELETE, removed)
        logger.info("Cleaned up %d old notifications", result.deleted)
        return result

    async def run_all_checks(self, now: datetime | None = None) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        total = ScanResult()
        scans = (
            ("upcoming activities", self.check_upcoming_activities),
            ("upcoming schedules", self.check_upcoming_schedules),
            ("overdue activities", self.check_overdue_activities),
            ("overdue schedules", self.check_overdue_schedules),
            ("invitations", self.process_invitation_notifications),
            ("cleanup", self.cleanup_old_notifications),
        )
        for label, scan in scans:
            try:
                total.merge(await scan(now))
            except Exception as e:
                await self.uow.rollback()
                logger.error("Scan %s failed: %s", label, e, exc_info=True)
                total.errors.append(f"{label}: {e}")
        return total
