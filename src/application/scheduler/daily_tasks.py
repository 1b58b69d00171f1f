from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable
from zoneinfo import ZoneInfo

from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.scheduler.triggers import NotificationTriggers, ScanResult
from src.config.settings import Settings
from src.domain.value_objects.activity_status import ActivityStatus
from src.infrastructure.services.notification_service import NotificationService
from src.utils.datetime_tz import start_of_day

logger = logging.getLogger(__name__)

UowFactory = Callable[[], UnitOfWork]
ServiceFactory = Callable[[UnitOfWork], NotificationService]
Step = Callable[[NotificationTriggers], Awaitable[ScanResult]]


@dataclass(slots=True)
class DailyTasksSummary:
    duration_ms: int = 0
    recurring_schedules_processed: int = 0
    notifications_sent: int = 0
    invitations_cleaned_up: int = 0
    notifications_cleaned_up: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def errors_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "duration_ms": self.duration_ms,
            "recurring_schedules_processed": self.recurring_schedules_processed,
            "notifications_sent": self.notifications_sent,
            "invitations_cleaned_up": self.invitations_cleaned_up,
            "notifications_cleaned_up": self.notifications_cleaned_up,
            "errors_count": self.errors_count,
            "errors": list(self.errors),
        }


async def roll_recurring_schedules(uow: UnitOfWork, due_by: datetime) -> tuple[int, list[str]]:
    """Complete each recurring schedule due by `due_by` and create its successor.

    The successor insert and the status change commit together per schedule.
    """
    processed = 0
    errors: list[str] = []
    for schedule in await uow.schedules.list_due_recurring(due_by):
        try:
            successor = schedule.next_instance()
            schedule.transition_to(ActivityStatus.COMPLETED)
            if successor is not None:
                await uow.schedules.add(successor)
            await uow.schedules.set_status(schedule.id, ActivityStatus.COMPLETED)
            await uow.commit()
            processed += 1
            logger.info(
                "Rolled schedule %s forward to %s",
                schedule.id,
                successor.scheduled_at.isoformat() if successor else None,
            )
        except Exception as e:
            await uow.rollback()
            logger.error("Failed rolling schedule %s: %s", schedule.id, e, exc_info=True)
            errors.append(f"schedule {schedule.id}: {e}")
    return processed, errors


async def run_daily_tasks(
    uow_factory: UowFactory,
    service_factory: ServiceFactory,
    settings: Settings,
    now: datetime | None = None,
) -> DailyTasksSummary:
    """Run the daily maintenance cycle; each step is isolated from the others.

    Order: recurrence rollover, reminders, overdue alerts, invitation
    notifications, stale invitation cleanup, notification retention.
    Rollover only touches schedules due by the start of the current day in
    the application timezone, so today's occurrence stays PENDING and can
    still be reminded about. Reminders look ahead over the whole gap until
    the next run. Only a failure to run the rollover step at all propagates.
    """
    started = time.perf_counter()
    now = now or datetime.now(timezone.utc)
    summary = DailyTasksSummary()
    rollover_cutoff = start_of_day(now, ZoneInfo(settings.app_timezone))
    logger.info(
        "Daily tasks started at %s (rollover cutoff %s)",
        now.isoformat(),
        rollover_cutoff.isoformat(),
    )

    async with uow_factory() as uow:
        processed, errors = await roll_recurring_schedules(uow, rollover_cutoff)
        summary.recurring_schedules_processed = processed
        summary.errors.extend(errors)

    lead = max(settings.reminder_lead_minutes, settings.daily_reminder_window_minutes)
    retention = settings.notification_retention_days
    max_age = settings.invitation_max_age_days

    async def stale_invitations(t: NotificationTriggers) -> ScanResult:
        summary.invitations_cleaned_up = await _cleanup_stale_invitations(t.uow, now, max_age)
        return ScanResult()

    steps: tuple[tuple[str, Step], ...] = (
        ("activity reminders", lambda t: t.check_upcoming_activities(now, lead)),
        ("schedule reminders", lambda t: t.check_upcoming_schedules(now, lead)),
        ("overdue activities", lambda t: t.check_overdue_activities(now)),
        ("overdue schedules", lambda t: t.check_overdue_schedules(now)),
        ("invitations", lambda t: t.process_invitation_notifications(now)),
        ("invitation cleanup", stale_invitations),
        ("retention", lambda t: t.cleanup_old_notifications(now, retention)),
    )
    for label, step in steps:
        try:
            async with uow_factory() as uow:
                triggers = NotificationTriggers(
                    uow,
                    service_factory(uow),
                    reminder_lead_minutes=lead,
                    retention_days=retention,
                )
                result = await step(triggers)
        except Exception as e:
            logger.error("Daily step %s failed: %s", label, e, exc_info=True)
            summary.errors.append(f"{label}: {e}")
            continue
        summary.notifications_sent += result.created
        summary.notifications_cleaned_up += result.deleted
        summary.errors.extend(result.errors)

    summary.duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "Daily tasks finished in %dms: schedules=%d sent=%d invitations_cleaned=%d "
        "notifications_cleaned=%d errors=%d",
        summary.duration_ms,
        summary.recurring_schedules_processed,
        summary.notifications_sent,
        summary.invitations_cleaned_up,
        summary.notifications_cleaned_up,
        summary.errors_count,
    )
    return summary


async def _cleanup_stale_invitations(uow: UnitOfWork, now: datetime, max_age_days: int) -> int:
    """Delete PENDING invitations older than `max_age_days`; failures propagate."""
    try:
        removed = await uow.invitations.delete_pending_created_before(
            now - timedelta(days=max_age_days)
        )
        await uow.commit()
    except Exception:
        await uow.rollback()
        raise
    if removed:
        logger.info("Removed %d stale invitations", removed)
    return removed
