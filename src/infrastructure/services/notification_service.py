from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from src.application.errors import NotFound
from src.application.interfaces.unit_of_work import UnitOfWork
from src.application.notifications.factory import BuiltNotification, build_notification
from src.application.notifications.preferences import PreferencesResolver
from src.application.notifications.priority import overdue_days, overdue_priority
from src.application.notifications.types import (
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from src.config.settings import Settings
from src.domain.models.activity import Activity
from src.domain.models.farm import Farm
from src.domain.models.invitation import Invitation
from src.domain.models.notification import Notification, RelatedEntity
from src.domain.models.scheduled_activity import ScheduledActivity
from src.domain.value_objects.activity_status import ActivityStatus
from src.infrastructure.push.factory import PushSender
from src.infrastructure.realtime.channel import RealtimeChannel, RealtimeEventType
from src.infrastructure.realtime.events import publish_notifications

logger = logging.getLogger(__name__)


def _dedupe(user_ids: Iterable[UUID]) -> list[UUID]:
    seen: set[UUID] = set()
    ordered: list[UUID] = []
    for uid in user_ids:
        if uid not in seen:
            seen.add(uid)
            ordered.append(uid)
    return ordered


class NotificationService:
    """Creates notifications, fans them out to farm members and delivers them.

    Rows are always persisted first. Realtime publication and push delivery
    follow and never raise; push is skipped for recipients in quiet hours or
    with push disabled.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        channel: RealtimeChannel | None = None,
        *,
        push_sender: PushSender | None = None,
        default_locale: str = "th",
        tz: ZoneInfo | None = None,
        overdue_high_after_days: int = 3,
        overdue_urgent_after_days: int = 7,
        batch_size: int = 500,
        push_concurrency: int = 10,
        push_attempts: int = 3,
        push_retry_delay: float = 2.0,
    ) -> None:
        self.uow = uow
        self.channel = channel
        self.push_sender = push_sender
        self.default_locale = default_locale
        self.tz = tz
        self.overdue_high_after_days = overdue_high_after_days
        self.overdue_urgent_after_days = overdue_urgent_after_days
        self.batch_size = max(1, batch_size)
        self.push_concurrency = max(1, push_concurrency)
        self.push_attempts = max(1, push_attempts)
        self.push_retry_delay = push_retry_delay
        self.preferences = PreferencesResolver(uow.preferences, tz=tz)

    @classmethod
    def from_settings(
        cls,
        uow: UnitOfWork,
        channel: RealtimeChannel | None,
        settings: Settings,
        *,
        push_sender: PushSender | None = None,
    ) -> NotificationService:
        return cls(
            uow,
            channel,
            push_sender=push_sender,
            default_locale=settings.default_locale,
            tz=ZoneInfo(settings.app_timezone),
            overdue_high_after_days=settings.overdue_high_after_days,
            overdue_urgent_after_days=settings.overdue_urgent_after_days,
            batch_size=settings.bulk_insert_batch_size,
            push_concurrency=settings.push_concurrency,
            push_attempts=settings.push_attempts,
            push_retry_delay=settings.push_retry_delay_seconds,
        )

    # ------------------------------------------------------------------
    # Creation primitives
    # ------------------------------------------------------------------

    async def create_notification(
        self,
        recipient: UUID,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        *,
        farm_id: UUID | None = None,
        related_entity: RelatedEntity | None = None,
        scheduled_at: datetime | None = None,
    ) -> Notification:
        """Persist a single notification. Store failures propagate to the caller."""
        notification = Notification.create(
            user_id=recipient,
            type=type,
            title=title,
            message=message,
            data=data,
            priority=priority,
            farm_id=farm_id,
            related_entity=related_entity,
            scheduled_at=scheduled_at,
        )
        saved = await self.uow.notifications.add(notification)
        await self.uow.commit()
        logger.info(
            "Notification created: id=%s user=%s type=%s", saved.id, recipient, saved.type.value
        )
        await self._deliver([saved])
        return saved

    async def create_bulk_notifications(
        self,
        recipients: Iterable[UUID],
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        *,
        farm_id: UUID | None = None,
        related_entity: RelatedEntity | None = None,
        scheduled_at: datetime | None = None,
    ) -> int:
        """Create the same notification for many recipients with batched inserts.

        Recipients who opted out of the category are skipped. Each batch holds
        at most `batch_size` rows.
        """
        type = NotificationType(type)
        targets = await self.preferences.filter_recipients(_dedupe(recipients), type)
        if not targets:
            return 0
        rows = [
            Notification.create(
                user_id=uid,
                type=type,
                title=title,
                message=message,
                data=dict(data) if data else None,
                priority=priority,
                farm_id=farm_id,
                related_entity=related_entity,
                scheduled_at=scheduled_at,
            )
            for uid in targets
        ]
        created = 0
        for start in range(0, len(rows), self.batch_size):
            chunk = rows[start : start + self.batch_size]
            created += await self.uow.notifications.add_many(chunk)
            await self.uow.commit()
        logger.info("Created %d bulk notifications: %s", created, type.value)
        await self._deliver(rows)
        return created

    async def create_from_built(
        self,
        recipients: Iterable[UUID],
        built: BuiltNotification,
        priority: NotificationPriority,
        *,
        farm_id: UUID | None = None,
        related_entity: RelatedEntity | None = None,
        scheduled_at: datetime | None = None,
    ) -> int:
        return await self.create_bulk_notifications(
            recipients,
            built.type,
            built.title,
            built.message,
            built.data,
            priority,
            farm_id=farm_id,
            related_entity=related_entity,
            scheduled_at=scheduled_at,
        )

    async def resolve_farm_recipients(self, farm_id: UUID) -> list[UUID]:
        """Owner plus every member of the farm, owner listed exactly once."""
        farm = await self.uow.farms.get(farm_id)
        if farm is None:
            logger.warning("Farm %s not found while resolving recipients", farm_id)
            return []
        return _farm_recipients(farm)

    # ------------------------------------------------------------------
    # Composers
    # ------------------------------------------------------------------

    async def notify_activity_reminder(
        self, activity_id: UUID, reminder_minutes: int = 30, *, now: datetime | None = None
    ) -> int:
        now = now or datetime.now(timezone.utc)
        activity = await self.uow.activities.get(activity_id)
        if activity is None or activity.status is not ActivityStatus.PENDING:
            return 0
        if activity.activity_date < now:
            # Past due items are handled by the overdue scan
            return 0
        farm, animal_name = await self._context(activity.farm_id, activity.animal_id)
        built = build_notification(
            NotificationType.ACTIVITY_REMINDER,
            locale=self._locale(farm),
            title=activity.title,
            animal_name=animal_name,
            activity_id=activity.id,
            animal_id=activity.animal_id,
            scheduled_date=activity.activity_date,
            reminder_minutes=reminder_minutes,
        )
        return await self.create_from_built(
            _farm_recipients(farm),
            built,
            NotificationPriority.NORMAL,
            farm_id=farm.id,
            related_entity=RelatedEntity(RelatedEntityType.ACTIVITY, activity.id),
            scheduled_at=activity.activity_date - timedelta(minutes=reminder_minutes),
        )

    async def notify_schedule_reminder(
        self, schedule_id: UUID, reminder_minutes: int = 30, *, now: datetime | None = None
    ) -> int:
        now = now or datetime.now(timezone.utc)
        schedule = await self.uow.schedules.get(schedule_id)
        if schedule is None or schedule.status is not ActivityStatus.PENDING:
            return 0
        if schedule.scheduled_at < now:
            return 0
        farm, animal_name = await self._context(schedule.farm_id, schedule.animal_id)
        built = build_notification(
            NotificationType.SCHEDULE_REMINDER,
            locale=self._locale(farm),
            title=schedule.title,
            animal_name=animal_name,
            schedule_id=schedule.id,
            animal_id=schedule.animal_id,
            scheduled_date=schedule.scheduled_at,
            reminder_minutes=reminder_minutes,
            is_recurring=schedule.is_recurring,
        )
        return await self.create_from_built(
            _farm_recipients(farm),
            built,
            NotificationPriority.NORMAL,
            farm_id=farm.id,
            related_entity=RelatedEntity(RelatedEntityType.SCHEDULE, schedule.id),
            scheduled_at=schedule.scheduled_at - timedelta(minutes=reminder_minutes),
        )

    async def notify_activity_overdue(
        self, activity_id: UUID, *, now: datetime | None = None
    ) -> int:
        activity = await self.uow.activities.get(activity_id)
        if activity is None:
            return 0
        return await self._notify_overdue(activity, now or datetime.now(timezone.utc))

    async def notify_schedule_overdue(
        self, schedule_id: UUID, *, now: datetime | None = None
    ) -> int:
        schedule = await self.uow.schedules.get(schedule_id)
        if schedule is None:
            return 0
        return await self._notify_overdue(schedule, now or datetime.now(timezone.utc))

    async def _notify_overdue(self, item: Activity | ScheduledActivity, now: datetime) -> int:
        if item.status is not ActivityStatus.PENDING:
            return 0
        if isinstance(item, Activity):
            due_at = item.activity_date
            entity = RelatedEntity(RelatedEntityType.ACTIVITY, item.id)
            ids = {"activity_id": item.id}
        else:
            due_at = item.scheduled_at
            entity = RelatedEntity(RelatedEntityType.SCHEDULE, item.id)
            ids = {"schedule_id": item.id}
        if due_at >= now:
            return 0
        days = overdue_days(due_at, now)
        farm, animal_name = await self._context(item.farm_id, item.animal_id)
        built = build_notification(
            NotificationType.ACTIVITY_OVERDUE,
            locale=self._locale(farm),
            title=item.title,
            animal_name=animal_name,
            animal_id=item.animal_id,
            original_date=due_at,
            overdue_days=days,
            **ids,
        )
        priority = overdue_priority(
            days,
            high_after=self.overdue_high_after_days,
            urgent_after=self.overdue_urgent_after_days,
        )
        return await self.create_from_built(
            _farm_recipients(farm), built, priority, farm_id=farm.id, related_entity=entity
        )

    async def notify_farm_invitation(self, invitation: Invitation) -> int:
        """Notify the invitee if the phone number belongs to a registered profile."""
        invitee = await self.uow.profiles.get_by_phone(invitation.phone_number)
        if invitee is None:
            logger.info(
                "No profile for invitation %s phone - skipping notification", invitation.id
            )
            return 0
        farm = await self.uow.farms.get(invitation.farm_id)
        if farm is None:
            raise NotFound("Farm not found", details={"farm_id": str(invitation.farm_id)})
        inviter = await self.uow.profiles.get(invitation.inviter_id)
        built = build_notification(
            NotificationType.FARM_INVITATION,
            locale=self._locale(farm),
            invitation_id=invitation.id,
            farm_id=farm.id,
            farm_name=farm.name,
            inviter_name=inviter.display_name if inviter else None,
            invitee_phone_number=invitation.phone_number,
        )
        return await self.create_from_built(
            [invitee.id],
            built,
            NotificationPriority.NORMAL,
            farm_id=farm.id,
            related_entity=RelatedEntity(RelatedEntityType.INVITATION, invitation.id),
        )

    async def notify_member_joined(self, farm_id: UUID, new_member_id: UUID) -> int:
        farm = await self.uow.farms.get(farm_id)
        if farm is None:
            raise NotFound("Farm not found", details={"farm_id": str(farm_id)})
        member = await self.uow.profiles.get(new_member_id)
        built = build_notification(
            NotificationType.MEMBER_JOINED,
            locale=self._locale(farm),
            farm_id=farm.id,
            farm_name=farm.name,
            new_member_id=new_member_id,
            new_member_name=member.display_name if member else None,
        )
        # Don't notify the new member about themselves
        recipients = [uid for uid in _farm_recipients(farm) if uid != new_member_id]
        return await self.create_from_built(
            recipients,
            built,
            NotificationPriority.LOW,
            farm_id=farm.id,
            related_entity=RelatedEntity(RelatedEntityType.FARM, farm.id),
        )

    async def notify_activity_completed(self, activity_id: UUID, actor_id: UUID) -> int:
        return await self._notify_activity_event(
            NotificationType.ACTIVITY_COMPLETED, activity_id, actor_id
        )

    async def notify_activity_created(self, activity_id: UUID, actor_id: UUID) -> int:
        return await self._notify_activity_event(
            NotificationType.ACTIVITY_CREATED, activity_id, actor_id
        )

    async def _notify_activity_event(
        self, ntype: NotificationType, activity_id: UUID, actor_id: UUID
    ) -> int:
        activity = await self.uow.activities.get(activity_id)
        if activity is None:
            raise NotFound("Activity not found", details={"activity_id": str(activity_id)})
        farm, animal_name = await self._context(activity.farm_id, activity.animal_id)
        actor = await self.uow.profiles.get(actor_id)
        built = build_notification(
            ntype,
            locale=self._locale(farm),
            title=activity.title,
            animal_name=animal_name,
            activity_id=activity.id,
            animal_id=activity.animal_id,
            actor_name=actor.display_name if actor else None,
            activity_date=activity.activity_date,
        )
        # The actor already knows what they did
        recipients = [uid for uid in _farm_recipients(farm) if uid != actor_id]
        return await self.create_from_built(
            recipients,
            built,
            NotificationPriority.LOW,
            farm_id=farm.id,
            related_entity=RelatedEntity(RelatedEntityType.ACTIVITY, activity.id),
        )

    async def notify_system_announcement(
        self,
        title: str,
        message: str,
        farm_ids: Sequence[UUID] | None = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
    ) -> int:
        if farm_ids:
            recipients: list[UUID] = []
            for farm_id in farm_ids:
                recipients.extend(await self.resolve_farm_recipients(farm_id))
        else:
            recipients = await self.uow.profiles.list_ids()
        built = build_notification(
            NotificationType.SYSTEM_ANNOUNCEMENT,
            locale=self.default_locale,
            title=title,
            message=message,
            target_farm_ids=list(farm_ids) if farm_ids else None,
        )
        return await self.create_from_built(recipients, built, NotificationPriority(priority))

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _deliver(self, notifications: Sequence[Notification]) -> None:
        """Publish rows, then push them to opted-in devices.

        Token lookups and token disabling share the unit of work and run one
        at a time; only the outbound sends overlap, at most `push_concurrency`
        in flight. A batch of N pushable rows therefore takes roughly
        ceil(N / push_concurrency) x (push_attempts sends + backoff) at worst.
        """
        published = publish_notifications(self.channel, RealtimeEventType.INSERT, notifications)
        if published:
            logger.debug("Realtime published to %d subscriptions", published)
        if self.push_sender is None:
            return
        try:
            prefs = await self.uow.preferences.list_for_users({n.user_id for n in notifications})
        except Exception as e:
            logger.error("Error loading preferences for push delivery: %s", e, exc_info=True)
            return
        now = datetime.now(timezone.utc)
        jobs: list[tuple[Notification, list[str]]] = []
        for notification in notifications:
            user_prefs = prefs.get(notification.user_id)
            if user_prefs is None or not user_prefs.push_enabled:
                continue
            if self.preferences.is_quiet_hours(user_prefs, now):
                logger.debug(
                    "Quiet hours, push withheld: id=%s user=%s",
                    notification.id,
                    notification.user_id,
                )
                continue
            try:
                tokens = await self.uow.device_tokens.list_active_tokens(
                    user_id=notification.user_id
                )
            except Exception as e:
                logger.error("Error loading push tokens: %s", e, exc_info=True)
                continue
            if tokens:
                jobs.append((notification, list(tokens)))
        if not jobs:
            return

        semaphore = asyncio.Semaphore(self.push_concurrency)

        async def bounded(notification: Notification, tokens: list[str]) -> list[str]:
            async with semaphore:
                return await self._send_via_push(notification, tokens)

        results = await asyncio.gather(*(bounded(n, tokens) for n, tokens in jobs))
        invalid_tokens = sorted({token for invalid in results for token in invalid})
        if not invalid_tokens:
            return
        try:
            disabled = await self.uow.device_tokens.disable_tokens(invalid_tokens)
            await self.uow.commit()
            logger.info("Disabled %s invalid push tokens", disabled)
        except Exception as e:
            logger.error("Error disabling invalid push tokens: %s", e, exc_info=True)

    async def _send_via_push(self, notification: Notification, tokens: list[str]) -> list[str]:
        """Send one notification with retries; returns the tokens FCM rejected."""
        data = {
            "notification_id": str(notification.id),
            "type": notification.type.value,
            "priority": notification.priority.value,
            "farm_id": str(notification.farm_id) if notification.farm_id else None,
        }
        delay = self.push_retry_delay
        for attempt in range(1, self.push_attempts + 1):
            try:
                invalid_tokens = await self.push_sender.send_to_tokens(
                    tokens=tokens,
                    title=notification.title,
                    body=notification.message,
                    data=data,
                )
            except Exception as e:
                if attempt == self.push_attempts:
                    logger.error(
                        "Error sending notification via Push after %s attempts: %s",
                        attempt,
                        e,
                        exc_info=True,
                    )
                    return []
                logger.warning(
                    "Push send attempt %s failed (%s), retrying in %ss", attempt, e, delay
                )
                await asyncio.sleep(delay)
                delay *= 2
                continue
            logger.info(
                "Notification sent via Push: id=%s tokens=%s attempt=%s",
                notification.id,
                len(tokens),
                attempt,
            )
            return list(invalid_tokens or [])
        return []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _context(self, farm_id: UUID, animal_id: UUID) -> tuple[Farm, str]:
        farm = await self.uow.farms.get(farm_id)
        if farm is None:
            raise NotFound("Farm not found", details={"farm_id": str(farm_id)})
        animal = await self.uow.farms.get_animal(animal_id)
        return farm, animal.name if animal else "-"

    def _locale(self, farm: Farm | None) -> str:
        return (farm.locale if farm and farm.locale else None) or self.default_locale


def _farm_recipients(farm: Farm) -> list[UUID]:
    return _dedupe([*farm.member_ids, farm.owner_id])
