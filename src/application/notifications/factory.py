from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from src.utils.datetime_tz import format_day_date

from .payloads import (
    ActivityEventPayload,
    AnnouncementPayload,
    InvitationPayload,
    MemberJoinedPayload,
    OverduePayload,
    ReminderPayload,
)
from .types import NotificationType

SUPPORTED_LOCALES = ("th", "en")

_TEMPLATES: dict[str, dict[str, str]] = {
    "th": {
        "activity_reminder_title": "เตือน: {title}",
        "activity_reminder_message": 'กิจกรรม "{title}" สำหรับ {animal} จะครบกำหนดในอีก {minutes} นาที',
        "schedule_reminder_title": "เตือนกำหนดการ: {title}",
        "schedule_reminder_message": 'กำหนดการ "{title}" สำหรับ {animal} จะครบกำหนดในอีก {minutes} นาที',
        "overdue_title": "เกินกำหนด: {title}",
        "overdue_message": '"{title}" สำหรับ {animal} เกินกำหนดมาแล้ว {days} วัน',
        "invitation_title": "เชิญเข้าร่วมฟาร์ม",
        "invitation_message": '{inviter} เชิญคุณเข้าร่วมฟาร์ม "{farm}"',
        "member_joined_title": "สมาชิกใหม่เข้าร่วมฟาร์ม",
        "member_joined_message": '{member} เข้าร่วมฟาร์ม "{farm}" แล้ว',
        "completed_title": "กิจกรรมเสร็จสิ้น: {title}",
        "completed_message": '{actor} ทำกิจกรรม "{title}" สำหรับ {animal} เสร็จแล้ว',
        "created_title": "กิจกรรมใหม่: {title}",
        "created_message": '{actor} เพิ่มกิจกรรม "{title}" สำหรับ {animal}',
        "fallback_actor": "สมาชิกฟาร์ม",
        "fallback_title": "การแจ้งเตือน",
    },
    "en": {
        "activity_reminder_title": "Reminder: {title}",
        "activity_reminder_message": 'Activity "{title}" for {animal} is due in {minutes} minutes',
        "schedule_reminder_title": "Schedule reminder: {title}",
        "schedule_reminder_message": 'Schedule "{title}" for {animal} is due in {minutes} minutes',
        "overdue_title": "Overdue: {title}",
        "overdue_message": '"{title}" for {animal} is {days} day(s) overdue',
        "invitation_title": "Farm invitation",
        "invitation_message": '{inviter} invited you to join "{farm}"',
        "member_joined_title": "New farm member",
        "member_joined_message": '{member} joined "{farm}"',
        "completed_title": "Activity completed: {title}",
        "completed_message": '{actor} completed "{title}" for {animal}',
        "created_title": "New activity: {title}",
        "created_message": '{actor} added "{title}" for {animal}',
        "fallback_actor": "A farm member",
        "fallback_title": "Notification",
    },
}


@dataclass
class BuiltNotification:
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any]


def _short_label(s: str | None, *, max_len: int = 24) -> str | None:
    """Shorten labels like actor or animal names to a safe length with ellipsis."""
    if not s:
        return s
    s = str(s)
    return s if len(s) <= max_len else (s[: max(0, max_len - 1)] + "…")


def _t(locale: str, key: str, **fmt: Any) -> str:
    table = _TEMPLATES.get(locale) or _TEMPLATES["en"]
    return table[key].format(**fmt)


def build_notification(
    ntype: NotificationType | str, *, locale: str = "th", **kwargs: Any
) -> BuiltNotification:
    """
    Central place to build notification title/message/data from templates.
    Keep strings easy to find and translate.
    """
    ntype = NotificationType(ntype)

    if ntype in (NotificationType.ACTIVITY_REMINDER, NotificationType.SCHEDULE_REMINDER):
        title: str = kwargs["title"]
        animal_name: str = kwargs.get("animal_name") or "-"
        minutes: int = int(kwargs.get("reminder_minutes", 30))
        prefix = "activity" if ntype is NotificationType.ACTIVITY_REMINDER else "schedule"
        payload = ReminderPayload(
            activity_id=kwargs.get("activity_id"),
            schedule_id=kwargs.get("schedule_id"),
            animal_id=kwargs["animal_id"],
            animal_name=animal_name,
            scheduled_date=kwargs["scheduled_date"],
            reminder_minutes=minutes,
            is_recurring=kwargs.get("is_recurring"),
        )
        return BuiltNotification(
            ntype,
            _t(locale, f"{prefix}_reminder_title", title=title),
            _t(
                locale,
                f"{prefix}_reminder_message",
                title=title,
                animal=_short_label(animal_name),
                minutes=minutes,
            ),
            payload.to_data(),
        )

    if ntype == NotificationType.ACTIVITY_OVERDUE:
        title = kwargs["title"]
        animal_name = kwargs.get("animal_name") or "-"
        days = int(kwargs.get("overdue_days", 0))
        payload = OverduePayload(
            activity_id=kwargs.get("activity_id"),
            schedule_id=kwargs.get("schedule_id"),
            animal_id=kwargs["animal_id"],
            animal_name=animal_name,
            original_date=kwargs["original_date"],
            overdue_days=days,
        )
        message = _t(
            locale, "overdue_message", title=title, animal=_short_label(animal_name), days=days
        )
        message += f" • {format_day_date(kwargs['original_date'], locale=locale)}"
        return BuiltNotification(
            ntype, _t(locale, "overdue_title", title=title), message, payload.to_data()
        )

    if ntype == NotificationType.FARM_INVITATION:
        farm_name: str = kwargs["farm_name"]
        inviter_name: str = kwargs.get("inviter_name") or _t(locale, "fallback_actor")
        payload = InvitationPayload(
            invitation_id=kwargs["invitation_id"],
            farm_id=kwargs["farm_id"],
            farm_name=farm_name,
            inviter_name=inviter_name,
            invitee_phone_number=kwargs["invitee_phone_number"],
        )
        return BuiltNotification(
            ntype,
            _t(locale, "invitation_title"),
            _t(locale, "invitation_message", inviter=_short_label(inviter_name), farm=farm_name),
            payload.to_data(),
        )

    if ntype == NotificationType.MEMBER_JOINED:
        farm_name = kwargs["farm_name"]
        member_name: str = kwargs.get("new_member_name") or _t(locale, "fallback_actor")
        payload = MemberJoinedPayload(
            farm_id=kwargs["farm_id"],
            farm_name=farm_name,
            new_member_id=kwargs["new_member_id"],
            new_member_name=member_name,
        )
        return BuiltNotification(
            ntype,
            _t(locale, "member_joined_title"),
            _t(locale, "member_joined_message", member=_short_label(member_name), farm=farm_name),
            payload.to_data(),
        )

    if ntype in (NotificationType.ACTIVITY_COMPLETED, NotificationType.ACTIVITY_CREATED):
        title = kwargs["title"]
        animal_name = kwargs.get("animal_name") or "-"
        actor: str = kwargs.get("actor_name") or _t(locale, "fallback_actor")
        prefix = "completed" if ntype is NotificationType.ACTIVITY_COMPLETED else "created"
        payload = ActivityEventPayload(
            activity_id=kwargs["activity_id"],
            animal_id=kwargs["animal_id"],
            animal_name=animal_name,
            actor_name=actor,
            activity_date=kwargs.get("activity_date"),
            occurred_at=kwargs.get("occurred_at") or datetime.now(timezone.utc),
        )
        return BuiltNotification(
            ntype,
            _t(locale, f"{prefix}_title", title=title),
            _t(
                locale,
                f"{prefix}_message",
                actor=_short_label(actor),
                title=title,
                animal=_short_label(animal_name),
            ),
            payload.to_data(),
        )

    # SYSTEM_ANNOUNCEMENT is free-form
    payload = AnnouncementPayload(
        target_farm_ids=kwargs.get("target_farm_ids"),
        announcement_date=kwargs.get("announcement_date") or datetime.now(timezone.utc),
    )
    return BuiltNotification(
        ntype,
        title=str(kwargs.get("title") or _t(locale, "fallback_title")),
        message=str(kwargs.get("message", "")),
        data=payload.to_data(),
    )
