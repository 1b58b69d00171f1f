from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import select

from fakes import CRON_SECRET
from src.application.notifications.types import NotificationType
from src.domain.models.activity import Activity
from src.domain.models.scheduled_activity import ScheduledActivity
from src.domain.value_objects.activity_status import ActivityStatus
from src.domain.value_objects.recurrence import RecurrenceRule
from src.infrastructure.db.orm.activity_schedule import ActivityScheduleORM
from src.infrastructure.db.orm.animal import AnimalORM
from src.infrastructure.db.orm.farm import FarmMemberORM, FarmORM
from src.infrastructure.db.orm.notification import NotificationORM
from src.infrastructure.db.orm.profile import ProfileORM
from src.infrastructure.db.session import SQLAlchemyUnitOfWork

AUTH = {"Authorization": f"Bearer {CRON_SECRET}"}


async def _seed_farm(app):
    owner_id, member_id, farm_id, animal_id = uuid4(), uuid4(), uuid4(), uuid4()
    async with app.state.session_factory() as session:
        session.add_all(
            [
                ProfileORM(id=owner_id, phone_number="+66800000001", first_name="Owner"),
                ProfileORM(id=member_id, phone_number="+66800000002", first_name="Worker"),
            ]
        )
        await session.flush()
        session.add(FarmORM(id=farm_id, name="Green Acres", owner_id=owner_id, locale="en"))
        await session.flush()
        session.add_all(
            [
                FarmMemberORM(farm_id=farm_id, user_id=member_id),
                AnimalORM(id=animal_id, farm_id=farm_id, name="Daisy", animal_type="cow"),
            ]
        )
        await session.commit()
    return owner_id, member_id, farm_id, animal_id


async def _notifications(app) -> list[NotificationORM]:
    async with app.state.session_factory() as session:
        result = await session.execute(select(NotificationORM))
        return list(result.scalars().all())


async def test_system_endpoints_require_cron_secret(client):
    resp = await client.post("/api/v1/system/daily-tasks")
    assert resp.status_code == 401
    resp = await client.post(
        "/api/v1/system/daily-tasks", headers={"Authorization": "Bearer wrong"}
    )
    assert resp.status_code == 401
    assert resp.json()["code"] == "auth_error"


async def test_daily_tasks_rolls_schedules_and_notifies(client, app):
    owner_id, member_id, farm_id, animal_id = await _seed_farm(app)
    now = datetime.now(timezone.utc)
    async with SQLAlchemyUnitOfWork(app.state.session_factory) as uow:
        schedule = await uow.schedules.add(
            ScheduledActivity.create(
                farm_id,
                animal_id,
                "Milking",
                now - timedelta(days=2),
                recurrence_rule=RecurrenceRule.WEEKLY,
            )
        )
        await uow.activities.add(
            Activity.create(farm_id, animal_id, "Hoof trim", now - timedelta(days=2, hours=1))
        )
        await uow.commit()

    resp = await client.post("/api/v1/system/daily-tasks", headers=AUTH)

    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {
        "durationMs",
        "recurringSchedulesProcessed",
        "notificationsSent",
        "invitationsCleanedUp",
        "notificationsCleanedUp",
        "errorsCount",
        "errors",
    }
    assert body["recurringSchedulesProcessed"] == 1
    assert body["notificationsSent"] == 2
    assert body["errorsCount"] == 0

    async with app.state.session_factory() as session:
        rows = (
            await session.execute(
                select(ActivityScheduleORM).order_by(ActivityScheduleORM.scheduled_at)
            )
        ).scalars().all()
    assert [r.status for r in rows] == [ActivityStatus.COMPLETED, ActivityStatus.PENDING]
    assert rows[0].id == schedule.id
    assert rows[1].is_recurring

    overdue = await _notifications(app)
    assert {n.user_id for n in overdue} == {owner_id, member_id}
    assert {n.type for n in overdue} == {NotificationType.ACTIVITY_OVERDUE}

    # a second run finds nothing new
    again = (await client.post("/api/v1/system/daily-tasks", headers=AUTH)).json()
    assert again["notificationsSent"] == 0
    assert again["recurringSchedulesProcessed"] == 0


async def test_announcement_to_farm(client, app):
    owner_id, member_id, farm_id, _ = await _seed_farm(app)
    resp = await client.post(
        "/api/v1/system/announcements",
        headers=AUTH,
        json={
            "title": "Maintenance",
            "message": "Service window tonight",
            "farm_ids": [str(farm_id)],
            "priority": "HIGH",
        },
    )
    assert resp.status_code == 201
    assert resp.json() == {"created_count": 2}

    listed = await client.get(
        "/api/v1/notifications", headers={"X-User-ID": str(member_id)}
    )
    [item] = listed.json()["notifications"]
    assert item["type"] == "SYSTEM_ANNOUNCEMENT"
    assert item["priority"] == "HIGH"
    assert item["data"]["target_farm_ids"] == [str(farm_id)]


async def test_announcement_validation(client):
    resp = await client.post(
        "/api/v1/system/announcements", headers=AUTH, json={"title": "", "message": "x"}
    )
    assert resp.status_code == 422
