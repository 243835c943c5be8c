"""
Seed a development database with a manager, three employees and a week of
completed attendance.

    python -m attendance_tracker.seed

Existing users and records are wiped first. Statuses and hours are derived
through the status engine, so seeded rows obey the same rules as live ones.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timedelta

from sqlalchemy import delete

from attendance_tracker.core.security import get_password_hash
from attendance_tracker.db.base import Base
from attendance_tracker.db.session import async_session_factory, engine
from attendance_tracker.models.attendance import AttendanceRecord
from attendance_tracker.models.attendance_settings import AttendanceSettings  # noqa: F401
from attendance_tracker.models.user import Role, User
from attendance_tracker.services.status_engine import (AttendanceRules,
                                                       compute_duration,
                                                       derive_check_in_status,
                                                       derive_check_out_status,
                                                       local_day, worked_hours)

logger = logging.getLogger(__name__)

SEED_PASSWORD = "password123"

SEED_USERS = [
    ("Admin Manager", "admin@example.com", "MGR001", "Management", Role.MANAGER),
    ("John Doe", "john@example.com", "EMP001", "Engineering", Role.EMPLOYEE),
    ("Jane Smith", "jane@example.com", "EMP002", "HR", Role.EMPLOYEE),
    ("Bob Johnson", "bob@example.com", "EMP003", "Engineering", Role.EMPLOYEE),
]


def build_week(
    user_ids: list[int],
    now: datetime,
    rules: AttendanceRules,
    rng: random.Random,
    days: int = 7,
    attendance_rate: float = 0.85,
) -> list[AttendanceRecord]:
    """Completed records for the past ``days`` days (today excluded).

    Check-ins fall between 09:00 and 10:59 local time and shifts last
    8-9 hours; roughly ``1 - attendance_rate`` of employee-days are skipped.
    """
    today = local_day(now, rules.tz)
    records = []
    for offset in range(1, days + 1):
        day = today - timedelta(days=offset)
        for user_id in user_ids:
            if rng.random() > attendance_rate:
                continue
            check_in = datetime(
                day.year, day.month, day.day,
                9 + rng.randint(0, 1), rng.randint(0, 59),
                tzinfo=rules.tz,
            )
            check_out = check_in + timedelta(hours=8 + rng.randint(0, 1))
            status = derive_check_in_status(check_in, rules.late_threshold, rules.tz)
            status = derive_check_out_status(
                status, worked_hours(check_in, check_out), rules.half_day_hours
            )
            records.append(
                AttendanceRecord(
                    user_id=user_id,
                    date=day,
                    check_in_time=check_in,
                    check_out_time=check_out,
                    status=status.value,
                    total_hours=compute_duration(check_in, check_out),
                )
            )
    return records


async def seed(now: datetime | None = None, rng: random.Random | None = None) -> int:
    now = now or datetime.now().astimezone()
    rng = rng or random.Random()
    rules = AttendanceRules()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        await session.execute(delete(AttendanceRecord))
        await session.execute(delete(User))

        hashed = get_password_hash(SEED_PASSWORD)
        users = [
            User(
                name=name,
                email=email,
                employee_id=employee_id,
                department=department,
                role=role.value,
                hashed_password=hashed,
            )
            for name, email, employee_id, department, role in SEED_USERS
        ]
        session.add_all(users)
        await session.flush()

        employee_ids = [u.id for u in users if u.role == Role.EMPLOYEE.value]
        records = build_week(employee_ids, now, rules, rng)
        session.add_all(records)
        await session.commit()

    logger.info("Seeded %d users and %d attendance records", len(users), len(records))
    return len(records)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    asyncio.run(seed())
