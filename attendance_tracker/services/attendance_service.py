"""
Attendance service — check-in / check-out transitions and record queries.

Per (user, day) the lifecycle is NotCheckedIn -> CheckedIn -> Completed.
Check-in is an insert guarded by the (user_id, date) unique constraint;
check-out locks the row (FOR UPDATE where supported) and writes it once.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from attendance_tracker.core.config import settings
from attendance_tracker.core.exceptions import (AlreadyCheckedOut,
                                                DuplicateCheckIn,
                                                InvalidSweepDate,
                                                NoCheckInFound, NotFound)
from attendance_tracker.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_tracker.models.attendance_settings import AttendanceSettings
from attendance_tracker.models.user import Role, User
from attendance_tracker.services.aggregator import (Summary, TeamSummary,
                                                    month_bounds, summarize,
                                                    team_summary)
from attendance_tracker.services.status_engine import (AttendanceRules,
                                                       compute_duration,
                                                       derive_check_in_status,
                                                       derive_check_out_status,
                                                       ensure_utc, local_day,
                                                       worked_hours)

logger = logging.getLogger(__name__)


# ── Rules ───────────────────────────────────────────────────────────
async def load_rules(db: AsyncSession) -> AttendanceRules:
    """Rules from the settings row, or the configured defaults if none exists."""
    result = await db.execute(select(AttendanceSettings).limit(1))
    row = result.scalar_one_or_none()
    if row is None:
        return AttendanceRules.from_strings(
            settings.LATE_THRESHOLD, settings.HALF_DAY_HOURS, settings.TIMEZONE_OFFSET
        )
    return AttendanceRules.from_strings(
        row.late_threshold, row.half_day_hours, row.timezone_offset
    )


# ── Lookups ─────────────────────────────────────────────────────────
async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("Employee not found")
    return user


async def get_record(db: AsyncSession, user_id: int, day: date) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.user_id == user_id, AttendanceRecord.date == day
        )
    )
    return result.scalar_one_or_none()


async def count_employees(db: AsyncSession) -> int:
    """Headcount of active employees (managers excluded)."""
    result = await db.execute(
        select(func.count(User.id)).where(
            User.role == Role.EMPLOYEE.value, User.is_active.is_(True)
        )
    )
    return result.scalar() or 0


# ── Transitions ─────────────────────────────────────────────────────
async def check_in(
    db: AsyncSession, user_id: int, now: datetime, rules: AttendanceRules
) -> AttendanceRecord:
    """Create today's record. Raises ``DuplicateCheckIn`` if one exists."""
    today = local_day(now, rules.tz)
    if await get_record(db, user_id, today) is not None:
        raise DuplicateCheckIn()

    status = derive_check_in_status(now, rules.late_threshold, rules.tz)
    record = AttendanceRecord(
        user_id=user_id,
        date=today,
        check_in_time=ensure_utc(now),
        status=status.value,
        total_hours=0.0,
    )
    db.add(record)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent check-in for the same day
        await db.rollback()
        logger.info("Concurrent check-in rejected for user %d on %s", user_id, today)
        raise DuplicateCheckIn() from None
    await db.refresh(record)

    logger.info("Check-in user %d on %s (%s)", user_id, today, record.status)
    return record


async def check_out(
    db: AsyncSession, user_id: int, now: datetime, rules: AttendanceRules
) -> AttendanceRecord:
    """Complete today's record with check-out time, hours and final status."""
    today = local_day(now, rules.tz)
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.user_id == user_id, AttendanceRecord.date == today)
        .with_for_update()
    )
    record = result.scalar_one_or_none()

    if record is None or record.check_in_time is None:
        raise NoCheckInFound()
    if record.check_out_time is not None:
        raise AlreadyCheckedOut()

    total_hours = compute_duration(record.check_in_time, now)
    status = derive_check_out_status(
        record.status, worked_hours(record.check_in_time, now), rules.half_day_hours
    )

    record.check_out_time = ensure_utc(now)
    record.total_hours = total_hours
    record.status = status.value
    await db.commit()
    await db.refresh(record)

    logger.info(
        "Check-out user %d on %s (%s, %.2fh)", user_id, today, record.status, total_hours
    )
    return record


async def mark_absentees(
    db: AsyncSession, day: date, now: datetime, rules: AttendanceRules
) -> int:
    """End-of-day sweep: store ``absent`` for every active employee with no record.

    Only past days can be swept, so a late check-in is never pre-empted.
    Each insert runs in its own savepoint; a row that already exists is skipped.
    """
    if day >= local_day(now, rules.tz):
        raise InvalidSweepDate()

    recorded = select(AttendanceRecord.user_id).where(AttendanceRecord.date == day)
    result = await db.execute(
        select(User.id).where(
            User.role == Role.EMPLOYEE.value,
            User.is_active.is_(True),
            User.id.not_in(recorded),
        )
    )
    missing = list(result.scalars().all())

    created = 0
    for user_id in missing:
        try:
            async with db.begin_nested():
                db.add(
                    AttendanceRecord(
                        user_id=user_id,
                        date=day,
                        status=AttendanceStatus.ABSENT.value,
                        total_hours=0.0,
                    )
                )
            created += 1
        except IntegrityError:
            logger.info("Record for user %d on %s appeared during sweep", user_id, day)
    await db.commit()

    logger.info("Absence sweep for %s marked %d employee(s) absent", day, created)
    return created


# ── Queries ─────────────────────────────────────────────────────────
async def list_records(
    db: AsyncSession,
    user_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
    with_user: bool = False,
) -> list[AttendanceRecord]:
    """Records newest date first, optionally scoped to a user and a date range."""
    query = select(AttendanceRecord).order_by(
        AttendanceRecord.date.desc(), AttendanceRecord.user_id
    )
    if user_id is not None:
        query = query.where(AttendanceRecord.user_id == user_id)
    if start is not None:
        query = query.where(AttendanceRecord.date >= start)
    if end is not None:
        query = query.where(AttendanceRecord.date <= end)
    if with_user:
        query = query.options(joinedload(AttendanceRecord.user))
    result = await db.execute(query)
    return list(result.scalars().all())


async def monthly_summary(db: AsyncSession, user_id: int, year: int, month: int) -> Summary:
    start, end = month_bounds(year, month)
    return summarize(await list_records(db, user_id=user_id, start=start, end=end))


async def count_records_between(db: AsyncSession, start: date, end: date) -> int:
    result = await db.execute(
        select(func.count(AttendanceRecord.id)).where(
            AttendanceRecord.date >= start, AttendanceRecord.date <= end
        )
    )
    return result.scalar() or 0


async def employee_records_between(
    db: AsyncSession, start: date, end: date
) -> list[AttendanceRecord]:
    """Records of active employees in a date range (team roll-ups ignore managers)."""
    result = await db.execute(
        select(AttendanceRecord)
        .join(User, AttendanceRecord.user_id == User.id)
        .where(
            User.role == Role.EMPLOYEE.value,
            User.is_active.is_(True),
            AttendanceRecord.date >= start,
            AttendanceRecord.date <= end,
        )
    )
    return list(result.scalars().all())


async def team_summary_for_day(db: AsyncSession, day: date) -> TeamSummary:
    records = await employee_records_between(db, day, day)
    return team_summary(records, await count_employees(db))


def window_start(end: date, days: int) -> date:
    """First day of an inclusive ``days``-long window ending on ``end``."""
    return end - timedelta(days=max(1, days) - 1)
