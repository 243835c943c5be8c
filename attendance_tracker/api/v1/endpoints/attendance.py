"""
Attendance endpoints — check-in / check-out, own history and the
manager views over everyone's records.

- Employee routes act on the caller's own records.
- Manager routes are guarded by ``require_manager``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.api.v1.deps import (SessionContext, get_db, get_now,
                                            get_rules, get_session_context,
                                            require_manager)
from attendance_tracker.models.attendance import AttendanceRecord
from attendance_tracker.schemas.attendance import (AttendanceRead,
                                                   AttendanceWithUser,
                                                   MarkAbsentRequest,
                                                   MarkAbsentResponse,
                                                   MonthlySummaryResponse,
                                                   NotCheckedIn,
                                                   TeamSummaryResponse)
from attendance_tracker.services import attendance_service
from attendance_tracker.services.aggregator import month_bounds
from attendance_tracker.services.status_engine import (AttendanceRules,
                                                       local_day)

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)


# ── Check-in / Check-out ────────────────────────────────────────────
@router.post("/checkin", response_model=AttendanceRead, status_code=201)
async def check_in(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> AttendanceRecord:
    """Start today's record. Status is ``late`` after the configured cutoff."""
    return await attendance_service.check_in(db, ctx.user_id, now, rules)


@router.post("/checkout", response_model=AttendanceRead)
async def check_out(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> AttendanceRecord:
    """Close today's record, computing hours and the final status."""
    return await attendance_service.check_out(db, ctx.user_id, now, rules)


# ── Own records ─────────────────────────────────────────────────────
@router.get("/my-history", response_model=list[AttendanceRead])
async def my_history(
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> list[AttendanceRecord]:
    """The caller's records, newest date first."""
    return await attendance_service.list_records(
        db, user_id=ctx.user_id, start=date_from, end=date_to
    )


@router.get("/my-summary", response_model=MonthlySummaryResponse)
async def my_summary(
    year: int | None = Query(default=None, ge=1970, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> MonthlySummaryResponse:
    """Status counts and hours for the current (or a given) month."""
    today = local_day(now, rules.tz)
    year = year or today.year
    month = month or today.month
    summary = await attendance_service.monthly_summary(db, ctx.user_id, year, month)
    return MonthlySummaryResponse(year=year, month=month, **summary.as_dict())


@router.get("/today", response_model=AttendanceRead | NotCheckedIn)
async def today_status(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> AttendanceRecord | NotCheckedIn:
    record = await attendance_service.get_record(db, ctx.user_id, local_day(now, rules.tz))
    if record is None:
        return NotCheckedIn()
    return record


# ── Manager views ───────────────────────────────────────────────────
@router.get("/all", response_model=list[AttendanceWithUser])
async def all_attendance(
    days: int | None = Query(default=None, ge=1, le=366),
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> list[AttendanceRecord]:
    """Everyone's records newest first, optionally only the last ``days`` days."""
    start = None
    if days is not None:
        start = attendance_service.window_start(local_day(now, rules.tz), days)
    return await attendance_service.list_records(db, start=start, with_user=True)


@router.get("/employee/{user_id}", response_model=list[AttendanceWithUser])
async def employee_attendance(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
) -> list[AttendanceRecord]:
    await attendance_service.get_user(db, user_id)
    return await attendance_service.list_records(db, user_id=user_id, with_user=True)


@router.get("/summary", response_model=TeamSummaryResponse)
async def team_summary(
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> TeamSummaryResponse:
    """Today's team roll-up plus the number of records this month."""
    today = local_day(now, rules.tz)
    team = await attendance_service.team_summary_for_day(db, today)
    start, end = month_bounds(today.year, today.month)
    monthly_records = await attendance_service.count_records_between(db, start, end)
    return TeamSummaryResponse(date=today, monthly_records=monthly_records, **team.as_dict())


@router.get("/today-status", response_model=list[AttendanceWithUser])
async def today_status_all(
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> list[AttendanceRecord]:
    today = local_day(now, rules.tz)
    return await attendance_service.list_records(db, start=today, end=today, with_user=True)


@router.post("/mark-absent", response_model=MarkAbsentResponse)
async def mark_absent(
    body: MarkAbsentRequest,
    db: AsyncSession = Depends(get_db),
    manager: SessionContext = Depends(require_manager),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> MarkAbsentResponse:
    """Store ``absent`` for employees with no record on a past day."""
    created = await attendance_service.mark_absentees(db, body.date, now, rules)
    logger.info("Manager %d ran absence sweep for %s", manager.user_id, body.date)
    return MarkAbsentResponse(success=True, date=body.date, marked_absent=created)
