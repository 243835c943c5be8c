"""
Dashboard endpoints — the numbers behind the employee and manager home
screens, plus the weekly team trend.

Each endpoint fetches its records in one query and aggregates in Python.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.api.v1.deps import (SessionContext, get_db, get_now,
                                            get_rules, get_session_context,
                                            require_manager)
from attendance_tracker.schemas.attendance import (DayBreakdownItem,
                                                   EmployeeDashboardResponse,
                                                   ManagerDashboardResponse,
                                                   WeeklyTrendResponse)
from attendance_tracker.services import attendance_service
from attendance_tracker.services.aggregator import weekly_breakdown
from attendance_tracker.services.status_engine import (AttendanceRules,
                                                       local_day)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/employee", response_model=EmployeeDashboardResponse)
async def employee_dashboard(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> EmployeeDashboardResponse:
    """Today's status for the caller and their month-to-date summary."""
    today = local_day(now, rules.tz)
    record = await attendance_service.get_record(db, ctx.user_id, today)
    summary = await attendance_service.monthly_summary(
        db, ctx.user_id, today.year, today.month
    )
    return EmployeeDashboardResponse(
        today_status=record.status if record else "not-checked-in",
        check_in_time=record.check_in_time if record else None,
        check_out_time=record.check_out_time if record else None,
        **summary.as_dict(),
    )


@router.get("/manager", response_model=ManagerDashboardResponse)
async def manager_dashboard(
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> ManagerDashboardResponse:
    today = local_day(now, rules.tz)
    team = await attendance_service.team_summary_for_day(db, today)
    return ManagerDashboardResponse(
        date=today,
        total_employees=team.total_employees,
        present_count=team.present_today,
        absent_count=team.absent_today,
        late_count=team.late_today,
    )


@router.get("/weekly", response_model=WeeklyTrendResponse)
async def weekly_trend(
    days: int = Query(default=7, ge=1, le=31),
    db: AsyncSession = Depends(get_db),
    _manager: SessionContext = Depends(require_manager),
    rules: AttendanceRules = Depends(get_rules),
    now: datetime = Depends(get_now),
) -> WeeklyTrendResponse:
    """Present / late / absent per day over the last ``days`` days, oldest first."""
    today = local_day(now, rules.tz)
    start = attendance_service.window_start(today, days)
    records = await attendance_service.employee_records_between(db, start, today)
    headcount = await attendance_service.count_employees(db)
    breakdown = weekly_breakdown(records, today, headcount, days=days)
    return WeeklyTrendResponse(
        period_days=days,
        total_employees=headcount,
        days=[
            DayBreakdownItem(date=d.date, present=d.present, late=d.late, absent=d.absent)
            for d in breakdown
        ],
    )
