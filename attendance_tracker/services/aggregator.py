"""
Aggregation of attendance records into summary statistics.

All reductions here are pure and order-independent. They accept anything
with ``status`` / ``total_hours`` (and ``date`` for the weekly breakdown),
so ORM rows and plain objects work alike.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from decimal import Decimal

from attendance_tracker.models.attendance import AttendanceStatus
from attendance_tracker.services.status_engine import round_hours


@dataclass(frozen=True)
class Summary:
    present_days: int = 0
    late_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    total_hours: float = 0.0
    total_days: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TeamSummary:
    total_employees: int
    present_today: int
    late_today: int
    absent_today: int

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DayBreakdown:
    date: date
    present: int
    late: int
    absent: int


def _status(record) -> str:
    return AttendanceStatus(record.status).value


def summarize(records: Iterable) -> Summary:
    """Count records per status and total their hours.

    Hours are summed exactly and rounded once, at the end.
    """
    counts: dict[str, int] = defaultdict(int)
    hours = Decimal(0)
    total = 0
    for record in records:
        counts[_status(record)] += 1
        hours += Decimal(str(record.total_hours or 0))
        total += 1

    return Summary(
        present_days=counts[AttendanceStatus.PRESENT.value],
        late_days=counts[AttendanceStatus.LATE.value],
        absent_days=counts[AttendanceStatus.ABSENT.value],
        half_days=counts[AttendanceStatus.HALF_DAY.value],
        total_hours=round_hours(hours),
        total_days=total,
    )


def team_summary(records_for_day: Iterable, total_employee_count: int) -> TeamSummary:
    """Roll one day's records up against the employee headcount.

    Absentees usually have no record at all, so absence is derived by
    subtracting everyone who showed up (present or late) from the headcount.
    """
    present = 0
    late = 0
    for record in records_for_day:
        status = _status(record)
        if status in (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value):
            present += 1
        if status == AttendanceStatus.LATE.value:
            late += 1

    return TeamSummary(
        total_employees=total_employee_count,
        present_today=present,
        late_today=late,
        absent_today=max(0, total_employee_count - present),
    )


def weekly_breakdown(
    records: Iterable, end: date, total_employee_count: int, days: int = 7
) -> list[DayBreakdown]:
    """Per-day team roll-up for the ``days`` days ending on ``end``, oldest first."""
    by_day: dict[date, list] = defaultdict(list)
    for record in records:
        by_day[record.date].append(record)

    breakdown = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        team = team_summary(by_day.get(day, []), total_employee_count)
        breakdown.append(
            DayBreakdown(
                date=day,
                present=team.present_today,
                late=team.late_today,
                absent=team.absent_today,
            )
        )
    return breakdown


# ── Calendar ranges ─────────────────────────────────────────────────
def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if month < 1 or month > 12:
        raise ValueError("Month must be 1-12")
    _, days_in_month = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, days_in_month)
