"""Pydantic schemas for attendance records, summaries and rules."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, field_validator

from attendance_tracker.services.status_engine import (ensure_utc, parse_clock,
                                                       parse_offset)


# ── Records ─────────────────────────────────────────────────────────
class UserBrief(BaseModel):
    id: int
    name: str
    email: str
    employee_id: str | None
    department: str | None

    model_config = {"from_attributes": True}


class AttendanceRead(BaseModel):
    id: int
    user_id: int
    date: dt.date
    check_in_time: dt.datetime | None
    check_out_time: dt.datetime | None
    status: str
    total_hours: float
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("check_in_time", "check_out_time", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v: dt.datetime | None) -> dt.datetime | None:
        return ensure_utc(v) if v is not None else None


class AttendanceWithUser(AttendanceRead):
    user: UserBrief


class NotCheckedIn(BaseModel):
    status: Literal["not-checked-in"] = "not-checked-in"


# ── Summaries ──────────────────────────────────────────────────────
class SummaryResponse(BaseModel):
    present_days: int
    late_days: int
    absent_days: int
    half_days: int
    total_hours: float
    total_days: int


class MonthlySummaryResponse(SummaryResponse):
    year: int
    month: int


class TeamSummaryResponse(BaseModel):
    date: dt.date
    total_employees: int
    present_today: int
    absent_today: int
    late_today: int
    monthly_records: int


class DayBreakdownItem(BaseModel):
    date: dt.date
    present: int
    late: int
    absent: int


class WeeklyTrendResponse(BaseModel):
    period_days: int
    total_employees: int
    days: list[DayBreakdownItem]


# ── Dashboards ─────────────────────────────────────────────────────
class EmployeeDashboardResponse(SummaryResponse):
    today_status: str
    check_in_time: dt.datetime | None
    check_out_time: dt.datetime | None

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def _utc(cls, v: dt.datetime | None) -> dt.datetime | None:
        return ensure_utc(v) if v is not None else None


class ManagerDashboardResponse(BaseModel):
    date: dt.date
    total_employees: int
    present_count: int
    absent_count: int
    late_count: int


# ── Absence sweep ──────────────────────────────────────────────────
class MarkAbsentRequest(BaseModel):
    date: dt.date


class MarkAbsentResponse(BaseModel):
    success: bool
    date: dt.date
    marked_absent: int


# ── Attendance Settings ────────────────────────────────────────────
class AttendanceSettingsRead(BaseModel):
    late_threshold: str
    half_day_hours: float
    timezone_offset: str

    model_config = {"from_attributes": True}


class AttendanceSettingsUpdate(BaseModel):
    late_threshold: str | None = None
    half_day_hours: float | None = None
    timezone_offset: str | None = None

    @field_validator("late_threshold")
    @classmethod
    def _clock(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return parse_clock(v).strftime("%H:%M")

    @field_validator("half_day_hours")
    @classmethod
    def _hours(cls, v: float | None) -> float | None:
        if v is not None and not 0 < v <= 24:
            raise ValueError("half_day_hours must be between 0 and 24")
        return v

    @field_validator("timezone_offset")
    @classmethod
    def _offset(cls, v: str | None) -> str | None:
        if v is None:
            return v
        parse_offset(v)
        return v.strip()


# ── Health ─────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool
