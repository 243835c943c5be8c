"""
Attendance Settings model — singleton table for manager-configurable rules.

Only one row should ever exist. Managers update it via the settings API,
and check-in / check-out read it to decide lateness, half days and the
local calendar day.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String

from attendance_tracker.db.base import Base


class AttendanceSettings(Base):
    __tablename__ = "attendance_settings"

    id: int = Column(Integer, primary_key=True, default=1)  # type: ignore[assignment]
    late_threshold: str = Column(String(5), nullable=False, default="09:30")  # type: ignore[assignment]
    half_day_hours: float = Column(Float, nullable=False, default=4.0)  # type: ignore[assignment]
    timezone_offset: str = Column(String(6), nullable=False, default="+00:00")  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
