"""
Status engine — pure rules turning check-in / check-out timestamps into a
daily status and worked hours.

Nothing here touches the database. Timestamps may be aware or naive; naive
values are treated as UTC (SQLite hands them back without tzinfo).

Rounding: hours are rounded to 2 decimals with ROUND_HALF_UP on a
``Decimal`` built from whole milliseconds, so 1h 0m 18s (1.005 h) is 1.01.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from attendance_tracker.core.exceptions import InvalidInterval
from attendance_tracker.models.attendance import AttendanceStatus

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

_MS_PER_HOUR = Decimal(3_600_000)
_CENTS = Decimal("0.01")


def round_hours(value: Decimal | float) -> float:
    """Round an hour count to 2 decimals, half away from zero."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


# ── Parsing ─────────────────────────────────────────────────────────
def parse_clock(value: str) -> time:
    """Parse ``HH:MM`` (24h) into a ``time``."""
    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def parse_offset(value: str) -> timezone:
    """Parse a ``+HH:MM`` / ``-HH:MM`` UTC offset into a fixed ``timezone``."""
    match = _OFFSET_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid timezone offset {value!r}, expected ±HH:MM")
    sign = 1 if match.group(1) == "+" else -1
    hours, minutes = int(match.group(2)), int(match.group(3))
    if hours > 14 or minutes > 59:
        raise ValueError(f"Timezone offset {value!r} out of range")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


# ── Time helpers ────────────────────────────────────────────────────
def ensure_utc(dt: datetime) -> datetime:
    """Normalise a timestamp to UTC-aware (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def localize(dt: datetime, tz: timezone = timezone.utc) -> datetime:
    return ensure_utc(dt).astimezone(tz)


def local_day(now: datetime, tz: timezone = timezone.utc) -> date:
    """The calendar day ``now`` falls on in the configured timezone."""
    return localize(now, tz).date()


@dataclass(frozen=True)
class AttendanceRules:
    late_threshold: time = time(9, 30)
    half_day_hours: float = 4.0
    tz: timezone = timezone.utc

    @classmethod
    def from_strings(
        cls, late_threshold: str, half_day_hours: float, timezone_offset: str
    ) -> AttendanceRules:
        return cls(
            late_threshold=parse_clock(late_threshold),
            half_day_hours=float(half_day_hours),
            tz=parse_offset(timezone_offset),
        )


# ── Rules ───────────────────────────────────────────────────────────
def derive_check_in_status(
    check_in_time: datetime,
    late_threshold: time = time(9, 30),
    tz: timezone = timezone.utc,
) -> AttendanceStatus:
    """``late`` when the local time of day is strictly after the cutoff."""
    time_of_day = localize(check_in_time, tz).time()
    if time_of_day > late_threshold:
        return AttendanceStatus.LATE
    return AttendanceStatus.PRESENT


def derive_check_out_status(
    check_in_status: AttendanceStatus | str,
    duration_hours: float,
    half_day_threshold: float = 4.0,
) -> AttendanceStatus:
    """Short days become ``half-day``; otherwise the check-in status stands.

    A late arrival who works a full day stays ``late``.
    """
    if duration_hours < half_day_threshold:
        return AttendanceStatus.HALF_DAY
    return AttendanceStatus(check_in_status)


def _elapsed_ms(check_in_time: datetime, check_out_time: datetime) -> int:
    elapsed = ensure_utc(check_out_time) - ensure_utc(check_in_time)
    if elapsed <= timedelta(0):
        raise InvalidInterval()
    return elapsed // timedelta(milliseconds=1)


def worked_hours(check_in_time: datetime, check_out_time: datetime) -> float:
    """Unrounded hours between the two timestamps (used for the half-day test)."""
    return _elapsed_ms(check_in_time, check_out_time) / 3_600_000


def compute_duration(check_in_time: datetime, check_out_time: datetime) -> float:
    """Hours between check-in and check-out, rounded to 2 decimals.

    Raises ``InvalidInterval`` when check-out is not after check-in.
    """
    return round_hours(Decimal(_elapsed_ms(check_in_time, check_out_time)) / _MS_PER_HOUR)
