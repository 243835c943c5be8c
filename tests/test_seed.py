"""Tests for the development seeder's record generation."""

import random
from datetime import date, datetime, timezone

from attendance_tracker.seed import build_week
from attendance_tracker.services.status_engine import AttendanceRules

NOW = datetime(2024, 3, 11, 8, 0, tzinfo=timezone.utc)


def test_build_week_full_attendance():
    records = build_week([1, 2], NOW, AttendanceRules(), random.Random(1), attendance_rate=1.0)
    assert len(records) == 14
    assert {r.user_id for r in records} == {1, 2}
    assert min(r.date for r in records) == date(2024, 3, 4)
    assert max(r.date for r in records) == date(2024, 3, 10)


def test_build_week_records_follow_rules():
    rules = AttendanceRules()
    for record in build_week([1, 2, 3], NOW, rules, random.Random(42)):
        assert record.total_hours in (8.0, 9.0)
        expected = "late" if record.check_in_time.time() > rules.late_threshold else "present"
        assert record.status == expected
        assert record.check_out_time > record.check_in_time


def test_build_week_skips_some_days():
    records = build_week([1], NOW, AttendanceRules(), random.Random(3), days=7, attendance_rate=0.0)
    assert records == []
