"""Tests for the summary reductions."""

import datetime as dt
import random
from dataclasses import dataclass
from datetime import date, timedelta

import pytest

from attendance_tracker.services.aggregator import (Summary, month_bounds,
                                                    summarize, team_summary,
                                                    weekly_breakdown)


@dataclass
class Rec:
    status: str
    total_hours: float = 0.0
    date: dt.date = dt.date(2024, 3, 11)


def test_summarize_empty_is_all_zeros():
    assert summarize([]) == Summary(
        present_days=0, late_days=0, absent_days=0, half_days=0, total_hours=0.0, total_days=0
    )


def test_summarize_counts_each_status():
    records = [
        Rec("present", 8.0),
        Rec("present", 7.5),
        Rec("late", 8.25),
        Rec("half-day", 2.0),
        Rec("absent"),
    ]
    summary = summarize(records)
    assert summary.present_days == 2
    assert summary.late_days == 1
    assert summary.half_days == 1
    assert summary.absent_days == 1
    assert summary.total_days == 5
    assert summary.total_hours == 25.75


def test_summarize_rounds_total_once():
    # Float summation of 0.1 ten times drifts; the total must not
    records = [Rec("present", 0.1) for _ in range(10)]
    assert summarize(records).total_hours == 1.0


def test_summarize_is_order_independent():
    records = [Rec("present", 8.33), Rec("late", 7.67), Rec("half-day", 3.01), Rec("present", 0.0)]
    expected = summarize(records)
    shuffled = records[:]
    random.Random(7).shuffle(shuffled)
    assert summarize(shuffled) == expected
    assert summarize(reversed(records)) == expected


def test_summarize_accepts_generators_and_none_hours():
    summary = summarize(Rec(s, None) for s in ("present", "late"))
    assert summary.total_days == 2
    assert summary.total_hours == 0.0


def test_summarize_rejects_unknown_status():
    with pytest.raises(ValueError):
        summarize([Rec("on-holiday")])


def test_team_summary_scenario():
    records = [Rec("present")] * 4 + [Rec("late")] * 2
    team = team_summary(records, total_employee_count=10)
    assert team.present_today == 6
    assert team.late_today == 2
    assert team.absent_today == 4
    assert team.total_employees == 10


def test_team_summary_absence_is_subtraction_not_count():
    # Stored absent / half-day rows do not count as showing up, and
    # absent rows are not double counted.
    records = [Rec("present"), Rec("absent"), Rec("absent"), Rec("half-day")]
    team = team_summary(records, total_employee_count=5)
    assert team.present_today == 1
    assert team.absent_today == 4


def test_team_summary_no_records():
    team = team_summary([], total_employee_count=3)
    assert (team.present_today, team.late_today, team.absent_today) == (0, 0, 3)


def test_team_summary_never_negative():
    team = team_summary([Rec("present")] * 3, total_employee_count=2)
    assert team.absent_today == 0


def test_weekly_breakdown_oldest_first_and_fills_gaps():
    end = date(2024, 3, 11)
    records = [
        Rec("present", date=end),
        Rec("late", date=end),
        Rec("present", date=end - timedelta(days=2)),
        Rec("present", date=end - timedelta(days=10)),  # outside the window
    ]
    days = weekly_breakdown(records, end, total_employee_count=3)

    assert [d.date for d in days] == [end - timedelta(days=i) for i in range(6, -1, -1)]
    assert (days[-1].present, days[-1].late, days[-1].absent) == (2, 1, 1)
    assert (days[-3].present, days[-3].late, days[-3].absent) == (1, 0, 2)
    assert (days[0].present, days[0].absent) == (0, 3)


def test_weekly_breakdown_custom_length():
    assert len(weekly_breakdown([], date(2024, 3, 11), 4, days=3)) == 3


@pytest.mark.parametrize(
    "year, month, first, last",
    [
        (2024, 2, date(2024, 2, 1), date(2024, 2, 29)),
        (2023, 2, date(2023, 2, 1), date(2023, 2, 28)),
        (2024, 12, date(2024, 12, 1), date(2024, 12, 31)),
        (2024, 4, date(2024, 4, 1), date(2024, 4, 30)),
    ],
)
def test_month_bounds(year, month, first, last):
    assert month_bounds(year, month) == (first, last)


def test_month_bounds_rejects_bad_month():
    with pytest.raises(ValueError):
        month_bounds(2024, 13)
