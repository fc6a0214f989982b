# tests/test_recurrence.py

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from taskloop.tasks.recurrence import (
    as_calendar_day,
    next_occurrence_strictly_after,
    one_step_after,
)
from taskloop.tasks.task_models import TaskSchedule

RECURRING = [TaskSchedule.DAILY, TaskSchedule.WEEKLY, TaskSchedule.MONTHLY]


@pytest.mark.parametrize("schedule", RECURRING)
@pytest.mark.parametrize(
    "anchor",
    [date(2024, 2, 29), date(2025, 1, 31), date(2025, 6, 1), date(2025, 12, 31), date(2026, 3, 15)],
)
def test_next_occurrence_is_always_after_today(anchor: date, schedule: TaskSchedule) -> None:
    today = date(2025, 6, 1)
    for offset in (-400, -1, 0, 1, 45):
        ref = today + timedelta(days=offset)
        nxt = next_occurrence_strictly_after(anchor, schedule, ref)
        assert nxt is not None
        assert nxt > ref


def test_monthly_from_jan_31_clamps_to_feb_28() -> None:
    assert next_occurrence_strictly_after(date(2025, 1, 31), TaskSchedule.MONTHLY, date(2025, 1, 31)) == date(
        2025, 2, 28
    )


def test_monthly_leap_year_lands_on_feb_29() -> None:
    assert one_step_after(date(2024, 1, 31), TaskSchedule.MONTHLY) == date(2024, 2, 29)


def test_monthly_chain_keeps_month_end_without_drifting() -> None:
    anchor = date(2025, 1, 31)
    assert next_occurrence_strictly_after(anchor, TaskSchedule.MONTHLY, date(2025, 3, 5)) == date(2025, 3, 31)
    assert next_occurrence_strictly_after(anchor, TaskSchedule.MONTHLY, date(2025, 3, 31)) == date(2025, 4, 30)
    assert next_occurrence_strictly_after(anchor, TaskSchedule.MONTHLY, date(2025, 12, 31)) == date(2026, 1, 31)


def test_future_anchor_is_its_own_next_occurrence() -> None:
    anchor = date(2025, 6, 10)
    for schedule in RECURRING:
        assert next_occurrence_strictly_after(anchor, schedule, date(2025, 6, 1)) == anchor


def test_anchor_equal_to_today_moves_one_step() -> None:
    today = date(2025, 6, 1)
    assert next_occurrence_strictly_after(today, TaskSchedule.DAILY, today) == date(2025, 6, 2)
    assert next_occurrence_strictly_after(today, TaskSchedule.WEEKLY, today) == date(2025, 6, 8)
    assert next_occurrence_strictly_after(today, TaskSchedule.MONTHLY, today) == date(2025, 7, 1)


def test_anchor_far_in_the_past_catches_up() -> None:
    today = date(2025, 6, 1)
    assert next_occurrence_strictly_after(date(2024, 6, 1), TaskSchedule.DAILY, today) == date(2025, 6, 2)
    # 2025-01-05 and 2025-06-01 are both Sundays.
    assert next_occurrence_strictly_after(date(2025, 1, 5), TaskSchedule.WEEKLY, today) == date(2025, 6, 8)
    assert next_occurrence_strictly_after(date(2025, 1, 3), TaskSchedule.WEEKLY, today) == date(2025, 6, 6)
    assert next_occurrence_strictly_after(date(2024, 8, 15), TaskSchedule.MONTHLY, today) == date(2025, 6, 15)


def test_none_schedule_and_invalid_anchor_yield_none() -> None:
    today = date(2025, 6, 1)
    assert next_occurrence_strictly_after(date(2025, 6, 1), TaskSchedule.NONE, today) is None
    assert next_occurrence_strictly_after("2025-02-30", TaskSchedule.DAILY, today) is None
    assert next_occurrence_strictly_after(None, TaskSchedule.WEEKLY, today) is None
    assert one_step_after("not a date", TaskSchedule.MONTHLY) is None
    assert one_step_after(date(2025, 6, 1), TaskSchedule.NONE) is None


def test_one_step_after_applies_exactly_one_step() -> None:
    assert one_step_after(date(2025, 6, 1), TaskSchedule.WEEKLY) == date(2025, 6, 8)
    assert one_step_after(date(2025, 12, 31), TaskSchedule.DAILY) == date(2026, 1, 1)
    assert one_step_after(date(2025, 12, 15), TaskSchedule.MONTHLY) == date(2026, 1, 15)
    # one step from a past anchor does not catch up to today
    assert one_step_after(date(2020, 1, 1), TaskSchedule.DAILY) == date(2020, 1, 2)


def test_as_calendar_day_discards_time_of_day() -> None:
    assert as_calendar_day(datetime(2025, 6, 1, 23, 59)) == date(2025, 6, 1)
    assert as_calendar_day(date(2025, 6, 1)) == date(2025, 6, 1)
    assert as_calendar_day("2025-06-01") == date(2025, 6, 1)
    assert as_calendar_day(" 2025-06-01 ") == date(2025, 6, 1)
    assert as_calendar_day("2025-06-01T10:30:00") == date(2025, 6, 1)
    assert as_calendar_day("") is None
    assert as_calendar_day("2025-13-01") is None
    assert as_calendar_day(None) is None


def test_month_day_pulls_clamped_base_back_to_series_day() -> None:
    feb28 = date(2025, 2, 28)
    assert one_step_after(feb28, TaskSchedule.MONTHLY) == date(2025, 3, 28)
    assert one_step_after(feb28, TaskSchedule.MONTHLY, month_day=31) == date(2025, 3, 31)
    assert one_step_after(date(2025, 3, 31), TaskSchedule.MONTHLY, month_day=31) == date(2025, 4, 30)
    assert next_occurrence_strictly_after(feb28, TaskSchedule.MONTHLY, feb28, month_day=31) == date(2025, 3, 31)
    assert next_occurrence_strictly_after(
        feb28, TaskSchedule.MONTHLY, date(2025, 5, 1), month_day=30
    ) == date(2025, 5, 30)
