# src/taskloop/tasks/recurrence.py

"""
Recurrence calculator.

Pure functions over calendar days. A recurring task's anchor is the local
midnight of its start day, so everything here works on `datetime.date` and
discards any time-of-day component.
Days are stored as "YYYY-MM-DD" text, never as UTC instants.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta

from .task_models import TaskSchedule

_YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_FIXED_STEPS = {
    TaskSchedule.DAILY: 1,
    TaskSchedule.WEEKLY: 7,
}


def as_calendar_day(value: date | datetime | str | None) -> date | None:
    """
    Normalize a date-like value to a calendar day.

    Accepts `date`, `datetime` (aware values are converted to local time
    first), "YYYY-MM-DD" strings and ISO-8601 datetime strings.
    Returns None for anything that is not a valid calendar date.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None

    try:
        if _YMD_RE.match(raw):
            return date.fromisoformat(raw)
        # Legacy values were stored as the UTC instant of local midnight.
        return as_calendar_day(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        return None


def _shift_months(anchor: date, months: int, day: int | None = None) -> date:
    """
    `day` (default: the anchor's own day) `months` later, clamped to that
    month's last day.
    """
    idx = anchor.year * 12 + (anchor.month - 1) + months
    year, month0 = divmod(idx, 12)
    last_day = calendar.monthrange(year, month0 + 1)[1]
    return date(year, month0 + 1, min(day or anchor.day, last_day))


def one_step_after(
    anchor: date | datetime | str | None,
    schedule: TaskSchedule,
    *,
    month_day: int | None = None,
) -> date | None:
    """
    Apply exactly one schedule step to `anchor`.

    Used when rolling a just-completed recurring task forward to its next
    base occurrence. `month_day` is the day-of-month the series was created
    on; a base already clamped to a short month (Feb 28) steps back to that
    day (Mar 31). Returns None for TaskSchedule.NONE or an invalid anchor.
    """
    base = as_calendar_day(anchor)
    if base is None or not schedule.is_recurring:
        return None

    try:
        if schedule is TaskSchedule.MONTHLY:
            return _shift_months(base, 1, month_day)
        return base + timedelta(days=_FIXED_STEPS[schedule])
    except (OverflowError, ValueError):
        return None


def next_occurrence_strictly_after(
    anchor: date | datetime | str | None,
    schedule: TaskSchedule,
    today: date | datetime | str,
    *,
    month_day: int | None = None,
) -> date | None:
    """
    Smallest occurrence derived from `anchor` that is strictly after `today`.

    The anchor itself counts as an occurrence, so a future anchor is returned
    unchanged. Anchors far in the past are advanced through every missed
    occurrence. Monthly chains keep one day-of-month (`month_day`, else the
    anchor's own) and clamp it per month (Jan 31 -> Feb 28 -> Mar 31).
    """
    base = as_calendar_day(anchor)
    ref = as_calendar_day(today)
    if base is None or ref is None or not schedule.is_recurring:
        return None

    if base > ref:
        return base

    try:
        if schedule is TaskSchedule.MONTHLY:
            months = (ref.year - base.year) * 12 + (ref.month - base.month)
            candidate = _shift_months(base, months, month_day)
            if candidate <= ref:
                candidate = _shift_months(base, months + 1, month_day)
            return candidate

        step = _FIXED_STEPS[schedule]
        steps = (ref - base).days // step + 1
        return base + timedelta(days=steps * step)
    except (OverflowError, ValueError):
        return None


def describe_schedule(schedule: TaskSchedule) -> str:
    return {
        TaskSchedule.NONE: "One-time",
        TaskSchedule.DAILY: "Daily",
        TaskSchedule.WEEKLY: "Weekly",
        TaskSchedule.MONTHLY: "Monthly",
    }[schedule]
