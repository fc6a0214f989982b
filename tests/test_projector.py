# tests/test_projector.py

from __future__ import annotations

from datetime import date, timedelta

import pytest

from taskloop.tasks.errors import InvalidStateError
from taskloop.tasks.projector import next_projected_date, project_occurrences, skip_occurrence
from taskloop.tasks.task_models import PersistedView, ProjectedOccurrence, TaskSchedule, TaskState

from .fakes import NOW, TODAY, make_task


def test_partitions_today_and_future_and_drops_completed() -> None:
    undated = make_task(name="undated")
    due = make_task(name="due", start_date=TODAY)
    later = make_task(name="later", start_date=TODAY + timedelta(days=3))
    done = make_task(name="done", state=TaskState.COMPLETED, completed_at=NOW)

    projection = project_occurrences([undated, due, later, done], TODAY)

    assert {t.name for t in projection.today_set} == {"undated", "due"}
    assert [v.key for v in projection.future_set] == [later.id]
    assert isinstance(projection.future_set[0], PersistedView)


def test_overdue_tasks_stay_visible_today() -> None:
    overdue = make_task(name="overdue", start_date=TODAY - timedelta(days=2))
    projection = project_occurrences([overdue], TODAY)
    assert [t.name for t in projection.today_set] == ["overdue"]


def test_weekly_task_due_today_projects_one_occurrence_a_week_out() -> None:
    weekly = make_task(schedule=TaskSchedule.WEEKLY, start_date=TODAY)

    projection = project_occurrences([weekly], TODAY)

    assert projection.today_set == [weekly]
    assert len(projection.future_set) == 1
    occ = projection.future_set[0]
    assert isinstance(occ, ProjectedOccurrence)
    assert occ.parent_id == weekly.id
    assert occ.effective_date == TODAY + timedelta(days=7)
    assert occ.key != weekly.id


def test_projection_is_idempotent() -> None:
    tasks = [
        make_task(schedule=TaskSchedule.DAILY, start_date=TODAY),
        make_task(schedule=TaskSchedule.MONTHLY, start_date=TODAY),
        make_task(schedule=TaskSchedule.WEEKLY, start_date=TODAY + timedelta(days=2)),
        make_task(),
    ]

    first = project_occurrences(tasks, TODAY)
    second = project_occurrences(tasks, TODAY)

    assert first == second
    keys = [v.key for v in second.future_set]
    assert len(keys) == len(set(keys)) == 3


def test_skip_anchor_hides_that_occurrence() -> None:
    task = make_task(
        schedule=TaskSchedule.WEEKLY,
        start_date=TODAY,
        next_occurrence_anchor=TODAY + timedelta(days=7),
    )
    assert next_projected_date(task, TODAY) == TODAY + timedelta(days=14)

    # An anchor that no longer matches has no effect.
    stale = make_task(schedule=TaskSchedule.WEEKLY, start_date=TODAY, next_occurrence_anchor=TODAY)
    assert next_projected_date(stale, TODAY) == TODAY + timedelta(days=7)


def test_future_set_sorted_by_effective_date() -> None:
    monthly = make_task(name="monthly", schedule=TaskSchedule.MONTHLY, start_date=TODAY)
    daily = make_task(name="daily", schedule=TaskSchedule.DAILY, start_date=TODAY)
    base = make_task(name="base", start_date=TODAY + timedelta(days=3))

    projection = project_occurrences([monthly, base, daily], TODAY)

    dates = [v.effective_date for v in projection.future_set]
    assert dates == sorted(dates)
    assert dates == [date(2025, 6, 2), date(2025, 6, 4), date(2025, 7, 1)]


def test_today_set_orders_current_then_in_progress_then_oldest() -> None:
    old_pending = make_task(name="old", created_at=NOW - 500)
    new_pending = make_task(name="new", created_at=NOW - 100)
    running = make_task(name="running", state=TaskState.IN_PROGRESS, created_at=NOW - 50)
    focused = make_task(name="focused", created_at=NOW - 10)

    projection = project_occurrences([new_pending, running, old_pending, focused], TODAY)
    assert [t.name for t in projection.today_set] == ["running", "old", "new", "focused"]

    projection = project_occurrences(
        [new_pending, running, old_pending, focused], TODAY, current_task_id=focused.id
    )
    assert [t.name for t in projection.today_set] == ["focused", "running", "old", "new"]


def test_skip_projected_occurrence_sets_anchor_only() -> None:
    parent = make_task(schedule=TaskSchedule.WEEKLY, start_date=TODAY)
    occ = ProjectedOccurrence(parent=parent, effective_date=TODAY + timedelta(days=7))

    updated = skip_occurrence(occ, now=NOW)

    assert updated.start_date == TODAY
    assert updated.next_occurrence_anchor == TODAY + timedelta(days=7)
    assert updated.id == parent.id


def test_skip_persisted_base_advances_start_date() -> None:
    task = make_task(schedule=TaskSchedule.DAILY, start_date=TODAY + timedelta(days=5))

    updated = skip_occurrence(PersistedView(task), now=NOW)

    assert updated.start_date == TODAY + timedelta(days=6)
    assert updated.state == TaskState.PENDING


def test_skip_rejects_one_shot_and_completed_tasks() -> None:
    with pytest.raises(InvalidStateError):
        skip_occurrence(PersistedView(make_task(start_date=TODAY + timedelta(days=1))), now=NOW)

    done = make_task(schedule=TaskSchedule.DAILY, start_date=TODAY, state=TaskState.COMPLETED)
    with pytest.raises(InvalidStateError):
        skip_occurrence(ProjectedOccurrence(parent=done, effective_date=TODAY + timedelta(days=1)), now=NOW)


def test_skipping_clamped_month_end_shows_next_real_occurrence() -> None:
    task = make_task(
        schedule=TaskSchedule.MONTHLY,
        start_date=date(2025, 1, 31),
        month_day=31,
        next_occurrence_anchor=date(2025, 2, 28),
    )
    assert next_projected_date(task, date(2025, 1, 31)) == date(2025, 3, 31)


def test_rolled_monthly_base_projects_back_to_its_day() -> None:
    # Base already rolled onto Feb 28 from a Jan 31 series.
    task = make_task(schedule=TaskSchedule.MONTHLY, start_date=date(2025, 2, 28), month_day=31)

    assert next_projected_date(task, date(2025, 2, 28)) == date(2025, 3, 31)
    updated = skip_occurrence(PersistedView(task), now=NOW)
    assert updated.start_date == date(2025, 3, 31)
