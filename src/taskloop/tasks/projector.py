# src/taskloop/tasks/projector.py

"""
Occurrence projector.

Splits stored tasks into the "today" list and the "future" list, and
synthesizes one projected next occurrence per active recurring task.

Projections are recomputed from scratch on every call and never written back,
so calling project_occurrences repeatedly for the same day is idempotent.
The same module owns the occurrence-level deletion policy: which stored field
changes when the user deletes a single future occurrence.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from .errors import InvalidStateError
from .recurrence import next_occurrence_strictly_after, one_step_after
from .task_models import (
    PersistedView,
    ProjectedOccurrence,
    Projection,
    Task,
    TaskState,
    TaskView,
)

logger = logging.getLogger(__name__)

_STATE_RANK = {
    TaskState.IN_PROGRESS: 0,
    TaskState.PENDING: 1,
}


def is_due_today(task: Task, today: date) -> bool:
    """No start date, due today, or overdue (start date already passed)."""
    return task.start_date is None or task.start_date <= today


def next_projected_date(task: Task, today: date) -> date | None:
    """
    Date of the projected occurrence shown for `task`, or None.

    A skip anchor equal to the computed date means the user deleted that
    occurrence, so the one after it is shown instead.
    """
    if not task.is_recurring or task.start_date is None:
        return None

    nxt = next_occurrence_strictly_after(task.start_date, task.schedule, today, month_day=task.month_day)
    if nxt is not None and task.next_occurrence_anchor == nxt:
        nxt = next_occurrence_strictly_after(task.start_date, task.schedule, nxt, month_day=task.month_day)
    return nxt


def sort_today(tasks: Iterable[Task], current_task_id: str | None = None) -> list[Task]:
    """Current task first, then in-progress, then pending; oldest first within a state."""

    def key(t: Task) -> tuple[int, int, float, int]:
        is_current = 0 if current_task_id is not None and t.id == current_task_id else 1
        return (is_current, _STATE_RANK.get(t.state, 2), t.created_at, t.order)

    return sorted(tasks, key=key)


def _future_sort_key(view: TaskView) -> tuple[date, float, str]:
    task = view.parent if isinstance(view, ProjectedOccurrence) else view.task
    eff = view.effective_date or date.max
    return (eff, task.created_at, task.id)


def project_occurrences(
    tasks: Iterable[Task],
    today: date,
    *,
    current_task_id: str | None = None,
) -> Projection:
    today_set: list[Task] = []
    future: list[TaskView] = []

    for task in tasks:
        if task.state == TaskState.COMPLETED:
            continue

        if not is_due_today(task, today):
            future.append(PersistedView(task))
            continue

        today_set.append(task)

        nxt = next_projected_date(task, today)
        if nxt is not None:
            future.append(ProjectedOccurrence(parent=task, effective_date=nxt))
        elif task.is_recurring:
            logger.warning("No next occurrence for recurring task id=%s start=%s", task.id, task.start_date)

    future.sort(key=_future_sort_key)
    return Projection(
        today=today,
        today_set=sort_today(today_set, current_task_id),
        future_set=future,
    )


def skip_occurrence(view: TaskView, *, now: float) -> Task:
    """
    Apply the single-occurrence deletion policy to the owning stored task.

    - projected occurrence: set the parent's skip anchor to that date; the
      parent's start date is left alone.
    - stored recurring task whose base date is still ahead: advance the base
      date by one step; state is unchanged.

    Returns the updated task. Deleting a non-recurring task (or the whole
    series) is a plain delete and is handled by the lifecycle engine.
    """
    if isinstance(view, ProjectedOccurrence):
        parent = view.parent
        if parent.state == TaskState.COMPLETED:
            raise InvalidStateError("Cannot change occurrences of a completed task")
        return replace(parent, next_occurrence_anchor=view.effective_date, updated_at=now)

    task = view.task
    if not task.is_recurring:
        raise InvalidStateError("Only recurring tasks have occurrences to skip")
    if task.state == TaskState.COMPLETED:
        raise InvalidStateError("Cannot change occurrences of a completed task")

    nxt = one_step_after(task.start_date, task.schedule, month_day=task.month_day)
    if nxt is None:
        raise InvalidStateError("Cannot compute the next occurrence for this task")
    return replace(task, start_date=nxt, updated_at=now)
