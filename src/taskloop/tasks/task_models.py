# src/taskloop/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class TaskState(StrEnum):
    """
    Task lifecycle state.

    Notes:
    - recurring tasks cycle pending -> in_progress -> pending;
      only one-shot tasks rest in "completed".
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskState:
        if not raw:
            return cls.PENDING
        # Older records used the dashed spelling.
        if raw == "in-progress":
            return cls.IN_PROGRESS
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class TaskSchedule(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def is_recurring(self) -> bool:
        return self is not TaskSchedule.NONE

    @classmethod
    def from_db(cls, raw: str | None) -> TaskSchedule:
        if not raw:
            return cls.NONE
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.NONE


@dataclass(slots=True)
class Task:
    id: str
    name: str
    websites: list[str]
    state: TaskState
    created_at: float
    updated_at: float
    order: int

    description: str | None = None
    schedule: TaskSchedule = TaskSchedule.NONE
    start_date: date | None = None
    next_occurrence_anchor: date | None = None
    completed_at: float | None = None
    # Day-of-month the series started on; rolled monthly bases return to it.
    month_day: int | None = None

    @property
    def is_recurring(self) -> bool:
        return self.schedule.is_recurring


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """User input for a new task (validated before it becomes a Task)."""

    name: str
    websites: list[str]
    description: str | None = None
    schedule: TaskSchedule = TaskSchedule.NONE
    start_date: date | None = None


# Fields a patch passed to TaskLifecycle.update may touch.
PATCHABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "websites",
        "schedule",
        "start_date",
        "next_occurrence_anchor",
        "order",
    }
)


@dataclass(slots=True, frozen=True)
class PersistedView:
    """A stored task as shown in a list."""

    task: Task

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def key(self) -> str:
        return self.task.id

    @property
    def effective_date(self) -> date | None:
        return self.task.start_date

    @property
    def is_projected(self) -> bool:
        return False


@dataclass(slots=True, frozen=True)
class ProjectedOccurrence:
    """
    Computed next occurrence of a recurring task.

    Read-only and never persisted. It refers to its parent by id; the display
    key embeds the date so it can never collide with a stored task id.
    """

    parent: Task
    effective_date: date

    @property
    def parent_id(self) -> str:
        return self.parent.id

    @property
    def key(self) -> str:
        return f"{self.parent.id}@{self.effective_date.isoformat()}"

    @property
    def is_projected(self) -> bool:
        return True


TaskView = PersistedView | ProjectedOccurrence


@dataclass(slots=True, frozen=True)
class OpResult:
    """Outcome of a public lifecycle operation."""

    success: bool
    error: str | None = None
    kind: str | None = None
    task: Task | None = None

    @classmethod
    def ok(cls, task: Task | None = None) -> OpResult:
        return cls(success=True, task=task)

    @classmethod
    def fail(cls, error: str, kind: str) -> OpResult:
        return cls(success=False, error=error, kind=kind)


@dataclass(slots=True, frozen=True)
class Projection:
    """Today/future split produced by the occurrence projector."""

    today: date
    today_set: list[Task] = field(default_factory=list)
    future_set: list[TaskView] = field(default_factory=list)
    error: str | None = None
