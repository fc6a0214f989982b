# src/taskloop/tasks/lifecycle.py

"""
Task lifecycle engine.

A small state machine over stored tasks:
- pending -> in_progress (start)
- in_progress -> completed (complete, one-shot tasks)
- in_progress -> pending with the next base date (complete, recurring tasks)

Every public operation:
- reads the full collection from the injected TaskRepo,
- validates and applies one transition in memory,
- writes the full collection back,
- returns an OpResult (no exception escapes).

Browser work (opening/grouping/closing tabs) goes through the TabOrchestrator
port and is best-effort: failures are logged and never block a transition.
Mutations are serialized with one asyncio.Lock (single writer).
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import replace
from datetime import date
from typing import Any, TypeVar

from ..core.clock import SystemClock
from ..core.ports import Clock, TabGroup, TabOrchestrator, TaskRepo, TaskValidator
from .constants import MAX_TASKS_PER_DAY, TAB_GROUP_COLORS
from .errors import (
    FieldError,
    InvalidStateError,
    LimitExceededError,
    NotFoundError,
    OrchestratorWarning,
    PersistenceError,
    TaskError,
    ValidationError,
)
from .projector import project_occurrences, skip_occurrence
from .recurrence import as_calendar_day, one_step_after
from .task_models import (
    PATCHABLE_FIELDS,
    OpResult,
    PersistedView,
    ProjectedOccurrence,
    Projection,
    Task,
    TaskDraft,
    TaskSchedule,
    TaskState,
    TaskView,
)
from .validation import TaskValidator as DefaultTaskValidator
from .validation import normalize_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

TaskRef = str | TaskView

_CONTENT_FIELDS = frozenset({"name", "description", "websites"})
_DATE_FIELDS = frozenset({"schedule", "start_date"})


class TaskLifecycle:
    def __init__(
            self,
            store: TaskRepo,
            tabs: TabOrchestrator,
            *,
            validator: TaskValidator | None = None,
            clock: Clock | None = None,
            max_tasks_per_day: int = MAX_TASKS_PER_DAY,
            rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._tabs = tabs
        self._validator: TaskValidator = validator or DefaultTaskValidator()
        self._clock: Clock = clock or SystemClock()
        self._max_pending = max(1, int(max_tasks_per_day))
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()

    # ---- low-level helpers ----

    def _now(self, now: float | None) -> float:
        return float(now) if now is not None else self._clock.now()

    def _today(self, today: date | None) -> date:
        return today if today is not None else self._clock.today()

    def _load(self) -> list[Task]:
        try:
            return list(self._store.get_all())
        except Exception as exc:
            logger.exception("TaskRepo.get_all failed")
            raise PersistenceError("Failed to load tasks") from exc

    def _save(self, tasks: list[Task], failure: str) -> None:
        try:
            ok = self._store.save_all(tasks)
        except Exception:
            logger.exception("TaskRepo.save_all failed")
            ok = False
        if not ok:
            raise PersistenceError(failure)

    @staticmethod
    def _resolve_id(ref: TaskRef) -> str:
        if isinstance(ref, ProjectedOccurrence):
            raise InvalidStateError(
                "Projected occurrences are not stored tasks; delete the occurrence or edit the parent task"
            )
        if isinstance(ref, PersistedView):
            return ref.id
        return str(ref)

    @staticmethod
    def _find(tasks: list[Task], task_id: str) -> tuple[int, Task]:
        for i, t in enumerate(tasks):
            if t.id == task_id:
                return i, t
        raise NotFoundError()

    async def _run(self, op: str, action: Callable[[], Awaitable[Task | None]], *, mutating: bool = True) -> OpResult:
        try:
            if mutating:
                async with self._lock:
                    task = await action()
            else:
                task = await action()
        except TaskError as exc:
            logger.info("%s rejected (%s): %s", op, exc.kind, exc)
            return OpResult.fail(str(exc), exc.kind)
        except Exception:
            logger.exception("%s failed", op)
            return OpResult.fail(f"Failed to {op} task", PersistenceError.kind)
        return OpResult.ok(task)

    async def _best_effort(self, what: str, call: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await call()
        except Exception as exc:
            warning = OrchestratorWarning(f"{what} failed: {exc}")
            logger.warning("Tab orchestration: %s (non-fatal)", warning, exc_info=True)
            return default

    async def _open_and_group(self, task: Task) -> int | None:
        tab_ids = await self._best_effort("open tabs", lambda: self._tabs.open_tabs(list(task.websites)), [])
        if not tab_ids:
            logger.warning("No tabs opened for task id=%s", task.id)
            return None

        color = self._rng.choice(TAB_GROUP_COLORS)
        group_id = await self._best_effort(
            "group tabs", lambda: self._tabs.group_tabs(list(tab_ids), task.name, color), None
        )
        if group_id is None:
            logger.warning("Tab grouping failed for task id=%s; continuing without a group", task.id)
        else:
            logger.debug("Task id=%s grouped as %s (%s)", task.id, group_id, color)
        return group_id

    async def _find_group(self, task: Task) -> TabGroup | None:
        return await self._best_effort(
            "find tab group", lambda: self._tabs.find_group_by_title(task.name), None
        )

    def _validate(
            self,
            *,
            name: str,
            description: str | None,
            websites: list[str],
            schedule: TaskSchedule | None,
            start_date: date | None,
            today: date,
    ) -> None:
        result = self._validator.validate(
            name=name,
            description=description,
            websites=websites,
            schedule=schedule,
            start_date=start_date,
            today=today,
        )
        if not result.is_valid:
            raise ValidationError(list(result.errors))

    # ---- reads ----

    async def current_task(self, tasks: list[Task]) -> Task | None:
        """The active task whose name matches the focused tab group, if any."""
        group = await self._best_effort("current tab group", self._tabs.current_group, None)
        if group is None:
            return None
        for t in tasks:
            if t.state != TaskState.COMPLETED and t.name == group.title:
                return t
        return None

    async def load(self, *, today: date | None = None) -> Projection:
        """Reload stored tasks and split them into today/future views."""
        day = self._today(today)
        try:
            tasks = self._load()
        except PersistenceError as exc:
            return Projection(today=day, error=str(exc))

        current = await self.current_task(tasks)
        return project_occurrences(tasks, day, current_task_id=current.id if current else None)

    # ---- mutations ----

    async def create(self, draft: TaskDraft, *, now: float | None = None, today: date | None = None) -> OpResult:
        async def action() -> Task:
            ts = self._now(now)
            day = self._today(today)
            self._validate(
                name=draft.name,
                description=draft.description,
                websites=list(draft.websites),
                schedule=draft.schedule,
                start_date=draft.start_date,
                today=day,
            )

            tasks = self._load()
            pending = sum(1 for t in tasks if t.state == TaskState.PENDING)
            if pending >= self._max_pending:
                raise LimitExceededError(f"Maximum {self._max_pending} tasks per day allowed")

            task = Task(
                id=uuid.uuid4().hex,
                name=draft.name.strip(),
                description=(draft.description or "").strip() or None,
                websites=[normalize_url(u) for u in draft.websites],
                state=TaskState.PENDING,
                schedule=draft.schedule,
                start_date=draft.start_date,
                month_day=draft.start_date.day if draft.start_date else None,
                created_at=ts,
                updated_at=ts,
                order=len(tasks),
            )
            self._save([*tasks, task], "Failed to save task")
            logger.info("Task created id=%s schedule=%s start=%s", task.id, task.schedule.value, task.start_date)
            return task

        return await self._run("create", action)

    def _merge_patch(self, task: Task, patch: Mapping[str, Any], ts: float) -> Task:
        unknown = sorted(set(patch) - PATCHABLE_FIELDS)
        if unknown:
            raise ValidationError([FieldError(k, f"Unknown field: {k}") for k in unknown])

        changes: dict[str, Any] = dict(patch)

        if "name" in changes:
            changes["name"] = str(changes["name"] or "").strip()
        if "description" in changes:
            changes["description"] = (changes["description"] or "").strip() or None
        if "websites" in changes:
            changes["websites"] = [str(u).strip() for u in (changes["websites"] or [])]
        if "schedule" in changes:
            try:
                changes["schedule"] = TaskSchedule(changes["schedule"] or TaskSchedule.NONE)
            except ValueError as exc:
                raise ValidationError([FieldError("schedule", f"Unknown schedule: {changes['schedule']}")]) from exc
        for key in ("start_date", "next_occurrence_anchor"):
            if key in changes and changes[key] is not None:
                day = as_calendar_day(changes[key])
                if day is None:
                    raise ValidationError([FieldError(key, f"Invalid date: {changes[key]}")])
                changes[key] = day
        if "order" in changes:
            try:
                changes["order"] = int(changes["order"])
            except (TypeError, ValueError) as exc:
                raise ValidationError([FieldError("order", f"Invalid order: {changes['order']}")]) from exc
        if "start_date" in changes and changes["start_date"] != task.start_date:
            start = changes["start_date"]
            changes["month_day"] = start.day if start is not None else None

        # A moved series no longer has the occurrence the skip anchor pointed at.
        if _DATE_FIELDS & set(changes) and "next_occurrence_anchor" not in changes:
            if changes.get("start_date", task.start_date) != task.start_date or changes.get(
                "schedule", task.schedule
            ) != task.schedule:
                changes["next_occurrence_anchor"] = None

        return replace(task, **changes, updated_at=max(ts, task.created_at))

    async def update(
            self,
            ref: TaskRef,
            patch: Mapping[str, Any],
            *,
            now: float | None = None,
            today: date | None = None,
    ) -> OpResult:
        async def action() -> Task:
            task_id = self._resolve_id(ref)
            ts = self._now(now)
            tasks = self._load()
            idx, task = self._find(tasks, task_id)

            if task.state in (TaskState.IN_PROGRESS, TaskState.COMPLETED):
                raise InvalidStateError("Cannot edit tasks that are in progress or completed")

            merged = self._merge_patch(task, patch, ts)

            touched = set(patch)
            if touched & (_CONTENT_FIELDS | _DATE_FIELDS):
                dates = bool(touched & _DATE_FIELDS)
                self._validate(
                    name=merged.name,
                    description=merged.description,
                    websites=merged.websites,
                    schedule=merged.schedule if dates else None,
                    start_date=merged.start_date if dates else None,
                    today=self._today(today),
                )
                merged = replace(merged, websites=[normalize_url(u) for u in merged.websites])

            if merged.is_recurring and merged.start_date is None:
                raise ValidationError([FieldError("start_date", "Start date is required for recurring tasks")])

            tasks[idx] = merged
            self._save(tasks, "Failed to update task")
            logger.info("Task updated id=%s fields=%s", task_id, ",".join(sorted(touched)))
            return merged

        return await self._run("update", action)

    def _delete_from(self, tasks: list[Task], task_id: str) -> Task:
        idx, task = self._find(tasks, task_id)
        if task.state == TaskState.IN_PROGRESS:
            raise InvalidStateError("Cannot delete tasks that are in progress")
        if task.state != TaskState.PENDING:
            raise InvalidStateError("Only pending tasks can be deleted")
        del tasks[idx]
        return task

    async def delete(self, ref: TaskRef) -> OpResult:
        async def action() -> Task:
            task_id = self._resolve_id(ref)
            tasks = self._load()
            removed = self._delete_from(tasks, task_id)
            self._save(tasks, "Failed to delete task")
            logger.info("Task deleted id=%s", task_id)
            return removed

        return await self._run("delete", action)

    async def delete_occurrence(self, view: TaskView, *, entire: bool = False, now: float | None = None) -> OpResult:
        """
        Delete one occurrence of a task, or the whole task.

        - entire=True, or a non-recurring stored task: remove the stored record
          (its projections vanish with it).
        - projected occurrence: remember its date as the parent's skip anchor.
        - stored recurring task: move its base date one step forward.
        """

        async def action() -> Task:
            ts = self._now(now)
            tasks = self._load()
            owner_id = view.parent_id if isinstance(view, ProjectedOccurrence) else view.id

            if entire or (isinstance(view, PersistedView) and not view.task.is_recurring):
                removed = self._delete_from(tasks, owner_id)
                self._save(tasks, "Failed to delete task")
                logger.info("Task deleted id=%s (entire=%s)", owner_id, entire)
                return removed

            idx, stored = self._find(tasks, owner_id)
            fresh: TaskView
            if isinstance(view, ProjectedOccurrence):
                fresh = ProjectedOccurrence(parent=stored, effective_date=view.effective_date)
            else:
                fresh = PersistedView(stored)

            updated = skip_occurrence(fresh, now=ts)
            tasks[idx] = updated
            self._save(tasks, "Failed to update task")
            logger.info(
                "Occurrence skipped id=%s start=%s anchor=%s",
                owner_id,
                updated.start_date,
                updated.next_occurrence_anchor,
            )
            return updated

        return await self._run("delete", action)

    async def start(self, ref: TaskRef, *, now: float | None = None) -> OpResult:
        async def action() -> Task:
            task_id = self._resolve_id(ref)
            tasks = self._load()
            idx, task = self._find(tasks, task_id)
            if task.state != TaskState.PENDING:
                raise InvalidStateError("Task is not in pending state")

            await self._open_and_group(task)

            updated = replace(task, state=TaskState.IN_PROGRESS, updated_at=self._now(now))
            tasks[idx] = updated
            self._save(tasks, "Failed to update task state")
            logger.info("Task %s -> in_progress", task_id)
            return updated

        return await self._run("start", action)

    async def continue_task(self, ref: TaskRef) -> OpResult:
        """Bring an in-progress task's websites back into view. Never changes state."""

        async def action() -> Task:
            task_id = self._resolve_id(ref)
            _, task = self._find(self._load(), task_id)
            if task.state != TaskState.IN_PROGRESS:
                raise InvalidStateError("Task is not in progress")

            group = await self._find_group(task)
            if group is not None:
                focused = await self._best_effort("focus tab group", lambda: self._tabs.focus_group(group.id), False)
                if not focused:
                    logger.warning("Could not focus tab group %s for task id=%s", group.id, task_id)
            else:
                logger.debug("No tab group for task id=%s; reopening websites", task_id)
                await self._open_and_group(task)
            return task

        return await self._run("continue", action, mutating=False)

    async def complete(self, ref: TaskRef, *, now: float | None = None) -> OpResult:
        async def action() -> Task:
            task_id = self._resolve_id(ref)
            ts = self._now(now)
            tasks = self._load()
            idx, task = self._find(tasks, task_id)
            if task.state != TaskState.IN_PROGRESS:
                raise InvalidStateError("Task is not in progress")

            group = await self._find_group(task)
            if group is not None:
                closed = await self._best_effort("close tab group", lambda: self._tabs.close_group(group.id), False)
                if not closed:
                    logger.warning("Could not close tab group %s for task id=%s", group.id, task_id)

            updated = self._completed(task, ts)
            tasks[idx] = updated
            self._save(tasks, "Failed to update task state")
            logger.info("Task %s -> %s (start=%s)", task_id, updated.state.value, updated.start_date)
            return updated

        return await self._run("complete", action)

    @staticmethod
    def _completed(task: Task, ts: float) -> Task:
        if not task.is_recurring:
            return replace(task, state=TaskState.COMPLETED, completed_at=ts, updated_at=ts)

        anchor = task.next_occurrence_anchor
        nxt = one_step_after(task.start_date, task.schedule, month_day=task.month_day)
        if nxt is not None and anchor is not None and nxt == anchor:
            # The user already deleted that occurrence.
            nxt = one_step_after(nxt, task.schedule, month_day=task.month_day)

        if nxt is None:
            logger.warning("Cannot roll recurring task id=%s forward (start=%s); completing it", task.id, task.start_date)
            return replace(task, state=TaskState.COMPLETED, completed_at=ts, updated_at=ts)

        if anchor is not None and anchor <= nxt:
            anchor = None

        return replace(
            task,
            state=TaskState.PENDING,
            start_date=nxt,
            next_occurrence_anchor=anchor,
            completed_at=ts,
            updated_at=ts,
        )
