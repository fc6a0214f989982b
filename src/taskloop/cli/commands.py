# src/taskloop/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import date
from typing import cast

from ..core.state import AppState
from ..tasks.recurrence import as_calendar_day, describe_schedule
from ..tasks.task_models import OpResult, ProjectedOccurrence, Task, TaskDraft, TaskSchedule, TaskState, TaskView

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _fmt_task(n: int, task: Task) -> str:
    sched = describe_schedule(task.schedule)
    when = f", {task.start_date.isoformat()}" if task.start_date else ""
    return f"{n}. [{task.state.value}] {task.name} ({sched}{when}) - {len(task.websites)} site(s)"


def _fmt_future(n: int, view: TaskView) -> str:
    if isinstance(view, ProjectedOccurrence):
        task = view.parent
        tag = "next"
    else:
        task = view.task
        tag = task.state.value
    day = view.effective_date.isoformat() if view.effective_date else "?"
    return f"f{n}. {day} {task.name} ({describe_schedule(task.schedule)}, {tag})"


def _reply(result: OpResult, success: str) -> str:
    if result.success:
        return success
    return f"Error: {result.error}"


def _projection(state: AppState):
    return state.projection if state.projection is not None else state.reload()


def _today_task(state: AppState, token: str) -> Task | None:
    items = _projection(state).today_set
    try:
        n = int(token)
    except ValueError:
        # Allow an id prefix as well.
        matches = [t for t in items if t.id.startswith(token)]
        return matches[0] if len(matches) == 1 else None
    return items[n - 1] if 1 <= n <= len(items) else None


def _future_view(state: AppState, token: str) -> TaskView | None:
    items = _projection(state).future_set
    raw = token[1:] if token.lower().startswith("f") else token
    try:
        n = int(raw)
    except ValueError:
        return None
    return items[n - 1] if 1 <= n <= len(items) else None


def _parse_schedule(tokens: list[str]) -> tuple[TaskSchedule, date | None]:
    """'weekly 2026-10-20' -> (WEEKLY, date). Raises ValueError on bad input."""
    if not tokens:
        return TaskSchedule.NONE, None
    schedule = TaskSchedule(tokens[0].lower())
    start = None
    if len(tokens) > 1:
        start = as_calendar_day(tokens[1])
        if start is None:
            raise ValueError(f"Invalid date: {tokens[1]}")
    return schedule, start


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    projection = state.reload()
    if projection.error:
        return f"Error: {projection.error}"
    in_progress = sum(1 for t in projection.today_set if t.state == TaskState.IN_PROGRESS)
    return (
        "Status:\n"
        f"  Today: {projection.today.isoformat()}\n"
        f"  Tasks today: {len(projection.today_set)} ({in_progress} in progress)\n"
        f"  Upcoming: {len(projection.future_set)}\n"
        f"  Limit: {getattr(state.settings, 'max_tasks_per_day', '?')} pending tasks per day\n"
        f"  Browser: {'ON' if getattr(state.settings, 'open_browser', False) else 'OFF'}"
    )


def _render_page(state: AppState) -> str:
    projection = state.projection or state.reload()
    if projection.error:
        return f"Error: {projection.error}"
    page = state.pager.page_of(projection.today_set)
    if not page.items:
        return "No tasks for today. Use /add to create one."
    lines = [f"Tasks for {projection.today.isoformat()} (page {page.number}/{page.total_pages}):"]
    for i, task in enumerate(page.items, start=page.offset + 1):
        lines.append("  " + _fmt_task(i, task))
    if projection.future_set:
        lines.append(f"  ... {len(projection.future_set)} upcoming (see /future)")
    return "\n".join(lines)


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks      -> current page of today's tasks
    /tasks N    -> page N
    """
    state.reload()
    if args:
        try:
            state.pager.goto(int(args[0]))
        except ValueError:
            return "Usage: /tasks [page]"
    return _render_page(state)


def cmd_page(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /page N"
    state.reload()
    try:
        state.pager.goto(int(args[0]))
    except ValueError:
        return "Usage: /page N"
    return _render_page(state)


def cmd_next(state: AppState, args: list[str]) -> str:
    state.pager.next_page()
    return _render_page(state)


def cmd_prev(state: AppState, args: list[str]) -> str:
    state.pager.prev_page()
    return _render_page(state)


def cmd_future(state: AppState, args: list[str]) -> str:
    projection = state.reload()
    if projection.error:
        return f"Error: {projection.error}"
    if not projection.future_set:
        return "No upcoming tasks."
    lines = ["Upcoming:"]
    lines.extend("  " + _fmt_future(i, v) for i, v in enumerate(projection.future_set, start=1))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add NAME | URL [URL ...] [| SCHEDULE [YYYY-MM-DD]] [| DESCRIPTION]
    """
    parts = [p.strip() for p in " ".join(args).split("|")]
    if len(parts) < 2 or not parts[0]:
        return "Usage: /add NAME | URL [URL ...] [| daily|weekly|monthly YYYY-MM-DD] [| description]"

    try:
        schedule, start = _parse_schedule(parts[2].split() if len(parts) > 2 else [])
    except ValueError as e:
        return f"Error: {e}"

    draft = TaskDraft(
        name=parts[0],
        websites=parts[1].split(),
        description=parts[3] if len(parts) > 3 else None,
        schedule=schedule,
        start_date=start,
    )
    result = state.run(state.engine.create(draft))
    state.reload()
    return _reply(result, f"Task created: {draft.name.strip()}")


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit N name TEXT
    /edit N description TEXT
    /edit N websites URL [URL ...]
    /edit N schedule daily|weekly|monthly|none [YYYY-MM-DD]
    """
    if len(args) < 3:
        return "Usage: /edit N name|description|websites|schedule VALUE..."
    task = _today_task(state, args[0])
    if task is None:
        view = _future_view(state, args[0])
        if isinstance(view, ProjectedOccurrence):
            return "Error: upcoming occurrences cannot be edited; edit the task itself."
        task = view.task if view is not None else None
    if task is None:
        return f"No task {args[0]}."

    field_name, values = args[1].lower(), args[2:]
    patch: dict[str, object]
    if field_name == "name":
        patch = {"name": " ".join(values)}
    elif field_name == "description":
        patch = {"description": " ".join(values)}
    elif field_name == "websites":
        patch = {"websites": values}
    elif field_name == "schedule":
        try:
            schedule, start = _parse_schedule(values)
        except ValueError as e:
            return f"Error: {e}"
        patch = {"schedule": schedule}
        if start is not None:
            patch["start_date"] = start
    else:
        return f"Unknown field: {field_name}"

    result = state.run(state.engine.update(task.id, patch))
    state.reload()
    return _reply(result, f"Task updated: {task.name}")


def cmd_start(state: AppState, args: list[str]) -> str:
    task = _today_task(state, args[0]) if args else None
    if task is None:
        return "Usage: /start N"
    result = state.run(state.engine.start(task.id))
    state.reload()
    return _reply(result, f"Started: {task.name}")


def cmd_continue(state: AppState, args: list[str]) -> str:
    task = _today_task(state, args[0]) if args else None
    if task is None:
        return "Usage: /continue N"
    result = state.run(state.engine.continue_task(task.id))
    return _reply(result, f"Continuing: {task.name}")


def cmd_done(state: AppState, args: list[str]) -> str:
    task = _today_task(state, args[0]) if args else None
    if task is None:
        return "Usage: /done N"
    result = state.run(state.engine.complete(task.id))
    state.reload()
    if result.success and result.task is not None and result.task.state == TaskState.PENDING and result.task.start_date:
        return f"Completed: {task.name}. Next on {result.task.start_date.isoformat()}."
    return _reply(result, f"Completed: {task.name}")


def cmd_delete(state: AppState, args: list[str]) -> str:
    """
    /delete N          -> delete today's task N
    /delete fN         -> delete only that upcoming occurrence
    /delete fN all     -> delete the whole recurring task
    """
    if not args:
        return "Usage: /delete N | /delete fN [all]"

    token = args[0]
    entire = len(args) > 1 and args[1].lower() == "all"

    if token.lower().startswith("f"):
        view = _future_view(state, token)
        if view is None:
            return f"No upcoming item {token}."
        result = state.run(state.engine.delete_occurrence(view, entire=entire))
        state.reload()
        return _reply(result, "Deleted." if entire else "Occurrence skipped.")

    task = _today_task(state, token)
    if task is None:
        return f"No task {token}."
    result = state.run(state.engine.delete(task.id))
    state.reload()
    return _reply(result, f"Deleted: {task.name}")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show today's counts and settings.")
registry.register("tasks", cmd_tasks, help_text="List today's tasks: /tasks [page].", aliases=["ls"])
registry.register("page", cmd_page, help_text="Go to a page of today's tasks: /page N.")
registry.register("next", cmd_next, help_text="Next page.")
registry.register("prev", cmd_prev, help_text="Previous page.")
registry.register("future", cmd_future, help_text="List upcoming tasks and occurrences.")
registry.register(
    "add",
    cmd_add,
    help_text="Create a task: /add NAME | URL ... [| weekly 2026-01-31] [| description].",
)
registry.register("edit", cmd_edit, help_text="Edit a pending task: /edit N name|description|websites|schedule ...")
registry.register("start", cmd_start, help_text="Start a task and open its websites: /start N.")
registry.register("continue", cmd_continue, help_text="Reopen an in-progress task: /continue N.", aliases=["cont"])
registry.register("done", cmd_done, help_text="Complete an in-progress task: /done N.", aliases=["complete"])
registry.register("delete", cmd_delete, help_text="Delete: /delete N | /delete fN [all].", aliases=["rm", "skip"])
