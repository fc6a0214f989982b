# src/taskloop/core/ports.py

"""
Ports (interfaces) used by the task engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage, validation and tab orchestration swappable and makes
testing easier (tests inject in-memory fakes).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Protocol


@dataclass(slots=True, frozen=True)
class TabGroup:
    id: int
    title: str


class TaskRepo(Protocol):
    """
    Full-collection task store.

    The engine always reads every record, mutates in memory and writes the
    whole collection back; no per-record atomicity is assumed.
    """

    def get_all(self) -> list[Any]: ...
    def save_all(self, tasks: list[Any]) -> bool: ...


class TaskValidator(Protocol):
    def validate(
            self,
            *,
            name: str,
            description: str | None,
            websites: list[str],
            schedule: Any | None,
            start_date: date | None,
            today: date,
    ) -> Any: ...  # ValidationResult (is_valid, errors)


class TabOrchestrator(Protocol):
    """
    Browser-side port: opens and groups the websites of a task.

    Every call is best-effort. None/False results (or raised exceptions) are
    non-fatal to the caller.
    """

    def open_tabs(self, urls: list[str]) -> Awaitable[list[int]]: ...
    def group_tabs(self, tab_ids: list[int], title: str, color: str) -> Awaitable[int | None]: ...
    def find_group_by_title(self, title: str) -> Awaitable[TabGroup | None]: ...
    def focus_group(self, group_id: int) -> Awaitable[bool]: ...
    def close_group(self, group_id: int) -> Awaitable[bool]: ...
    def current_group(self) -> Awaitable[TabGroup | None]: ...


class Clock(Protocol):
    """Injected time source: `now` is epoch seconds, `today` the local calendar day."""
    def now(self) -> float: ...
    def today(self) -> date: ...
