# src/taskloop/tasks/errors.py

"""
Error taxonomy for task operations.

The lifecycle engine raises these internally and converts them into
OpResult failures at its public boundary.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class FieldError:
    field: str
    message: str


class TaskError(Exception):
    kind = "error"


class ValidationError(TaskError):
    """User-correctable input problem; carries every field error found."""

    kind = "validation"

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(e.message for e in self.errors) or "Invalid task")


class NotFoundError(TaskError):
    kind = "not_found"

    def __init__(self, message: str = "Task not found") -> None:
        super().__init__(message)


class InvalidStateError(TaskError):
    kind = "invalid_state"


class LimitExceededError(TaskError):
    kind = "limit_exceeded"


class PersistenceError(TaskError):
    kind = "persistence"


class OrchestratorWarning(TaskError):
    """Tab orchestration problem. Logged only, never surfaced as a failure."""

    kind = "orchestrator"
