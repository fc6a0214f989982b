# src/taskloop/tasks/validation.py

"""
Default task validator.

Field rules for names, descriptions, websites and start dates. The lifecycle
engine only depends on the TaskValidator port; this is the implementation
wired in by the CLI bootstrap.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from urllib.parse import urlsplit

from .constants import (
    ALLOWED_PROTOCOLS,
    INVALID_PROTOCOLS,
    MAX_TASK_DESCRIPTION_LENGTH,
    MAX_TASK_NAME_LENGTH,
    MAX_WEBSITES_COUNT,
    MIN_TASK_NAME_LENGTH,
    MIN_WEBSITES_COUNT,
)
from .errors import FieldError
from .task_models import TaskSchedule

_HOSTNAME_RE = re.compile(r"^[a-zA-Z0-9.-]+$")
_IPV4_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


@dataclass(slots=True, frozen=True)
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def is_valid_url(url: str) -> bool:
    """True for http(s) website URLs; scheme-less input is treated as https."""
    if not url or not isinstance(url, str):
        return False

    trimmed = url.strip()
    if not trimmed:
        return False

    lowered = trimmed.lower()
    if any(lowered.startswith(p) for p in INVALID_PROTOCOLS):
        return False

    candidate = trimmed
    if not any(lowered.startswith(p) for p in ALLOWED_PROTOCOLS):
        if "://" in trimmed:
            return False
        candidate = f"https://{trimmed}"

    try:
        host = urlsplit(candidate).hostname or ""
    except ValueError:
        return False

    if not host or "." not in host:
        return False
    if not _HOSTNAME_RE.match(host):
        return False
    if host in ("localhost", "127.0.0.1") or _IPV4_RE.match(host):
        return False
    return True


def normalize_url(url: str) -> str:
    trimmed = url.strip()
    if "://" in trimmed:
        return trimmed
    return f"https://{trimmed}"


def validate_task_name(name: str | None) -> list[FieldError]:
    if not name or not isinstance(name, str):
        return [FieldError("name", "Task name is required")]

    trimmed = name.strip()
    errors: list[FieldError] = []
    if len(trimmed) < MIN_TASK_NAME_LENGTH:
        errors.append(
            FieldError("name", f"Task name must be at least {MIN_TASK_NAME_LENGTH} character long")
        )
    if len(trimmed) > MAX_TASK_NAME_LENGTH:
        errors.append(
            FieldError("name", f"Task name must be no more than {MAX_TASK_NAME_LENGTH} characters long")
        )
    return errors


def validate_task_description(description: str | None) -> list[FieldError]:
    if description and len(description) > MAX_TASK_DESCRIPTION_LENGTH:
        return [
            FieldError(
                "description",
                f"Description must be no more than {MAX_TASK_DESCRIPTION_LENGTH} characters long",
            )
        ]
    return []


def validate_task_websites(websites: list[str] | None) -> list[FieldError]:
    if not isinstance(websites, list):
        return [FieldError("websites", "Websites must be a list")]

    errors: list[FieldError] = []
    if len(websites) < MIN_WEBSITES_COUNT:
        errors.append(FieldError("websites", f"At least {MIN_WEBSITES_COUNT} website is required"))
    if len(websites) > MAX_WEBSITES_COUNT:
        errors.append(FieldError("websites", f"Maximum {MAX_WEBSITES_COUNT} websites allowed"))

    for index, website in enumerate(websites, start=1):
        if not is_valid_url(website):
            errors.append(FieldError("websites", f"Invalid URL at position {index}: {website}"))
    return errors


def validate_task_start_date(
    start_date: date | None, schedule: TaskSchedule, today: date
) -> list[FieldError]:
    if schedule.is_recurring and start_date is None:
        return [FieldError("start_date", "Start date is required for recurring tasks")]
    if start_date is not None and start_date < today:
        return [FieldError("start_date", "Start date cannot be in the past")]
    return []


class TaskValidator:
    """Validator port implementation with the default rule set."""

    def validate(
        self,
        *,
        name: str,
        description: str | None,
        websites: list[str],
        schedule: TaskSchedule | None,
        start_date: date | None,
        today: date,
    ) -> ValidationResult:
        errors: list[FieldError] = []
        errors.extend(validate_task_name(name))
        errors.extend(validate_task_description(description))
        errors.extend(validate_task_websites(websites))

        # Date rules only apply when the caller asks about scheduling.
        if schedule is not None or start_date is not None:
            errors.extend(
                validate_task_start_date(start_date, schedule or TaskSchedule.NONE, today)
            )
        return ValidationResult(errors=errors)
