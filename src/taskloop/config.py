# src/taskloop/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Legacy module-level constants are exported for convenience.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKLOOP"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Console / browser ----
    console_enabled: bool
    open_browser: bool
    browser: str | None

    # ---- Task limits ----
    max_tasks_per_day: int
    visible_tasks: int

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskloop") or "taskloop"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        open_browser = _env_bool(_k("OPEN_BROWSER"), True)
        browser = _env(_k("BROWSER"), "").strip() or None

        max_tasks_per_day = max(1, _env_int(_k("MAX_TASKS_PER_DAY"), 12))
        visible_tasks = max(1, _env_int(_k("VISIBLE_TASKS"), 8))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskloop"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            open_browser=open_browser,
            browser=browser,
            max_tasks_per_day=max_tasks_per_day,
            visible_tasks=visible_tasks,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS


# --------------------------------------------------------------------------------------
# Module-level constants.
# --------------------------------------------------------------------------------------

APP_NAME = SETTINGS.app_name
LOG_LEVEL = SETTINGS.log_level

MAX_TASKS_PER_DAY = SETTINGS.max_tasks_per_day
VISIBLE_TASKS = SETTINGS.visible_tasks

DATA_DIR = SETTINGS.data_dir
TASKS_DB_PATH = SETTINGS.tasks_db_path
