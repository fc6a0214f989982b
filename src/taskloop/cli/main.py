# src/taskloop/cli/main.py

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)


def _console_level(settings: Settings) -> int:
    level = logging.getLevelName(str(settings.log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def main() -> None:
    """`taskloop` console script."""
    settings = get_settings()
    log_path = setup_logging(log_dir=settings.data_dir, console_level=_console_level(settings))
    logger.info("%s starting; db=%s log=%s", settings.app_name, settings.tasks_db_path, log_path)

    state = create_initial_state(settings=settings)
    if not settings.console_enabled:
        logger.info("Console disabled (TASKLOOP_CONSOLE_ENABLED=false); exiting.")
        return

    try:
        run_console_loop(state)
    finally:
        state.task_store.close()


if __name__ == "__main__":
    main()
