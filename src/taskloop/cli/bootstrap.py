# src/taskloop/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (store, validator, tab orchestrator) into
  the lifecycle engine and AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.clock import SystemClock
from ..core.ports import TabOrchestrator
from ..core.state import AppState
from ..tabs.orchestrator import NullTabOrchestrator, WebbrowserTabOrchestrator
from ..tasks.lifecycle import TaskLifecycle
from ..tasks.pagination import Paginator
from ..tasks.task_store import TaskStore
from ..tasks.validation import TaskValidator

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_tab_orchestrator(settings) -> TabOrchestrator:
    if getattr(settings, "open_browser", False):
        return WebbrowserTabOrchestrator(browser=getattr(settings, "browser", None))
    logger.info("Browser integration disabled; tasks will not open websites.")
    return NullTabOrchestrator()


def create_initial_state(*, settings=None, tabs: TabOrchestrator | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_db_path)
    engine = TaskLifecycle(
        store,
        tabs if tabs is not None else build_tab_orchestrator(settings),
        validator=TaskValidator(),
        clock=SystemClock(),
        max_tasks_per_day=settings.max_tasks_per_day,
    )

    return AppState(
        settings=settings,
        task_store=store,
        engine=engine,
        pager=Paginator(settings.visible_tasks),
    )
