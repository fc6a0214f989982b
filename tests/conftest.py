# tests/conftest.py

from __future__ import annotations

import random
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskloop.core.state import AppState
from taskloop.tasks.lifecycle import TaskLifecycle
from taskloop.tasks.pagination import Paginator
from taskloop.tasks.task_store import TaskStore

from .fakes import FakeTabOrchestrator, FixedClock, InMemoryTaskRepo


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskloop-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        max_tasks_per_day=12,
        visible_tasks=8,
        open_browser=False,
        browser=None,
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def repo() -> InMemoryTaskRepo:
    return InMemoryTaskRepo()


@pytest.fixture()
def tabs() -> FakeTabOrchestrator:
    return FakeTabOrchestrator()


@pytest.fixture()
def engine(repo: InMemoryTaskRepo, tabs: FakeTabOrchestrator, clock: FixedClock) -> TaskLifecycle:
    return TaskLifecycle(repo, tabs, clock=clock, rng=random.Random(7))


@pytest.fixture()
def state(settings: SimpleNamespace, tabs: FakeTabOrchestrator, clock: FixedClock) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep the real SQLite TaskStore here because its correctness is
    part of what we want to test.
    """
    store = TaskStore(settings.tasks_db_path)
    return AppState(
        settings=settings,
        task_store=store,
        engine=TaskLifecycle(store, tabs, clock=clock, max_tasks_per_day=settings.max_tasks_per_day),
        pager=Paginator(settings.visible_tasks),
    )
