# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path

from taskloop.cli.bootstrap import build_tab_orchestrator, create_initial_state
from taskloop.config import Settings
from taskloop.tabs.orchestrator import NullTabOrchestrator, WebbrowserTabOrchestrator


def test_settings_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKLOOP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKLOOP_MAX_TASKS_PER_DAY", "5")
    monkeypatch.setenv("TASKLOOP_VISIBLE_TASKS", "not-a-number")
    monkeypatch.setenv("TASKLOOP_OPEN_BROWSER", "off")
    monkeypatch.delenv("TASKLOOP_TASKS_DB_PATH", raising=False)

    s = Settings.from_env()

    assert s.max_tasks_per_day == 5
    assert s.visible_tasks == 8
    assert s.open_browser is False
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"


def test_build_tab_orchestrator_follows_open_browser(settings) -> None:
    assert isinstance(build_tab_orchestrator(settings), NullTabOrchestrator)
    settings.open_browser = True
    assert isinstance(build_tab_orchestrator(settings), WebbrowserTabOrchestrator)


def test_create_initial_state_wires_store_and_engine(settings, tabs) -> None:
    settings.max_tasks_per_day = 3
    state = create_initial_state(settings=settings, tabs=tabs)

    assert settings.tasks_db_path.exists()
    assert state.pager.page_size == settings.visible_tasks

    projection = state.reload()
    assert projection.error is None
    assert projection.today_set == []
