# src/taskloop/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from .recurrence import as_calendar_day
from .task_models import Task, TaskSchedule, TaskState

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "name",
    "description",
    "websites",
    "state",
    "schedule",
    "start_date",
    "next_occurrence_anchor",
    "created_at",
    "updated_at",
    "completed_at",
    "sort_order",
    "month_day",
)


class TaskStore:
    """
    SQLite task store.

    The engine treats storage as a whole collection: get_all() reads every
    record, save_all() replaces them inside one transaction.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Dates are stored as "YYYY-MM-DD" text (calendar days, not instants).

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    websites TEXT NOT NULL DEFAULT '[]',
                    state TEXT NOT NULL DEFAULT 'pending',
                    schedule TEXT NOT NULL DEFAULT 'none',
                    start_date TEXT,
                    next_occurrence_anchor TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    completed_at REAL,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    month_day INTEGER
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            # Databases created before recurrence support lack these.
            add_col("schedule", "TEXT NOT NULL DEFAULT 'none'")
            add_col("start_date", "TEXT")
            add_col("next_occurrence_anchor", "TEXT")
            add_col("completed_at", "REAL")
            add_col("sort_order", "INTEGER NOT NULL DEFAULT 0")
            add_col("month_day", "INTEGER")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_state ON tasks(state, start_date)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _websites_to_str(websites: list[str] | None) -> str:
        return json.dumps(list(websites or []), ensure_ascii=False)

    @staticmethod
    def _str_to_websites(s: str | None) -> list[str]:
        if not s:
            return []
        try:
            val = json.loads(s)
        except ValueError:
            logger.warning("Unreadable websites column; treating as empty: %r", s)
            return []
        return [str(u) for u in val] if isinstance(val, list) else []

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            name=str(row["name"] or ""),
            description=row["description"],
            websites=self._str_to_websites(row["websites"]),
            state=TaskState.from_db(row["state"]),
            schedule=TaskSchedule.from_db(row["schedule"]),
            start_date=as_calendar_day(row["start_date"]),
            next_occurrence_anchor=as_calendar_day(row["next_occurrence_anchor"]),
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
            completed_at=float(row["completed_at"]) if row["completed_at"] is not None else None,
            order=int(row["sort_order"] or 0),
            month_day=int(row["month_day"]) if row["month_day"] is not None else None,
        )

    def _task_to_row(self, task: Task) -> tuple[Any, ...]:
        return (
            task.id,
            task.name,
            task.description,
            self._websites_to_str(task.websites),
            task.state.value,
            task.schedule.value,
            task.start_date.isoformat() if task.start_date else None,
            task.next_occurrence_anchor.isoformat() if task.next_occurrence_anchor else None,
            float(task.created_at),
            float(task.updated_at),
            float(task.completed_at) if task.completed_at is not None else None,
            int(task.order),
            task.month_day,
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def get_all(self) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks ORDER BY sort_order ASC, created_at ASC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def save_all(self, tasks: list[Task]) -> bool:
        """
        Replace the whole collection in one transaction.

        Returns False (and leaves the previous contents in place) if SQLite
        rejects the write.
        """
        placeholders = ", ".join("?" for _ in _COLUMNS)
        sql = f"INSERT INTO tasks({', '.join(_COLUMNS)}) VALUES ({placeholders})"

        conn = self._get_conn()
        try:
            with conn:
                conn.execute("DELETE FROM tasks")
                conn.executemany(sql, [self._task_to_row(t) for t in tasks])
            logger.debug("TaskStore saved %d tasks", len(tasks))
            return True
        except sqlite3.Error:
            logger.exception("TaskStore save_all failed db=%s", self._db_path)
            return False
        finally:
            conn.close()
