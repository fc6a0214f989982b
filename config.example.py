# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKLOOP_APP_NAME": "App display name (default: taskloop).",
    "TASKLOOP_LOG_LEVEL": "Console logging level (default: INFO).",
    # Console / browser
    "TASKLOOP_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    "TASKLOOP_OPEN_BROWSER": "Open task websites in the system browser (true/false, default: true).",
    "TASKLOOP_BROWSER": "Optional browser name for the webbrowser module (default: system default).",
    # Limits
    "TASKLOOP_MAX_TASKS_PER_DAY": "Maximum pending tasks (default: 12).",
    "TASKLOOP_VISIBLE_TASKS": "Tasks per page in the today list (default: 8).",
    # Paths (gitignored)
    "TASKLOOP_DATA_DIR": "Local data directory, also holds taskloop.log (default: .local/taskloop).",
    "TASKLOOP_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
}
