# src/taskloop/logging_setup.py

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

LOG_FILE_NAME = "taskloop.log"

# Console floor per logger prefix (longest prefix wins). Engine INFO lines
# repeat what the command reply already says, so they only go to the file.
_CONSOLE_FLOORS: dict[str, int] = {
    "taskloop": logging.INFO,
    "taskloop.tasks": logging.WARNING,
    "taskloop.tabs": logging.WARNING,
    "py.warnings": logging.ERROR,
}
_DEFAULT_FLOOR = logging.ERROR


def console_floor(logger_name: str) -> int:
    best, floor = -1, _DEFAULT_FLOOR
    for prefix, level in _CONSOLE_FLOORS.items():
        if (logger_name == prefix or logger_name.startswith(prefix + ".")) and len(prefix) > best:
            best, floor = len(prefix), level
    return floor


class _ReplFilter(logging.Filter):
    """Keeps the interactive prompt readable; the log file still gets everything."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_floor(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskloop",
    console_level: int = logging.INFO,
    max_bytes: int = 1_000_000,
    backups: int = 3,
) -> Path:
    """Install console and rotating-file handlers on the root logger. Returns the log file path."""
    log_path = Path(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ReplFilter())
    root.addHandler(console)

    # At most max_bytes * (backups + 1) on disk.
    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_path
