# src/taskloop/tasks/constants.py

from __future__ import annotations

# Task limits
MAX_TASKS_PER_DAY = 12
VISIBLE_TASKS = 8

# Tab group colours accepted by the browser tab-group API.
TAB_GROUP_COLORS = (
    "grey",
    "blue",
    "red",
    "yellow",
    "green",
    "pink",
    "purple",
    "cyan",
)

# URL validation
INVALID_PROTOCOLS = (
    "chrome://",
    "chrome-extension://",
    "file://",
    "data:",
    "javascript:",
    "about:",
)
ALLOWED_PROTOCOLS = ("http://", "https://")

# Task form validation
MIN_TASK_NAME_LENGTH = 1
MAX_TASK_NAME_LENGTH = 50
MAX_TASK_DESCRIPTION_LENGTH = 200
MIN_WEBSITES_COUNT = 1
MAX_WEBSITES_COUNT = 10
