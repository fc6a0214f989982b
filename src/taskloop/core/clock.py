# src/taskloop/core/clock.py

from __future__ import annotations

import time
from datetime import date, datetime


class SystemClock:
    """Clock port backed by the platform clock (local time zone)."""

    def now(self) -> float:
        return time.time()

    def today(self) -> date:
        return datetime.now().astimezone().date()
