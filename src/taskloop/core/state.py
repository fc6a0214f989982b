# src/taskloop/core/state.py

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..tasks.lifecycle import TaskLifecycle
from ..tasks.pagination import Paginator
from ..tasks.task_models import Projection
from .ports import TaskRepo

T = TypeVar("T")


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskRepo
    engine: TaskLifecycle
    pager: Paginator

    # Last reload; connectors address tasks by their position in it.
    projection: Projection | None = None

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Drive one engine call from synchronous connector code."""
        return asyncio.run(coro)

    def reload(self) -> Projection:
        projection = self.run(self.engine.load())
        self.projection = projection
        self.pager.refresh(len(projection.today_set))
        return projection
