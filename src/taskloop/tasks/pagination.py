# src/taskloop/tasks/pagination.py

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .constants import VISIBLE_TASKS

T = TypeVar("T")


def total_pages(count: int, page_size: int = VISIBLE_TASKS) -> int:
    size = max(1, int(page_size))
    return max(1, math.ceil(max(0, count) / size))


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(int(page), max(1, pages)))


@dataclass(slots=True, frozen=True)
class Page(Generic[T]):
    items: list[T]
    number: int
    total_pages: int
    total_items: int
    page_size: int

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.number > 1

    @property
    def offset(self) -> int:
        return (self.number - 1) * self.page_size


def paginate(items: Sequence[T], page: int = 1, page_size: int = VISIBLE_TASKS) -> Page[T]:
    """Slice `items` into the requested page; out-of-range pages are clamped."""
    size = max(1, int(page_size))
    pages = total_pages(len(items), size)
    number = clamp_page(page, pages)
    start = (number - 1) * size
    return Page(
        items=list(items[start : start + size]),
        number=number,
        total_pages=pages,
        total_items=len(items),
        page_size=size,
    )


class Paginator:
    """
    Keeps the current page across reloads.

    Navigation outside the valid range is clamped, never rejected. When a
    reload shrinks the list, the current page is re-clamped.
    """

    def __init__(self, page_size: int = VISIBLE_TASKS) -> None:
        self.page_size = max(1, int(page_size))
        self.current_page = 1
        self.total_pages = 1

    def refresh(self, count: int) -> None:
        self.total_pages = total_pages(count, self.page_size)
        self.current_page = clamp_page(self.current_page, self.total_pages)

    def goto(self, page: int) -> int:
        self.current_page = clamp_page(page, self.total_pages)
        return self.current_page

    def next_page(self) -> int:
        return self.goto(self.current_page + 1)

    def prev_page(self) -> int:
        return self.goto(self.current_page - 1)

    def page_of(self, items: Sequence[T]) -> Page[T]:
        self.refresh(len(items))
        return paginate(items, self.current_page, self.page_size)
