# src/taskloop/tabs/orchestrator.py

"""
Tab orchestrator adapters.

The lifecycle engine talks to the browser through the TabOrchestrator port.
Two implementations live here:
- WebbrowserTabOrchestrator: opens websites in the user's default browser via
  the standard `webbrowser` module. The system browser exposes no tab-group
  API, so grouping/focus/close report "not available" (None/False) and the
  engine carries on.
- NullTabOrchestrator: does nothing (headless runs, tests).
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import webbrowser

from ..core.ports import TabGroup

logger = logging.getLogger(__name__)


class WebbrowserTabOrchestrator:
    def __init__(self, *, browser: str | None = None) -> None:
        self._browser_name = browser
        self._ids = itertools.count(1)

    def _controller(self) -> webbrowser.BaseBrowser:
        return webbrowser.get(self._browser_name)

    async def open_tabs(self, urls: list[str]) -> list[int]:
        tab_ids: list[int] = []
        for url in urls:
            try:
                opened = await asyncio.to_thread(self._controller().open_new_tab, url)
            except webbrowser.Error:
                logger.warning("No usable browser to open %s", url, exc_info=True)
                break
            if opened:
                tab_ids.append(next(self._ids))
            else:
                logger.warning("Browser refused to open %s", url)
        logger.debug("Opened %d/%d tabs", len(tab_ids), len(urls))
        return tab_ids

    async def group_tabs(self, tab_ids: list[int], title: str, color: str) -> int | None:
        logger.debug("Tab groups unavailable; not grouping %d tabs as %r", len(tab_ids), title)
        return None

    async def find_group_by_title(self, title: str) -> TabGroup | None:
        return None

    async def focus_group(self, group_id: int) -> bool:
        return False

    async def close_group(self, group_id: int) -> bool:
        return False

    async def current_group(self) -> TabGroup | None:
        return None


class NullTabOrchestrator:
    async def open_tabs(self, urls: list[str]) -> list[int]:
        return []

    async def group_tabs(self, tab_ids: list[int], title: str, color: str) -> int | None:
        return None

    async def find_group_by_title(self, title: str) -> TabGroup | None:
        return None

    async def focus_group(self, group_id: int) -> bool:
        return False

    async def close_group(self, group_id: int) -> bool:
        return False

    async def current_group(self) -> TabGroup | None:
        return None
