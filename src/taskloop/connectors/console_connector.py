# src/taskloop/connectors/console_connector.py

"""
Interactive console front end.

Reads slash commands from stdin, hands them to the command registry and
prints the replies. The today list is shown once at startup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"/exit", "/quit", "/q"})
PROMPT = "taskloop> "


def _stamp(text: str) -> str:
    return f"[{datetime.now().strftime('%H:%M:%S')}] {text}"


def _dispatch(state: AppState, line: str, emit: Callable[[str], None]) -> str | None:
    try:
        return command_registry.handle(state, line, emit=emit)
    except Exception:
        logger.exception("Command %r crashed", line.split(maxsplit=1)[0])
        return "Internal error while handling a command."


def run_console_loop(
    state: AppState,
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> None:
    """Run until /exit, EOF or Ctrl-C."""

    def emit(text: str) -> None:
        write(_stamp(text))

    write(f"{state.settings.app_name}: /help lists commands, /exit quits.")
    first = _dispatch(state, "/tasks", emit)
    if first is not None:
        write(first)

    while True:
        try:
            line = read(PROMPT).strip()
        except (EOFError, KeyboardInterrupt):
            write("")
            break

        if not line:
            continue
        if line.lower() in EXIT_COMMANDS:
            break
        if not line.startswith("/"):
            write("Commands start with '/'. Try /help.")
            continue

        reply = _dispatch(state, line, emit)
        if reply is not None:
            write(reply)

    logger.info("Console session ended.")
