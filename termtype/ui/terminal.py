"""curses terminal setup and keystroke capture."""

from __future__ import annotations

import curses
import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from termtype.ui.colors import init_colors

logger = logging.getLogger(__name__)

SPECIAL_KEYS = {
    curses.KEY_BACKSPACE: "\b",
    curses.KEY_DC: "\b",
    curses.KEY_ENTER: "\n",
}


@dataclass
class Terminal:
    screen: Any
    colors: bool


@contextmanager
def terminal_session() -> Iterator[Terminal]:
    """Put the terminal in raw, no-echo mode and always restore it on exit."""
    # Esc should quit without the default one second wait for an escape sequence
    os.environ.setdefault("ESCDELAY", "25")
    screen = curses.initscr()
    try:
        curses.noecho()
        curses.raw()
        screen.keypad(True)
        try:
            curses.curs_set(0)
        except curses.error:
            logger.debug("Terminal cannot hide the cursor")
        colors = init_colors()
        height, width = screen.getmaxyx()
        logger.debug("Terminal ready: %dx%d, colors=%s", width, height, colors)
        yield Terminal(screen=screen, colors=colors)
    finally:
        screen.keypad(False)
        curses.noraw()
        curses.echo()
        curses.endwin()


class CursesEvents:
    """Keystroke source that waits at most ``timeout`` seconds for a key.

    Function keys with no meaning in a round (arrows, F-keys) are skipped
    and the wait continues. A terminal resize returns None early so the
    caller redraws at the new size.
    """

    def __init__(self, screen, now: Callable[[], float] = time.monotonic) -> None:
        self._screen = screen
        self._now = now

    def poll(self, timeout: float) -> Optional[str]:
        deadline = self._now() + timeout
        while True:
            remaining = max(0.0, deadline - self._now())
            self._screen.timeout(round(remaining * 1000))
            try:
                key = self._screen.get_wch()
            except curses.error:
                # no input before the timeout
                return None
            if not isinstance(key, int):
                return key
            if key == curses.KEY_RESIZE:
                return None
            if key in SPECIAL_KEYS:
                return SPECIAL_KEYS[key]
            logger.debug("Ignoring key code %d", key)
            if remaining <= 0:
                return None
