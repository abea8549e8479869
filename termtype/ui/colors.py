"""Color pairs for the terminal UI."""

from __future__ import annotations

import curses


class TermColors:
    """curses color pair numbers, with the foreground used for each."""

    CORRECT = 1
    WRONG = 2
    PROMPT = 3
    MUTED = 4
    ACCENT = 5

    FOREGROUNDS = {
        CORRECT: curses.COLOR_GREEN,
        WRONG: curses.COLOR_RED,
        PROMPT: curses.COLOR_WHITE,
        MUTED: curses.COLOR_BLUE,
        ACCENT: curses.COLOR_CYAN,
    }


STYLE_PAIRS = {
    "correct": TermColors.CORRECT,
    "wrong": TermColors.WRONG,
    "pending": TermColors.PROMPT,
    "upcoming": TermColors.MUTED,
    "info": TermColors.ACCENT,
}


def init_colors() -> bool:
    """Register the color pairs. Returns False on terminals without color."""
    if not curses.has_colors():
        return False
    curses.start_color()
    try:
        curses.use_default_colors()
        background = -1
    except curses.error:
        background = curses.COLOR_BLACK
    for pair, foreground in TermColors.FOREGROUNDS.items():
        curses.init_pair(pair, foreground, background)
    return True


def style_attr(style: str, colors: bool) -> int:
    """curses attribute for a named text style."""
    if not colors:
        # monochrome: mark mistakes so they still stand out
        return curses.A_REVERSE if style == "wrong" else curses.A_NORMAL
    attr = curses.color_pair(STYLE_PAIRS.get(style, TermColors.PROMPT))
    if style == "pending":
        attr |= curses.A_BOLD
    return attr
