"""Terminal typing UI: word queue, typed buffer and info boxes."""

from __future__ import annotations

import curses
from typing import List, Sequence, Tuple

from termtype.core.scoring import Result
from termtype.core.session import CompletedWord, LoopState, RenderView
from termtype.ui.colors import style_attr

Segment = Tuple[str, str]

BOX_HEIGHT = 3
MIN_WIDTH = 40
MIN_BUFFER_WIDTH = 12
RESTART_HINT = "Enter: new round  Esc: quit"


def prompt_segments(prompt: str, typed: str) -> List[Segment]:
    """Split the prompt word into styled runs.

    The matched prefix is ``correct`` and the rest ``pending``. Once any typed
    character is wrong, or more characters were typed than the word has, the
    whole word is ``wrong``.
    """
    if len(typed) > len(prompt) or any(a != b for a, b in zip(typed, prompt)):
        return [(prompt, "wrong")]
    done = len(typed)
    return [(run, style) for run, style in ((prompt[:done], "correct"), (prompt[done:], "pending")) if run]


def queue_segments(view: RenderView, width: int) -> List[Segment]:
    """Current prompt followed by as many upcoming words as fit in ``width``."""
    if not view.prompt:
        return []
    segments = prompt_segments(view.prompt, view.typed)
    used = len(view.prompt)
    for word in view.upcoming:
        if used + 1 + len(word) > width:
            break
        segments.append((" " + word, "upcoming"))
        used += 1 + len(word)
    return segments


def info_text(view: RenderView) -> str:
    if view.state is LoopState.READY:
        return f"{view.remaining:.0f}s | start typing"
    if view.result is not None:
        return f"{view.result.wpm:.0f} wpm | {view.result.accuracy:.0f}%"
    return f"{int(view.remaining + 0.999)}s | ~{view.live_wpm:.0f} wpm | {view.words_completed} words"


def summary_lines(result: Result, words: Sequence[CompletedWord] = ()) -> List[str]:
    """Plain-text result report, printed once the terminal is restored."""
    lines = [
        f"WPM:       {result.wpm:.1f}",
        f"Gross WPM: {result.gross_wpm:.1f}",
        f"Accuracy:  {result.accuracy:.1f}%",
        f"Correct:   {result.correct_chars}",
        f"Incorrect: {result.incorrect_chars}",
        f"Typed:     {result.total_chars}",
        f"Time:      {result.elapsed_seconds:.1f}s",
    ]
    if words:
        right = sum(1 for word in words if word.is_correct)
        lines.append(f"Words:     {len(words)} ({right} correct)")
    return lines


class TerminalDisplay:
    """Draws a :class:`RenderView` on a curses screen."""

    def __init__(self, screen, colors: bool = False) -> None:
        self._screen = screen
        self._colors = colors

    def render(self, view: RenderView) -> None:
        screen = self._screen
        screen.erase()
        height, width = screen.getmaxyx()

        # middle half of the screen, boxes just below the vertical centre
        left = width // 4
        inner = max(width // 2, MIN_WIDTH)
        inner = min(inner, width - left)
        top = height // 2

        self._draw_box(top, left, inner, queue_segments(view, inner - 2))

        # typed buffer takes a third of the row, the info box the rest
        buffer_width = min(max(inner // 3, MIN_BUFFER_WIDTH), inner)
        typed_style = "wrong" if not all(view.marks) else "pending"
        self._draw_box(top + BOX_HEIGHT, left, buffer_width, [(view.typed, typed_style)])
        self._draw_box(
            top + BOX_HEIGHT,
            left + buffer_width,
            inner - buffer_width,
            [(info_text(view), "info")],
        )
        if view.result is not None:
            _add_text(screen, top + 2 * BOX_HEIGHT, left + 1, RESTART_HINT, style_attr("upcoming", self._colors))
        screen.refresh()

    def _draw_box(self, y: int, x: int, width: int, segments: List[Segment]) -> None:
        if width < 3:
            return
        try:
            box = self._screen.derwin(BOX_HEIGHT, width, y, x)
        except curses.error:
            # terminal too small for this box
            return
        box.box()
        column = 1
        for text, style in segments:
            text = text[: max(0, width - 1 - column)]
            if not text:
                break
            _add_text(box, 1, column, text, style_attr(style, self._colors))
            column += len(text)


def _add_text(window, y: int, x: int, text: str, attr: int) -> None:
    try:
        window.addstr(y, x, text, attr)
    except curses.error:
        # raised after drawing when text reaches the last cell of the window
        pass
