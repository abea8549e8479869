"""Tests for termtype.core.session – the typing loop state machine."""

from __future__ import annotations

import itertools
import math
import random
from typing import Iterator, List, Optional, Sequence, Tuple

import pytest

from termtype.core.clock import SessionClock
from termtype.core.session import (
    CompletedWord,
    LoopState,
    RenderView,
    TypingLoop,
)
from termtype.core.words import WordSource


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeTime:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FixedSource(WordSource):
    """Hands out its words in order, over and over."""

    def __iter__(self) -> Iterator[str]:
        return itertools.cycle(self.words)


class RecordingDisplay:
    def __init__(self) -> None:
        self.views: List[RenderView] = []

    def render(self, view: RenderView) -> None:
        self.views.append(view)


class ScriptedEvents:
    """Delivers keys at fixed times on a FakeTime; ticks in between."""

    def __init__(self, time: FakeTime, script: Sequence[Tuple[float, str]]) -> None:
        self._time = time
        self._script = list(script)

    def poll(self, timeout: float) -> Optional[str]:
        if self._script and self._script[0][0] <= self._time.now + timeout:
            at, key = self._script.pop(0)
            self._time.now = max(self._time.now, at)
            return key
        self._time.advance(timeout)
        return None


def typed_at(text: str, start: float, end: float) -> List[Tuple[float, str]]:
    """Spread the characters of ``text`` evenly from ``start`` to ``end``."""
    steps = len(text) - 1
    return [(start + (end - start) * i / steps, ch) for i, ch in enumerate(text)]


def make_loop(words=("cat",), duration: float = 30.0, **kwargs):
    t = FakeTime()
    clock = SessionClock(duration, now=t)
    source = WordSource(list(words), random.Random(0))
    display = RecordingDisplay()
    loop = TypingLoop(source, clock, display=display, **kwargs)
    return loop, t, display


def type_text(loop: TypingLoop, text: str) -> None:
    for ch in text:
        loop.handle_key(ch)


# ---------------------------------------------------------------------------
# Initial state
# ---------------------------------------------------------------------------

class TestInitialState:
    def test_ready(self):
        loop, _, _ = make_loop()
        assert loop.state is LoopState.READY
        assert loop.prompt == "cat"
        assert loop.typed == ""
        assert loop.result is None

    def test_clock_not_started(self):
        loop, t, _ = make_loop()
        t.advance(100)
        assert not loop.clock.started
        assert loop.tick() is LoopState.READY

    def test_preview_fills_queue(self):
        loop, _, _ = make_loop(words=("a", "b", "c"), preview=5)
        assert len(loop.upcoming) == 4

    def test_preview_capped_by_word_limit(self):
        loop, _, _ = make_loop(words=("a", "b"), preview=10, word_limit=3)
        assert len(loop.upcoming) == 2

    @pytest.mark.parametrize("limit", [0, -3])
    def test_invalid_word_limit(self, limit):
        with pytest.raises(ValueError):
            make_loop(word_limit=limit)


# ---------------------------------------------------------------------------
# Keystroke scoring
# ---------------------------------------------------------------------------

class TestKeystrokes:
    def test_first_char_starts_clock(self):
        loop, _, _ = make_loop()
        assert loop.handle_key("c") is LoopState.AWAITING_INPUT
        assert loop.clock.started

    def test_correct_chars(self):
        loop, _, _ = make_loop()
        type_text(loop, "cat")
        assert loop.correct_chars == 3
        assert loop.incorrect_chars == 0
        assert loop.marks() == (True, True, True)

    def test_mismatch_does_not_block_cursor(self):
        loop, _, _ = make_loop()
        type_text(loop, "cxt")
        assert loop.typed == "cxt"
        assert loop.correct_chars == 2
        assert loop.incorrect_chars == 1
        assert loop.marks() == (True, False, True)

    def test_overflow_is_incorrect(self):
        loop, _, _ = make_loop()
        type_text(loop, "cats")
        assert loop.correct_chars == 3
        assert loop.incorrect_chars == 1
        assert loop.marks() == (True, True, True, False)

    def test_backspace_edits_buffer_only(self):
        loop, _, _ = make_loop()
        type_text(loop, "cx")
        loop.handle_key("\x7f")
        assert loop.typed == "c"
        assert (loop.correct_chars, loop.incorrect_chars) == (1, 1)
        loop.handle_key("a")
        assert loop.typed == "ca"
        assert (loop.correct_chars, loop.incorrect_chars) == (2, 1)

    def test_counts_equal_scored_keystrokes(self):
        loop, _, _ = make_loop(words=("the", "quick"))
        keys = "thw\b\be quivk\x7f\x7fck zz"
        scored = sum(1 for k in keys if k not in ("\b", "\x7f", " "))
        type_text(loop, keys)
        assert loop.correct_chars + loop.incorrect_chars == scored

    def test_backspace_on_empty_buffer(self):
        loop, _, _ = make_loop()
        loop.handle_key("\b")
        assert loop.typed == ""
        assert loop.state is LoopState.READY

    def test_non_printable_ignored(self):
        loop, _, display = make_loop()
        loop.handle_key("\x01")
        loop.handle_key("")
        assert loop.typed == ""
        assert display.views == []

    def test_each_key_renders(self):
        loop, _, display = make_loop()
        type_text(loop, "ca")
        assert [v.typed for v in display.views] == ["c", "ca"]
        assert display.views[-1].marks == (True, True)
        assert display.views[-1].prompt == "cat"


# ---------------------------------------------------------------------------
# Word completion
# ---------------------------------------------------------------------------

class TestWordCompletion:
    @pytest.mark.parametrize("key", [" ", "\n", "\r"])
    def test_submit_keys(self, key):
        loop, _, _ = make_loop(words=("a", "b"))
        first = loop.prompt
        loop.handle_key(first)
        assert loop.handle_key(key) is LoopState.WORD_COMPLETE
        assert loop.typed == ""
        assert loop.completed == [CompletedWord(target=first, typed=first)]

    def test_spaces_not_scored(self):
        loop, _, _ = make_loop()
        type_text(loop, "cat cat ")
        assert loop.correct_chars == 6
        assert loop.incorrect_chars == 0

    def test_submit_on_empty_buffer_ignored(self):
        loop, _, _ = make_loop()
        loop.handle_key(" ")
        type_text(loop, "cat")
        loop.handle_key(" ")
        loop.handle_key(" ")
        assert len(loop.completed) == 1

    def test_next_key_returns_to_awaiting(self):
        loop, _, _ = make_loop()
        type_text(loop, "cat ")
        assert loop.state is LoopState.WORD_COMPLETE
        loop.handle_key("c")
        assert loop.state is LoopState.AWAITING_INPUT

    def test_wrong_word_recorded(self):
        loop, _, _ = make_loop()
        type_text(loop, "cot ")
        word = loop.completed[0]
        assert word == CompletedWord(target="cat", typed="cot")
        assert not word.is_correct

    def test_queue_advances(self):
        loop, _, _ = make_loop(words=("a", "b", "c", "d"), preview=3)
        upcoming = loop.upcoming
        type_text(loop, loop.prompt + " ")
        assert loop.prompt == upcoming[0]
        assert len(loop.upcoming) == 2

    def test_word_limit_ends_session(self):
        loop, t, _ = make_loop(word_limit=2)
        type_text(loop, "cat ")
        t.advance(6)
        type_text(loop, "cat ")
        assert loop.state is LoopState.WORDS_EXHAUSTED
        assert loop.prompt == ""
        assert loop.result is not None
        assert loop.result.elapsed_seconds == pytest.approx(6.0)
        assert loop.result.correct_chars == 6

    def test_word_limit_without_elapsed_time(self):
        loop, _, _ = make_loop(word_limit=1)
        type_text(loop, "cat")
        assert loop.handle_key(" ") is LoopState.WORDS_EXHAUSTED
        result = loop.result
        assert result.elapsed_seconds > 0
        assert math.isfinite(result.wpm)
        assert result.correct_chars == 3
        assert result.accuracy == 100.0


# ---------------------------------------------------------------------------
# Time expiry
# ---------------------------------------------------------------------------

class TestTimeExpiry:
    def test_tick_before_deadline(self):
        loop, t, _ = make_loop(duration=10)
        loop.handle_key("c")
        t.advance(5)
        assert loop.tick() is LoopState.AWAITING_INPUT

    def test_tick_after_deadline(self):
        loop, t, display = make_loop(duration=10)
        type_text(loop, "ca")
        t.advance(10)
        assert loop.tick() is LoopState.TIME_EXPIRED
        assert display.views[-1].state is LoopState.TIME_EXPIRED
        assert display.views[-1].result == loop.result

    def test_partial_word_scored(self):
        loop, t, _ = make_loop(duration=10)
        type_text(loop, "cax")
        t.advance(11)
        loop.tick()
        result = loop.result
        assert result.correct_chars == 2
        assert result.incorrect_chars == 1
        assert result.elapsed_seconds == 10.0
        assert result.wpm == pytest.approx((2 / 5) / (10 / 60))

    def test_key_after_deadline_dropped(self):
        loop, t, _ = make_loop(duration=10)
        loop.handle_key("c")
        t.advance(10.5)
        assert loop.handle_key("a") is LoopState.TIME_EXPIRED
        assert loop.correct_chars == 1
        assert loop.typed == "c"

    def test_expires_once(self):
        loop, t, _ = make_loop(duration=10)
        loop.handle_key("c")
        t.advance(20)
        loop.tick()
        result = loop.result
        t.advance(20)
        loop.tick()
        loop.handle_key("a")
        assert loop.result is result
        assert loop.state is LoopState.TIME_EXPIRED


# ---------------------------------------------------------------------------
# Quitting
# ---------------------------------------------------------------------------

class TestQuit:
    @pytest.mark.parametrize("key", ["\x1b", "\x03"])
    def test_quit_keys(self, key):
        loop, _, _ = make_loop()
        type_text(loop, "ca")
        assert loop.handle_key(key) is LoopState.QUIT
        assert loop.result is None

    def test_quit_before_start(self):
        loop, _, _ = make_loop()
        assert loop.handle_key("\x1b") is LoopState.QUIT


# ---------------------------------------------------------------------------
# run() with scripted input
# ---------------------------------------------------------------------------

class TestRun:
    def test_three_words_in_twelve_seconds(self):
        t = FakeTime()
        source = FixedSource(["the", "quick", "brown"], random.Random(0))
        loop = TypingLoop(source, SessionClock(60, now=t), word_limit=3)
        events = ScriptedEvents(t, typed_at("the quick brown ", 0.0, 12.0))
        result = loop.run(events)
        assert loop.state is LoopState.WORDS_EXHAUSTED
        assert result.correct_chars == 13
        assert result.incorrect_chars == 0
        assert result.elapsed_seconds == pytest.approx(12.0)
        assert result.wpm == pytest.approx(13.0)
        assert result.accuracy == 100.0
        assert [w.typed for w in loop.completed] == ["the", "quick", "brown"]

    def test_time_expires_mid_word(self):
        t = FakeTime()
        source = FixedSource(["hello", "world"], random.Random(0))
        display = RecordingDisplay()
        loop = TypingLoop(source, SessionClock(10, now=t), display=display)
        events = ScriptedEvents(t, [(0.0, "h"), (1.0, "e"), (2.0, "l")])
        result = loop.run(events)
        assert loop.state is LoopState.TIME_EXPIRED
        assert loop.typed == "hel"
        assert result.correct_chars == 3
        assert result.elapsed_seconds == 10.0
        assert t.now == pytest.approx(10.0)
        assert display.views[-1].state is LoopState.TIME_EXPIRED

    def test_word_limit_on_frozen_clock(self):
        # buffered input can finish a round within one clock reading
        class FrozenEvents:
            def __init__(self, keys):
                self._keys = list(keys)

            def poll(self, timeout):
                return self._keys.pop(0) if self._keys else None

        loop = TypingLoop(
            WordSource(["a"], random.Random(0)),
            SessionClock(30, now=lambda: 100.0),
            word_limit=1,
        )
        result = loop.run(FrozenEvents(["a", " "]))
        assert loop.state is LoopState.WORDS_EXHAUSTED
        assert result.correct_chars == 1
        assert result.elapsed_seconds > 0
        assert math.isfinite(result.wpm)

    def test_quit_returns_none(self):
        t = FakeTime()
        loop = TypingLoop(WordSource(["cat"], random.Random(0)), SessionClock(30, now=t))
        events = ScriptedEvents(t, [(0.0, "c"), (1.0, "\x1b")])
        assert loop.run(events) is None
        assert loop.state is LoopState.QUIT

    def test_waits_for_first_key(self):
        t = FakeTime()
        loop = TypingLoop(WordSource(["cat"], random.Random(0)), SessionClock(5, now=t))
        events = ScriptedEvents(t, [(100.0, "c")])
        loop.run(events, tick=1.0)
        # clock started at the first key, so the round ends five seconds later
        assert t.now == pytest.approx(105.0)
        assert loop.result.elapsed_seconds == 5.0

    def test_live_view_reports_remaining(self):
        t = FakeTime()
        display = RecordingDisplay()
        loop = TypingLoop(WordSource(["cat"], random.Random(0)), SessionClock(2, now=t), display=display)
        loop.run(ScriptedEvents(t, [(0.0, "c")]), tick=0.5)
        remaining = [v.remaining for v in display.views]
        assert remaining[0] == 2.0
        assert remaining == sorted(remaining, reverse=True)
        assert remaining[-1] == 0.0
