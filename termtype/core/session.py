from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional, Protocol, Tuple

from termtype.core.clock import SessionClock
from termtype.core.scoring import Result, compute, words_per_minute
from termtype.core.words import WordSource

logger = logging.getLogger(__name__)

BACKSPACE_KEYS = frozenset({"\b", "\x7f"})
SUBMIT_KEYS = frozenset({" ", "\n", "\r"})
QUIT_KEYS = frozenset({"\x1b", "\x03"})  # Esc, Ctrl+C

DEFAULT_PREVIEW = 10
DEFAULT_TICK = 0.25
# shortest elapsed time a finished round is scored over
MIN_ELAPSED = 1e-6


class LoopState(Enum):
    READY = "ready"
    AWAITING_INPUT = "awaiting_input"
    WORD_COMPLETE = "word_complete"
    TIME_EXPIRED = "time_expired"
    WORDS_EXHAUSTED = "words_exhausted"
    QUIT = "quit"

    @property
    def is_terminal(self) -> bool:
        return self in (LoopState.TIME_EXPIRED, LoopState.WORDS_EXHAUSTED, LoopState.QUIT)


@dataclass(frozen=True)
class CompletedWord:
    """A prompt word and what the user typed for it."""

    target: str
    typed: str

    @property
    def is_correct(self) -> bool:
        return self.target == self.typed


@dataclass(frozen=True)
class RenderView:
    """Everything the display needs to draw one frame."""

    state: LoopState
    prompt: str
    upcoming: Tuple[str, ...]
    typed: str
    marks: Tuple[bool, ...]
    remaining: float
    live_wpm: float
    words_completed: int
    result: Optional[Result] = None


class Display(Protocol):
    def render(self, view: RenderView) -> None:
        ...


class EventSource(Protocol):
    def poll(self, timeout: float) -> Optional[str]:
        """Return the next key, or None if ``timeout`` seconds pass without one.

        None may also come early when the screen needs a redraw.
        """
        ...


class TypingLoop:
    """Read-compare-render state machine for one typing session.

    Mistyped characters never block the cursor: every printable keystroke
    is appended to the buffer and scored against the prompt character at
    the same position (anything past the end of the prompt is wrong).
    Backspace only edits the buffer, so ``correct_chars + incorrect_chars``
    always equals the number of scored keystrokes. Spaces and Enter end
    the current word and are not scored.

    The clock starts on the first typed character. The session ends when
    the clock runs out, when ``word_limit`` words have been submitted, or
    on a quit key.
    """

    def __init__(
        self,
        source: WordSource,
        clock: SessionClock,
        display: Optional[Display] = None,
        word_limit: Optional[int] = None,
        preview: int = DEFAULT_PREVIEW,
    ) -> None:
        if word_limit is not None and word_limit <= 0:
            raise ValueError(f"word limit must be positive, got {word_limit!r}")
        self._words = iter(source)
        self._clock = clock
        self._display = display
        self._word_limit = word_limit
        self._preview = max(1, preview)
        self._queue: Deque[str] = deque()
        self._issued = 0
        self._buffer: List[str] = []
        self._correct = 0
        self._incorrect = 0
        self._completed: List[CompletedWord] = []
        self._state = LoopState.READY
        self._result: Optional[Result] = None
        self._fill_queue()

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def clock(self) -> SessionClock:
        return self._clock

    @property
    def prompt(self) -> str:
        """The word currently being typed, empty once the word limit is used up."""
        return self._queue[0] if self._queue else ""

    @property
    def upcoming(self) -> Tuple[str, ...]:
        return tuple(self._queue)[1:]

    @property
    def typed(self) -> str:
        return "".join(self._buffer)

    @property
    def correct_chars(self) -> int:
        return self._correct

    @property
    def incorrect_chars(self) -> int:
        return self._incorrect

    @property
    def completed(self) -> List[CompletedWord]:
        return list(self._completed)

    @property
    def result(self) -> Optional[Result]:
        """Final score, set once the session times out or runs out of words."""
        return self._result

    def marks(self) -> Tuple[bool, ...]:
        """Per typed character: does it match the prompt at that position."""
        prompt = self.prompt
        return tuple(i < len(prompt) and ch == prompt[i] for i, ch in enumerate(self._buffer))

    def live_wpm(self) -> float:
        return words_per_minute(self._correct, self._clock.elapsed())

    def view(self) -> RenderView:
        return RenderView(
            state=self._state,
            prompt=self.prompt,
            upcoming=self.upcoming,
            typed=self.typed,
            marks=self.marks(),
            remaining=self._clock.remaining(),
            live_wpm=self.live_wpm(),
            words_completed=len(self._completed),
            result=self._result,
        )

    def handle_key(self, key: str) -> LoopState:
        """Process one keystroke and render the new state."""
        if self._state.is_terminal:
            return self._state
        if key in QUIT_KEYS:
            logger.info("Session quit after %d words", len(self._completed))
            self._state = LoopState.QUIT
        elif self._deadline_passed():
            self._finish(LoopState.TIME_EXPIRED)
        elif key in BACKSPACE_KEYS:
            self._backspace()
        elif key in SUBMIT_KEYS:
            self._submit()
        elif len(key) == 1 and key.isprintable():
            self._type_char(key)
        else:
            return self._state
        self._emit()
        return self._state

    def tick(self) -> LoopState:
        """Check the deadline; called when no key arrived within a tick."""
        if not self._state.is_terminal and self._deadline_passed():
            self._finish(LoopState.TIME_EXPIRED)
        self._emit()
        return self._state

    def run(self, events: EventSource, tick: float = DEFAULT_TICK) -> Optional[Result]:
        """Drive the session from ``events`` until it ends; return the score.

        Returns None when the session was quit.
        """
        self._emit()
        while not self._state.is_terminal:
            timeout = tick
            if self._clock.started:
                timeout = max(0.0, min(tick, self._clock.remaining()))
            key = events.poll(timeout)
            if key is None:
                self.tick()
            else:
                self.handle_key(key)
        return self._result

    def _deadline_passed(self) -> bool:
        return self._clock.expired()

    def _type_char(self, ch: str) -> None:
        if self._state is LoopState.READY:
            self._clock.start()
            logger.info("Round started, %.0fs on the clock", self._clock.duration)
        self._state = LoopState.AWAITING_INPUT
        prompt = self.prompt
        cursor = len(self._buffer)
        if cursor < len(prompt) and prompt[cursor] == ch:
            self._correct += 1
        else:
            self._incorrect += 1
        self._buffer.append(ch)

    def _backspace(self) -> None:
        if self._buffer:
            self._buffer.pop()
            self._state = LoopState.AWAITING_INPUT

    def _submit(self) -> None:
        if not self._buffer:
            return
        target = self._queue.popleft()
        self._completed.append(CompletedWord(target=target, typed=self.typed))
        self._buffer.clear()
        self._state = LoopState.WORD_COMPLETE
        self._fill_queue()
        if not self._queue:
            self._finish(LoopState.WORDS_EXHAUSTED)

    def _fill_queue(self) -> None:
        while len(self._queue) < self._preview:
            if self._word_limit is not None and self._issued >= self._word_limit:
                break
            self._queue.append(next(self._words))
            self._issued += 1

    def _finish(self, state: LoopState) -> None:
        self._state = state
        if state is LoopState.TIME_EXPIRED:
            elapsed = self._clock.duration
        else:
            elapsed = max(min(self._clock.elapsed(), self._clock.duration), MIN_ELAPSED)
        self._result = compute(self._correct, self._incorrect, elapsed)
        logger.info(
            "Round ended (%s): %.1f wpm, %.1f%% accuracy, %d/%d chars, %d/%d words",
            state.value,
            self._result.wpm,
            self._result.accuracy,
            self._result.correct_chars,
            self._result.total_chars,
            sum(1 for word in self._completed if word.is_correct),
            len(self._completed),
        )

    def _emit(self) -> None:
        if self._display is not None:
            self._display.render(self.view())
