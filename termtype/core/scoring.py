from __future__ import annotations

from dataclasses import dataclass

from termtype.core.errors import InvalidDuration

CHARS_PER_WORD = 5.0


@dataclass(frozen=True)
class Result:
    """Score of a finished session.

    Only letters are counted; the spaces separating words are not.
    """

    elapsed_seconds: float
    correct_chars: int
    incorrect_chars: int
    wpm: float
    accuracy: float

    @property
    def total_chars(self) -> int:
        return self.correct_chars + self.incorrect_chars

    @property
    def gross_wpm(self) -> float:
        """WPM over every scored character, correct or not."""
        return (self.total_chars / CHARS_PER_WORD) / (self.elapsed_seconds / 60.0)


def words_per_minute(chars: int, elapsed_seconds: float) -> float:
    """(chars / 5) per minute; 0.0 before any time has elapsed."""
    if elapsed_seconds <= 0:
        return 0.0
    return (chars / CHARS_PER_WORD) / (elapsed_seconds / 60.0)


def compute(correct_chars: int, incorrect_chars: int, elapsed_seconds: float) -> Result:
    """Compute WPM and accuracy (a percentage) for a finished session."""
    if elapsed_seconds <= 0:
        raise InvalidDuration(f"elapsed time must be positive, got {elapsed_seconds!r}")
    total = correct_chars + incorrect_chars
    accuracy = (correct_chars / total) * 100.0 if total else 100.0
    return Result(
        elapsed_seconds=float(elapsed_seconds),
        correct_chars=correct_chars,
        incorrect_chars=incorrect_chars,
        wpm=words_per_minute(correct_chars, elapsed_seconds),
        accuracy=accuracy,
    )
