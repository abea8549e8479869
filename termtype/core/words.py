from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

from termtype.core.errors import EmptyWordList, WordListUnreadable

logger = logging.getLogger(__name__)

HEADER_END = "---"


def load_word_list(path: Union[str, Path]) -> Tuple[str, ...]:
    """Load one word per line from a UTF-8 file.

    A leading notice block terminated by a ``---`` line is skipped. Files
    without that marker are read whole.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WordListUnreadable(path, "file not found") from None
    except UnicodeDecodeError as e:
        raise WordListUnreadable(path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise WordListUnreadable(path, e.strerror or str(e)) from e

    lines = [line.strip() for line in text.splitlines()]
    if HEADER_END in lines:
        lines = lines[lines.index(HEADER_END) + 1:]
    words = tuple(line for line in lines if line)
    if not words:
        raise EmptyWordList(f"{path}: word list has no entries")
    logger.info("Loaded %d words from %s", len(words), path)
    return words


class WordSource:
    """Draws prompt words uniformly at random, with repetition."""

    def __init__(self, words: Sequence[str], rng: Optional[random.Random] = None) -> None:
        self._words = tuple(words)
        if not self._words:
            raise EmptyWordList("word list has no entries")
        self._rng = rng if rng is not None else random.Random()

    @property
    def words(self) -> Tuple[str, ...]:
        return self._words

    def __len__(self) -> int:
        return len(self._words)

    def next_word(self) -> str:
        return self._rng.choice(self._words)

    def __iter__(self) -> Iterator[str]:
        # endless; each session takes a fresh iterator
        while True:
            yield self.next_word()
