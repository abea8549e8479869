"""Exceptions raised by the typing test core and its loaders."""

from __future__ import annotations

from pathlib import Path
from typing import Union


class TermTypeError(Exception):
    """Base class for fatal, user-visible errors."""


class EmptyWordList(TermTypeError, ValueError):
    """The word source has no entries to draw prompts from."""


class InvalidDuration(TermTypeError, ValueError):
    """A session length or elapsed time that is not strictly positive."""


class SettingsError(TermTypeError, ValueError):
    """A settings file that is not a valid settings mapping."""


class WordListUnreadable(TermTypeError, OSError):
    """The word list file could not be opened or decoded."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"cannot read word list {self.path}: {reason}")

    def __str__(self) -> str:
        return f"cannot read word list {self.path}: {self.reason}"
