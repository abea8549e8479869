from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from termtype.core.errors import SettingsError

logger = logging.getLogger(__name__)

DEFAULT_WORD_LIST = Path("dict.txt")
BUNDLED_WORD_LIST = Path(__file__).resolve().parent.parent / "data" / "dict.txt"


@dataclass(frozen=True)
class Settings:
    duration: float = 30.0
    word_list: Path = DEFAULT_WORD_LIST
    word_limit: Optional[int] = None
    seed: Optional[int] = None
    tick_ms: int = 250
    preview: int = 10

    def merged(self, **overrides: Any) -> "Settings":
        """Return a copy with every override that is not None applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "word_list" in changes:
            changes["word_list"] = Path(changes["word_list"])
        return replace(self, **changes)

    def resolve_word_list(self) -> Path:
        """Path of the word list to load.

        The default ``dict.txt`` is looked up in the working directory and
        falls back to the bundled list. Any other path is returned as is so
        a missing file is reported by name.
        """
        if self.word_list == DEFAULT_WORD_LIST and not self.word_list.exists():
            logger.info("%s not found in %s, using bundled word list", self.word_list, Path.cwd())
            return BUNDLED_WORD_LIST
        return self.word_list


def load_settings(path: Union[str, Path]) -> Settings:
    """Read a YAML mapping of settings; unknown keys are rejected."""
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SettingsError(f"{path}: cannot read settings ({e.strerror or e})") from e
    except yaml.YAMLError as e:
        raise SettingsError(f"{path}: invalid YAML ({e})") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise SettingsError(f"{path}: expected a mapping of settings")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(str(key) for key in raw if key not in known)
    if unknown:
        raise SettingsError(f"{path}: unknown settings: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in raw.items():
        values[key] = _coerce(path, key, value)
    logger.info("Loaded settings from %s", path)
    return Settings().merged(**values)


def _coerce(path: Path, key: str, value: Any) -> Any:
    if value is None:
        return None
    if key == "word_list":
        if not isinstance(value, str) or not value.strip():
            raise SettingsError(f"{path}: 'word_list' must be a path")
        return Path(value)
    if key == "duration":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SettingsError(f"{path}: 'duration' must be a number of seconds")
        return float(value)
    # remaining keys are integers
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError(f"{path}: '{key}' must be an integer")
    if key != "seed" and value <= 0:
        raise SettingsError(f"{path}: '{key}' must be positive")
    return value
