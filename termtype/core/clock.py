from __future__ import annotations

import time
from typing import Callable, Optional

from termtype.core.errors import InvalidDuration


class SessionClock:
    """Countdown over a fixed duration, measured with a monotonic time source.

    The clock cannot be paused. Until :meth:`start` is called no time has
    elapsed and the full duration remains.
    """

    def __init__(self, duration: float, now: Callable[[], float] = time.monotonic) -> None:
        """Create a clock for ``duration`` seconds; ``now`` returns the current time in seconds."""
        if duration <= 0:
            raise InvalidDuration(f"session duration must be positive, got {duration!r}")
        self._duration = float(duration)
        self._now = now
        self._start_time: Optional[float] = None

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def started(self) -> bool:
        return self._start_time is not None

    def start(self) -> None:
        """Start counting down. Calling it again has no effect."""
        if self._start_time is None:
            self._start_time = self._now()

    def elapsed(self) -> float:
        """Seconds since start, 0.0 if not started."""
        if self._start_time is None:
            return 0.0
        return max(0.0, self._now() - self._start_time)

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self._duration - self.elapsed())

    def expired(self) -> bool:
        return self.started and self.remaining() <= 0.0
