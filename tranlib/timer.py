"""A callback scheduled for a point on the monotonic clock."""

from __future__ import annotations

import itertools
import threading
import time
from collections.abc import Callable

TimerCallback = Callable[[], object]

_ids = itertools.count(1)
_ids_lock = threading.Lock()


def _next_id() -> int:
    with _ids_lock:
        return next(_ids)


class Timer:
    """A callback due at ``when`` (monotonic seconds), repeating every ``interval``."""

    def __init__(self, callback: TimerCallback, when: float, interval: float = 0.0) -> None:
        self._callback = callback
        self._when = when
        self._interval = interval
        self._repeat = interval > 0
        self._id = _next_id()

    def run(self) -> None:
        """Invoke the callback."""
        self._callback()

    def restart(self, now: float) -> None:
        """Move the due time one interval past ``now`` for repeating timers."""
        if self._repeat:
            self._when = now + self._interval
        else:
            self._when = time.monotonic()

    @property
    def when(self) -> float:
        """Monotonic time at which the timer is due."""
        return self._when

    @property
    def is_repeat(self) -> bool:
        """True if the timer fires repeatedly."""
        return self._repeat

    @property
    def interval(self) -> float:
        """Seconds between firings of a repeating timer."""
        return self._interval

    @property
    def id(self) -> int:
        """Process-wide unique identifier of the timer."""
        return self._id

    def __lt__(self, other: Timer) -> bool:
        return self._when < other._when

    def __gt__(self, other: Timer) -> bool:
        return self._when > other._when