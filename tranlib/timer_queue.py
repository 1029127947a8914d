"""A priority queue of timers driven by the monotonic clock."""

from __future__ import annotations

import heapq
import threading
import time

from tranlib.timer import Timer, TimerCallback

_IDLE_TIMEOUT_MS = 10000
_MIN_WAIT_US = 1000


class TimerQueue:
    """Holds pending timers and fires those that are due."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._timers: list[Timer] = []
        self._timer_ids: set[int] = set()
        self.calling_expired_timers = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._timers)

    def add_timer(self, callback: TimerCallback, when: float, interval: float = 0.0) -> int:
        """Schedule ``callback`` at monotonic time ``when``; return the timer id."""
        timer = Timer(callback, when, interval)
        with self._lock:
            self._timer_ids.add(timer.id)
            self._insert(timer)
        return timer.id

    def invalidate_timer(self, timer_id: int) -> None:
        """Cancel the timer with ``timer_id``; unknown ids are ignored."""
        with self._lock:
            self._timer_ids.discard(timer_id)

    def get_timeout(self) -> int:
        """Milliseconds until the earliest timer is due, at least 1."""
        with self._lock:
            if not self._timers:
                return _IDLE_TIMEOUT_MS
            when = self._timers[0].when
        micro = int((when - time.monotonic()) * 1_000_000)
        return max(micro, _MIN_WAIT_US) // 1000

    def process_timers(self) -> None:
        """Run every due timer that is still valid and reschedule repeating ones."""
        now = time.monotonic()
        expired = self._get_expired(now)
        self.calling_expired_timers = True
        try:
            for timer in expired:
                with self._lock:
                    valid = timer.id in self._timer_ids
                if valid:
                    timer.run()
        finally:
            self.calling_expired_timers = False
        self._reset(expired, now)

    def _insert(self, timer: Timer) -> bool:
        earliest_changed = not self._timers or timer < self._timers[0]
        heapq.heappush(self._timers, timer)
        return earliest_changed

    def _get_expired(self, now: float) -> list[Timer]:
        expired = []
        with self._lock:
            while self._timers and self._timers[0].when < now:
                expired.append(heapq.heappop(self._timers))
        return expired

    def _reset(self, expired: list[Timer], now: float) -> None:
        with self._lock:
            for timer in expired:
                if timer.id not in self._timer_ids:
                    continue
                if timer.is_repeat:
                    timer.restart(now)
                    self._insert(timer)
                else:
                    self._timer_ids.discard(timer.id)