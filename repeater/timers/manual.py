"""Virtual-clock timer backend driven explicitly by the caller."""
from __future__ import annotations

import heapq
import itertools
import threading
from typing import List, Optional, Tuple

from .base import TimerCallback


class ManualTimer:
    """Timer whose clock only moves when :meth:`advance` is called.

    Callbacks run on the thread calling :meth:`advance`, in deadline order and
    first-in first-out among equal deadlines.  Before each callback the clock
    is set to that callback's deadline, so anything it schedules is measured
    from the moment it fired.  Exceptions raised by callbacks propagate to the
    caller.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._heap: List[Tuple[float, int, TimerCallback]] = []
        self._sequence = itertools.count()
        self._lock = threading.Lock()

    @property
    def now(self) -> float:
        return self._now

    def schedule_callback(self, delay_seconds: float, callback: TimerCallback) -> None:
        with self._lock:
            heapq.heappush(
                self._heap, (self._now + delay_seconds, next(self._sequence), callback)
            )

    def pending(self) -> int:
        with self._lock:
            return len(self._heap)

    def next_deadline(self) -> Optional[float]:
        with self._lock:
            return self._heap[0][0] if self._heap else None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing everything that falls due.

        Returns the number of callbacks that ran.
        """

        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + seconds
        fired = 0
        while True:
            with self._lock:
                if not self._heap or self._heap[0][0] > target:
                    break
                deadline, _, callback = heapq.heappop(self._heap)
                self._now = max(self._now, deadline)
            callback()
            fired += 1
        self._now = target
        return fired

    def run_pending(self) -> int:
        """Fire callbacks that are already due without moving the clock."""

        return self.advance(0.0)


__all__ = ["ManualTimer"]
