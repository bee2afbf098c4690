"""Single-thread timer backend draining a deadline min-heap."""
from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .base import TimerCallback

logger = logging.getLogger(__name__)


@dataclass(order=True)
class _Entry:
    deadline: float
    sequence: int
    callback: TimerCallback = field(compare=False)


class SerialTimer:
    """Run every callback, in deadline order, on one background thread.

    This is the analogue of a serial dispatch queue: callbacks never overlap,
    so a slow callback delays the ones behind it.  The worker thread starts on
    the first request.
    """

    def __init__(self, thread_name: str = "repeater-timer") -> None:
        self._thread_name = thread_name
        self._heap: List[_Entry] = []
        self._sequence = itertools.count()
        self._condition = threading.Condition()
        self._shutdown = False
        self._thread: Optional[threading.Thread] = None

    def schedule_callback(self, delay_seconds: float, callback: TimerCallback) -> None:
        entry = _Entry(
            deadline=time.monotonic() + delay_seconds,
            sequence=next(self._sequence),
            callback=callback,
        )
        with self._condition:
            if self._shutdown:
                logger.debug("Timer closed, dropping callback due in %.3fs", delay_seconds)
                return
            heapq.heappush(self._heap, entry)
            self._ensure_worker()
            self._condition.notify()

    def _ensure_worker(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._thread_name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._heap and not self._shutdown:
                    self._condition.wait()
                if self._shutdown:
                    return
                wait_time = self._heap[0].deadline - time.monotonic()
                if wait_time > 0:
                    self._condition.wait(timeout=wait_time)
                    continue
                entry = heapq.heappop(self._heap)

            try:
                entry.callback()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Timer callback failed")

    def close(self, timeout: float = 5.0) -> None:
        with self._condition:
            self._shutdown = True
            self._heap.clear()
            self._condition.notify()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)


__all__ = ["SerialTimer"]
