"""Timer backend that gives every request its own ``threading.Timer``."""
from __future__ import annotations

import logging
import threading
from typing import Set

from .base import TimerCallback

logger = logging.getLogger(__name__)


class ThreadTimer:
    """Fire each callback on a dedicated daemon timer thread.

    Callbacks for different requests may run concurrently.  Pending timers are
    tracked only so :meth:`close` can cancel the ones that have not fired yet.
    """

    def __init__(self, thread_name: str = "repeater-timer") -> None:
        self._thread_name = thread_name
        self._lock = threading.Lock()
        self._pending: Set[threading.Timer] = set()
        self._closed = False

    def schedule_callback(self, delay_seconds: float, callback: TimerCallback) -> None:
        timer: threading.Timer

        def run() -> None:
            with self._lock:
                self._pending.discard(timer)
            callback()

        timer = threading.Timer(delay_seconds, run)
        timer.daemon = True
        timer.name = self._thread_name
        with self._lock:
            if self._closed:
                logger.debug("Timer closed, dropping callback due in %.3fs", delay_seconds)
                return
            self._pending.add(timer)
        timer.start()

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            pending = list(self._pending)
            self._pending.clear()
        for timer in pending:
            timer.cancel()


__all__ = ["ThreadTimer"]
