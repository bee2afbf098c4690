"""The narrow timer interface the scheduler is built on."""
from __future__ import annotations

from typing import Callable, Protocol

TimerCallback = Callable[[], None]


class TimerPrimitive(Protocol):
    """Runs a callback once, after roughly ``delay_seconds``.

    Implementations choose the execution context.  The request is fire and
    forget: nothing is returned and there is no way to retract it, which is
    why the scheduler keeps its own table of live subscriptions.
    """

    def schedule_callback(self, delay_seconds: float, callback: TimerCallback) -> None:
        ...
