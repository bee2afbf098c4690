"""Deferred and recurring task scheduling on top of a timer primitive.

A :class:`Scheduler` keeps a table of live subscriptions keyed by
:class:`SubscriberId`.  Every subscription holds a closure returning a
:data:`Result` and the interval until its next firing.  The timer primitive
only ever knows "call ``_fire(id)`` in N seconds"; everything else (whether
the task still exists, whether and when it runs again) is decided here under
a single lock.

Closures are invoked with the lock released, so they may freely schedule new
tasks or cancel any task, their own included.  A cancellation cannot retract
a timer callback that is already in flight; that callback finds no table
entry and does nothing.
"""
from __future__ import annotations

import itertools
import logging
import math
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Iterable, List, Optional, Union

from repeater.config import SchedulerConfig
from repeater.timers import TimerPrimitive, build_timer

logger = logging.getLogger(__name__)

Interval = Union[int, float, timedelta]


class InvalidIntervalError(ValueError):
    """Raised when a delay is not a finite, positive number of seconds."""


@dataclass(frozen=True, slots=True)
class Stop:
    """Do not fire again; the subscription is removed."""


@dataclass(frozen=True, slots=True)
class RepeatSameInterval:
    """Fire again after the interval that was just used."""


@dataclass(frozen=True, slots=True)
class RepeatAfter:
    """Fire again after ``interval`` seconds and keep that as the new interval."""

    interval: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "interval", as_seconds(self.interval))


Result = Union[Stop, RepeatSameInterval, RepeatAfter]

STOP = Stop()
REPEAT = RepeatSameInterval()

Task = Callable[[], None]
ResultTask = Callable[[], Result]


def as_seconds(value: Interval) -> float:
    """Normalise ``value`` to seconds, rejecting anything that is not > 0."""

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidIntervalError(f"Expecting a number of seconds, not {value!r}")
    else:
        seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        raise InvalidIntervalError(f"Expecting interval to be > 0, not {value!r}")
    return seconds


@dataclass(slots=True)
class Subscription:
    """A pending task and the delay before its next firing."""

    closure: ResultTask
    interval: float


class SubscriberId(int):
    """Opaque handle returned by the scheduling calls.

    Behaves like the integer it wraps, and remembers the scheduler that issued
    it so ``sid.cancel()`` can be used instead of ``scheduler.cancel(sid)``.
    """

    _scheduler: Optional["Scheduler"]

    def __new__(cls, value: int, scheduler: Optional["Scheduler"] = None) -> "SubscriberId":
        instance = super().__new__(cls, value)
        instance._scheduler = scheduler
        return instance

    def cancel(self) -> bool:
        """Cancel this subscription; ``False`` if it was no longer pending."""

        scheduler = self._scheduler if self._scheduler is not None else get_scheduler()
        return scheduler.cancel(self)

    def __repr__(self) -> str:
        return f"SubscriberId({int(self)})"


class Scheduler:
    """Own the subscriber table and re-arm the timer after every firing."""

    def __init__(
        self,
        timer: Optional[TimerPrimitive] = None,
        config: Optional[SchedulerConfig] = None,
    ) -> None:
        self._config = config or SchedulerConfig()
        self._timer = timer if timer is not None else build_timer(self._config)
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    @property
    def timer(self) -> TimerPrimitive:
        return self._timer

    # ------------------------------------------------------------------
    def once(self, after: Interval, closure: Task) -> SubscriberId:
        """Run ``closure`` a single time, ``after`` seconds from now."""

        def run_once() -> Result:
            closure()
            return STOP

        return self._dispatch(after, run_once)

    def every(self, seconds: Interval, closure: Task) -> SubscriberId:
        """Run ``closure`` every ``seconds`` until cancelled."""

        def run_repeatedly() -> Result:
            closure()
            return REPEAT

        return self._dispatch(seconds, run_repeatedly)

    def after(self, seconds: Interval, closure: ResultTask) -> SubscriberId:
        """Run ``closure`` after ``seconds``; its return value decides what happens next.

        Returning :data:`STOP` ends the task, :data:`REPEAT` runs it again
        after the current interval and ``RepeatAfter(x)`` runs it again after
        ``x`` seconds.
        """

        return self._dispatch(seconds, closure)

    # ------------------------------------------------------------------
    def cancel(self, subscriber_id: int) -> bool:
        """Stop a pending task.  Returns whether there was anything to stop."""

        with self._lock:
            removed = self._subscribers.pop(int(subscriber_id), None) is not None
        logger.debug("Cancel subscriber %s: %s", int(subscriber_id), removed)
        return removed

    def cancel_all(self, subscriber_ids: Iterable[int]) -> List[bool]:
        """Cancel several tasks in one critical section, preserving input order."""

        ids = [int(subscriber_id) for subscriber_id in subscriber_ids]
        if not ids:
            return []
        with self._lock:
            results = [self._subscribers.pop(sid, None) is not None for sid in ids]
        logger.debug("Cancel subscribers %s: %s", ids, results)
        return results

    def shutdown(self) -> List[bool]:
        """Cancel every pending task and close the timer backend if it can be closed."""

        with self._lock:
            ids = list(self._subscribers)
        results = self.cancel_all(ids)
        close = getattr(self._timer, "close", None)
        if callable(close):
            close()
        return results

    def __enter__(self) -> "Scheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.shutdown()

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def __contains__(self, subscriber_id: object) -> bool:
        if not isinstance(subscriber_id, int):
            return False
        with self._lock:
            return int(subscriber_id) in self._subscribers

    def interval_of(self, subscriber_id: int) -> Optional[float]:
        """Return the stored interval of a pending task, or ``None``."""

        with self._lock:
            subscription = self._subscribers.get(int(subscriber_id))
            return subscription.interval if subscription is not None else None

    # ------------------------------------------------------------------
    def _dispatch(self, interval: Interval, closure: ResultTask) -> SubscriberId:
        seconds = as_seconds(interval)
        with self._lock:
            subscriber_id = SubscriberId(next(self._ids), self)
            self._subscribers[subscriber_id] = Subscription(closure=closure, interval=seconds)
        logger.debug("Scheduled subscriber %s in %.3fs", int(subscriber_id), seconds)
        self._arm(subscriber_id, seconds)
        return subscriber_id

    def _arm(self, subscriber_id: int, seconds: float) -> None:
        # Never called with the lock held: backends may call back inline.
        self._timer.schedule_callback(seconds, lambda: self._fire(subscriber_id))

    def _fire(self, subscriber_id: int) -> None:
        with self._lock:
            subscription = self._subscribers.get(subscriber_id)
        if subscription is None:
            logger.debug("Subscriber %s no longer pending, skipping", subscriber_id)
            return

        try:
            result = subscription.closure()
        except InvalidIntervalError:
            self._discard(subscriber_id, subscription)
            raise
        except Exception:  # pylint: disable=broad-except
            logger.exception("Task for subscriber %s failed", subscriber_id)
            if self._config.stop_on_error:
                self._discard(subscriber_id, subscription)
                return
            result = REPEAT

        with self._lock:
            if self._subscribers.get(subscriber_id) is not subscription:
                # Cancelled while the closure was running.
                return
            if isinstance(result, Stop):
                del self._subscribers[subscriber_id]
                logger.debug("Subscriber %s finished", subscriber_id)
                return
            if isinstance(result, RepeatSameInterval):
                seconds = subscription.interval
            elif isinstance(result, RepeatAfter):
                seconds = subscription.interval = result.interval
            else:
                del self._subscribers[subscriber_id]
                raise TypeError(
                    f"Task for subscriber {subscriber_id} returned {result!r}, "
                    "expected Stop, RepeatSameInterval or RepeatAfter"
                )
        self._arm(subscriber_id, seconds)

    def _discard(self, subscriber_id: int, subscription: Subscription) -> None:
        with self._lock:
            if self._subscribers.get(subscriber_id) is subscription:
                del self._subscribers[subscriber_id]


_default_scheduler: Optional[Scheduler] = None
_default_lock = threading.Lock()


def get_scheduler() -> Scheduler:
    """Return the process-wide scheduler, creating it on first use."""

    global _default_scheduler
    with _default_lock:
        if _default_scheduler is None:
            _default_scheduler = Scheduler(config=SchedulerConfig(timer="serial"))
        return _default_scheduler


def set_scheduler(scheduler: Optional[Scheduler]) -> Optional[Scheduler]:
    """Replace the process-wide scheduler and return the previous one."""

    global _default_scheduler
    with _default_lock:
        previous, _default_scheduler = _default_scheduler, scheduler
    return previous


def once(after: Interval, closure: Task) -> SubscriberId:
    return get_scheduler().once(after, closure)


def every(seconds: Interval, closure: Task) -> SubscriberId:
    return get_scheduler().every(seconds, closure)


def after(seconds: Interval, closure: ResultTask) -> SubscriberId:
    return get_scheduler().after(seconds, closure)


def cancel(subscriber_id: int) -> bool:
    return get_scheduler().cancel(subscriber_id)


def cancel_all(subscriber_ids: Iterable[int]) -> List[bool]:
    return get_scheduler().cancel_all(subscriber_ids)


__all__ = [
    "InvalidIntervalError",
    "REPEAT",
    "RepeatAfter",
    "RepeatSameInterval",
    "Result",
    "STOP",
    "Scheduler",
    "Stop",
    "SubscriberId",
    "Subscription",
    "after",
    "as_seconds",
    "cancel",
    "cancel_all",
    "every",
    "get_scheduler",
    "once",
    "set_scheduler",
]
