"""Timer backends the scheduler can run on."""
from __future__ import annotations

from repeater.config import SchedulerConfig

from .base import TimerCallback, TimerPrimitive
from .manual import ManualTimer
from .serial import SerialTimer
from .threaded import ThreadTimer


def build_timer(config: SchedulerConfig) -> TimerPrimitive:
    """Instantiate the backend named by ``config.timer``."""

    if config.timer == "serial":
        return SerialTimer(thread_name=config.thread_name)
    if config.timer == "thread":
        return ThreadTimer(thread_name=config.thread_name)
    raise ValueError(f"unknown timer backend: {config.timer!r}")


__all__ = [
    "ManualTimer",
    "SerialTimer",
    "ThreadTimer",
    "TimerCallback",
    "TimerPrimitive",
    "build_timer",
]
