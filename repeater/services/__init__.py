"""Service orchestration helpers."""

from .jobs import JobService, JobStatus
from .scheduler import (
    REPEAT,
    STOP,
    InvalidIntervalError,
    RepeatAfter,
    RepeatSameInterval,
    Result,
    Scheduler,
    Stop,
    SubscriberId,
    get_scheduler,
    set_scheduler,
)

__all__ = [
    "InvalidIntervalError",
    "JobService",
    "JobStatus",
    "REPEAT",
    "RepeatAfter",
    "RepeatSameInterval",
    "Result",
    "STOP",
    "Scheduler",
    "Stop",
    "SubscriberId",
    "get_scheduler",
    "set_scheduler",
]
