"""Repeater: run closures once, at a fixed interval, or on a self-chosen delay."""

from .cli import main as cli_main
from .config_loader import load_config
from .services.scheduler import (
    REPEAT,
    STOP,
    InvalidIntervalError,
    RepeatAfter,
    RepeatSameInterval,
    Result,
    Scheduler,
    Stop,
    SubscriberId,
    after,
    cancel,
    cancel_all,
    every,
    get_scheduler,
    once,
    set_scheduler,
)

__all__ = [
    "cli_main",
    "load_config",
    "InvalidIntervalError",
    "REPEAT",
    "RepeatAfter",
    "RepeatSameInterval",
    "Result",
    "STOP",
    "Scheduler",
    "Stop",
    "SubscriberId",
    "after",
    "cancel",
    "cancel_all",
    "every",
    "get_scheduler",
    "once",
    "set_scheduler",
    "actions",
    "config",
    "services",
    "timers",
]
