"""Configuration schema for Repeater.

This module defines dataclasses that describe how the scheduler, its timer
backend, logging and the configured jobs are set up.  The goal is to keep the
YAML layout and the in-memory structures in one obvious place.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence


@dataclass(slots=True)
class SchedulerConfig:
    """Timing knobs for the scheduler and its timer backend."""

    timer: str = "serial"  # "serial" or "thread"
    stop_on_error: bool = True
    thread_name: str = "repeater-timer"


@dataclass(slots=True)
class LoggingConfig:
    """Where and how verbosely to log."""

    level: str = "INFO"
    file: Optional[Path] = None


@dataclass(slots=True)
class JobConfig:
    """A named action run once or repeatedly by the scheduler."""

    name: str
    mode: str  # "once" or "every"
    interval: timedelta
    command: Optional[Sequence[str]] = None
    url: Optional[str] = None
    method: str = "GET"
    timeout: float = 30.0
    count: Optional[int] = None
    backoff: float = 1.0
    max_interval: Optional[timedelta] = None


@dataclass(slots=True)
class RepeaterConfig:
    """Top-level configuration bundle."""

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    jobs: Sequence[JobConfig] = field(default_factory=tuple)
