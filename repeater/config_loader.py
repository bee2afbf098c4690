"""Utilities to load :mod:`repeater.config` structures from YAML files."""
from __future__ import annotations

import datetime as _dt
import math
import shlex
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import yaml

from .config import JobConfig, LoggingConfig, RepeaterConfig, SchedulerConfig

_DURATION_UNITS = {
    "s": _dt.timedelta(seconds=1),
    "m": _dt.timedelta(minutes=1),
    "h": _dt.timedelta(hours=1),
    "d": _dt.timedelta(days=1),
}

_TIMERS = ("serial", "thread")


def load_config(path: Path) -> RepeaterConfig:
    """Load a configuration file into :class:`RepeaterConfig`.

    The loader accepts human friendly values such as ``"30s"`` or ``"5m"`` for
    durations and converts them into :class:`datetime.timedelta` objects.
    Sections omitted in the YAML file fall back to the defaults declared in
    :mod:`repeater.config`.
    """

    return parse_config(_load_yaml(path))


def parse_config(raw: Mapping[str, Any]) -> RepeaterConfig:
    """Build a :class:`RepeaterConfig` from an already decoded mapping."""

    scheduler_section = raw.get("scheduler") or {}
    timer = str(scheduler_section.get("timer", "serial")).lower()
    if timer not in _TIMERS:
        raise ValueError(f"scheduler.timer must be one of {_TIMERS}, not {timer!r}")
    scheduler = SchedulerConfig(
        timer=timer,
        stop_on_error=bool(scheduler_section.get("stop_on_error", True)),
        thread_name=str(scheduler_section.get("thread_name", "repeater-timer")),
    )

    logging_section = raw.get("logging") or {}
    logging_cfg = LoggingConfig(
        level=str(logging_section.get("level", "INFO")).upper(),
        file=Path(logging_section["file"]) if logging_section.get("file") else None,
    )

    jobs = tuple(
        parse_job(entry, index) for index, entry in enumerate(raw.get("jobs") or [])
    )
    names = [job.name for job in jobs]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"duplicate job names: {', '.join(duplicates)}")

    return RepeaterConfig(scheduler=scheduler, logging=logging_cfg, jobs=jobs)


def parse_job(entry: Mapping[str, Any], index: int = 0) -> JobConfig:
    """Convert one ``jobs:`` entry into a :class:`JobConfig`."""

    if not isinstance(entry, Mapping):
        raise ValueError(f"jobs[{index}] must be a mapping")
    name = str(entry.get("name") or f"job-{index}")

    modes = [mode for mode in ("every", "once") if mode in entry]
    if len(modes) != 1:
        raise ValueError(f"job {name!r} must declare exactly one of 'every' or 'once'")
    mode = modes[0]
    interval = parse_duration(entry[mode])
    if interval.total_seconds() <= 0:
        raise ValueError(f"job {name!r}: {mode} must be positive")

    command = _parse_command(entry.get("command"), name)
    url = str(entry["url"]) if entry.get("url") else None
    if (command is None) == (url is None):
        raise ValueError(f"job {name!r} must declare exactly one of 'command' or 'url'")

    count = entry.get("count")
    if count is not None:
        count = int(count)
        if count < 1:
            raise ValueError(f"job {name!r}: count must be at least 1")

    backoff = float(entry.get("backoff", 1.0))
    if backoff < 1.0:
        raise ValueError(f"job {name!r}: backoff must be >= 1.0")

    max_interval = entry.get("max_interval")
    return JobConfig(
        name=name,
        mode=mode,
        interval=interval,
        command=command,
        url=url,
        method=str(entry.get("method", "GET")).upper(),
        timeout=float(entry.get("timeout", 30.0)),
        count=count,
        backoff=backoff,
        max_interval=parse_duration(max_interval) if max_interval is not None else None,
    )


def _parse_command(value: Any, name: str) -> Optional[Sequence[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        argv = shlex.split(value)
    elif isinstance(value, (list, tuple)):
        argv = [str(part) for part in value]
    else:
        raise ValueError(f"job {name!r}: command must be a string or a list")
    if not argv:
        raise ValueError(f"job {name!r}: command is empty")
    return tuple(argv)


def _load_yaml(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("configuration root must be a mapping")
    return data


def parse_duration(value: Any) -> _dt.timedelta:
    """Convert ``30``, ``"30"``, ``"30s"`` or ``"1.5m"`` into a timedelta."""

    if isinstance(value, _dt.timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"unsupported duration value: {value!r}")
    if isinstance(value, (int, float)):
        return _seconds_to_timedelta(float(value), value)
    if not isinstance(value, str):
        raise ValueError(f"unsupported duration value: {value!r}")
    value = value.strip()
    if not value:
        raise ValueError("empty duration")
    if value.isdigit():
        return _seconds_to_timedelta(float(value), value)
    unit = value[-1].lower()
    if unit not in _DURATION_UNITS:
        raise ValueError(f"unknown duration unit: {value}")
    try:
        amount = float(value[:-1])
    except ValueError as exc:
        raise ValueError(f"invalid duration: {value}") from exc
    base = _DURATION_UNITS[unit]
    return _seconds_to_timedelta(base.total_seconds() * amount, value)


def _seconds_to_timedelta(seconds: float, value: Any) -> _dt.timedelta:
    if not math.isfinite(seconds):
        raise ValueError(f"invalid duration: {value}")
    try:
        return _dt.timedelta(seconds=seconds)
    except OverflowError as exc:
        raise ValueError(f"invalid duration: {value}") from exc


__all__ = ["load_config", "parse_config", "parse_duration", "parse_job"]
