"""Command line entry point for running scheduled jobs."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import JobConfig, RepeaterConfig
from .config_loader import load_config, parse_duration
from .log import setup_logging
from .services import JobService, Scheduler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="repeater", description="Run commands on a schedule")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (DEBUG, INFO, WARNING, ...)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the jobs declared in a configuration file")
    run.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the YAML configuration file",
    )
    run.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds even if jobs are still scheduled",
    )

    every = sub.add_parser("every", help="Run a command repeatedly")
    every.add_argument("interval", help="Time between runs, e.g. 30s or 5m")
    every.add_argument(
        "--count",
        type=int,
        default=None,
        help="Stop after this many runs (default: run until interrupted)",
    )
    _add_command_arguments(every)

    once = sub.add_parser("once", help="Run a command once after a delay")
    once.add_argument("delay", help="Delay before the run, e.g. 10s")
    _add_command_arguments(once)

    return parser


def _add_command_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Kill the command if it runs longer than this many seconds",
    )
    parser.add_argument(
        "argv",
        nargs=argparse.REMAINDER,
        help="Command to run, optionally preceded by --; options go before the interval",
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return _command_run(args)
    if args.command in {"every", "once"}:
        config = _adhoc_config(parser, args)
        return _run_jobs(config, args.log_level, duration=None)

    parser.error("unknown command")
    return 1


def _command_run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    return _run_jobs(config, args.log_level, duration=args.duration)


def _adhoc_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> RepeaterConfig:
    command: List[str] = list(args.argv)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("a command to run is required")

    raw_interval = args.interval if args.command == "every" else args.delay
    try:
        interval = parse_duration(raw_interval)
    except ValueError as exc:
        parser.error(str(exc))
    if interval.total_seconds() <= 0:
        parser.error("the interval must be positive")

    count = getattr(args, "count", None)
    if count is not None and count < 1:
        parser.error("--count must be at least 1")

    job = JobConfig(
        name=command[0],
        mode=args.command,
        interval=interval,
        command=tuple(command),
        timeout=args.timeout,
        count=count,
    )
    return RepeaterConfig(jobs=(job,))


def _run_jobs(config: RepeaterConfig, log_level: Optional[str], duration: Optional[float]) -> int:
    setup_logging(config.logging, log_level)
    scheduler = Scheduler(config=config.scheduler)
    service = JobService(config, scheduler)

    try:
        service.bootstrap()
        service.wait(timeout=duration)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        print("Interrupted, stopping jobs...", file=sys.stderr)
    finally:
        service.stop()
        scheduler.shutdown()

    statuses = service.status()
    print(json.dumps([status.to_dict() for status in statuses], indent=2, ensure_ascii=False))
    return 1 if any(status.consecutive_failures for status in statuses) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
