"""Run configured jobs through the scheduler."""
from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from repeater.actions import Action, ActionError, ActionOutcome, build_action
from repeater.config import JobConfig, RepeaterConfig
from repeater.services.scheduler import REPEAT, STOP, RepeatAfter, Result, Scheduler, SubscriberId

logger = logging.getLogger(__name__)

ActionFactory = Callable[[JobConfig], Action]

MAX_BACKOFF_INTERVAL = timedelta(days=1)


@dataclass(slots=True)
class JobStatus:
    """Counters describing how a job has been doing so far."""

    name: str
    runs: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    next_interval: float = 0.0
    finished: bool = False
    last_detail: str = ""

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class _RegisteredJob:
    job: JobConfig
    action: Action
    status: JobStatus
    subscriber_id: Optional[SubscriberId] = field(default=None)


class JobService:
    """Schedule every configured job and track it until it stops.

    Jobs are registered with :meth:`Scheduler.after` so each run decides its
    own continuation: it stops after a ``once`` job or once ``count`` runs
    have happened, backs off after consecutive failures and returns to the
    base interval after a success.
    """

    def __init__(
        self,
        config: RepeaterConfig,
        scheduler: Scheduler,
        action_factory: ActionFactory = build_action,
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._action_factory = action_factory
        self._jobs: Dict[str, _RegisteredJob] = {}
        self._condition = threading.Condition()

    def bootstrap(self) -> List[SubscriberId]:
        """Register every job declared in the configuration."""

        return [self.register(job) for job in self._config.jobs]

    def register(self, job: JobConfig) -> SubscriberId:
        """Schedule a single job and return its subscriber id."""

        if job.name in self._jobs:
            raise ValueError(f"job {job.name!r} is already registered")
        base = job.interval.total_seconds()
        entry = _RegisteredJob(
            job=job,
            action=self._action_factory(job),
            status=JobStatus(name=job.name, next_interval=base),
        )
        try:
            entry.subscriber_id = self._scheduler.after(base, lambda: self._run(entry))
        except Exception:
            _close_action(entry.action)
            raise
        with self._condition:
            self._jobs[job.name] = entry
        logger.info("Registered job %s (%s %.3fs)", job.name, job.mode, base)
        return entry.subscriber_id

    def status(self) -> List[JobStatus]:
        with self._condition:
            return [
                JobStatus(**entry.status.to_dict()) for entry in self._jobs.values()
            ]

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every job has finished; ``False`` if ``timeout`` ran out first."""

        with self._condition:
            return self._condition.wait_for(self._all_finished, timeout=timeout)

    def stop(self) -> List[bool]:
        """Cancel all outstanding jobs and release their actions."""

        with self._condition:
            entries = list(self._jobs.values())
        cancelled = self._scheduler.cancel_all(
            entry.subscriber_id for entry in entries if entry.subscriber_id is not None
        )
        for entry in entries:
            _close_action(entry.action)
        with self._condition:
            for entry in entries:
                entry.status.finished = True
            self._condition.notify_all()
        return cancelled

    # ------------------------------------------------------------------
    def _all_finished(self) -> bool:
        return all(entry.status.finished for entry in self._jobs.values())

    def _run(self, entry: _RegisteredJob) -> Result:
        job = entry.job
        try:
            outcome = entry.action()
        except ActionError as exc:
            outcome = ActionOutcome(ok=False, detail=str(exc))
        except Exception:  # pylint: disable=broad-except
            logger.exception("Job %s crashed, not scheduling it again", job.name)
            self._finish(entry)
            return STOP

        try:
            return self._continuation(entry, outcome)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Job %s could not be rescheduled", job.name)
            self._finish(entry)
            return STOP

    def _continuation(self, entry: _RegisteredJob, outcome: ActionOutcome) -> Result:
        job = entry.job
        with self._condition:
            status = entry.status
            status.runs += 1
            status.last_detail = outcome.detail
            if outcome.ok:
                status.consecutive_failures = 0
            else:
                status.failures += 1
                status.consecutive_failures += 1
            runs = status.runs
            failures = status.consecutive_failures
            previous = status.next_interval

        if outcome.ok:
            logger.info("Job %s run %d succeeded %s", job.name, runs, outcome.detail)
        else:
            logger.warning("Job %s run %d failed: %s", job.name, runs, outcome.detail)

        if job.mode == "once" or (job.count is not None and runs >= job.count):
            self._finish(entry)
            return STOP

        interval = next_interval(job, failures)
        if interval == previous:
            return REPEAT
        with self._condition:
            entry.status.next_interval = interval
        logger.info("Job %s next run in %.3fs", job.name, interval)
        return RepeatAfter(interval)

    def _finish(self, entry: _RegisteredJob) -> None:
        with self._condition:
            entry.status.finished = True
            self._condition.notify_all()
        logger.info("Job %s finished after %d run(s)", entry.job.name, entry.status.runs)


def next_interval(job: JobConfig, consecutive_failures: int) -> float:
    """Interval before the next run given the current failure streak.

    Growth stops at ``job.max_interval``, or at :data:`MAX_BACKOFF_INTERVAL`
    when the job sets no cap of its own.
    """

    base = job.interval.total_seconds()
    if consecutive_failures <= 0 or job.backoff <= 1.0:
        return base
    cap = MAX_BACKOFF_INTERVAL.total_seconds()
    if job.max_interval is not None:
        cap = job.max_interval.total_seconds()
    if base >= cap:
        return base
    interval = base
    for _ in range(consecutive_failures):
        interval *= job.backoff
        if interval >= cap:
            return cap
    return interval


def _close_action(action: Action) -> None:
    close = getattr(action, "close", None)
    if callable(close):
        close()


__all__ = ["ActionFactory", "JobService", "JobStatus", "MAX_BACKOFF_INTERVAL", "next_interval"]
