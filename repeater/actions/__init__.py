"""Actions that scheduled jobs can perform."""

from repeater.config import JobConfig

from .base import Action, ActionError, ActionOutcome
from .command import CommandAction
from .http import HttpPingAction


def build_action(job: JobConfig) -> Action:
    """Create the action described by ``job``."""

    if job.command:
        return CommandAction(job.command, timeout=job.timeout)
    if job.url:
        return HttpPingAction(job.url, method=job.method, timeout=job.timeout)
    raise ValueError(f"job {job.name!r} has neither a command nor a url")


__all__ = [
    "Action",
    "ActionError",
    "ActionOutcome",
    "CommandAction",
    "HttpPingAction",
    "build_action",
]
