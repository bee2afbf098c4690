"""Shared types for job actions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class ActionError(RuntimeError):
    """Raised when an action could not be carried out at all."""


@dataclass(slots=True)
class ActionOutcome:
    """Result of a single action run."""

    ok: bool
    detail: str = ""


class Action(Protocol):
    """Something a job does each time it fires."""

    def __call__(self) -> ActionOutcome:
        ...
