"""Run an external command as a job action."""
from __future__ import annotations

import subprocess
from typing import Sequence

from .base import ActionError, ActionOutcome

_OUTPUT_LIMIT = 200


class CommandAction:
    """Execute ``argv`` and report whether it exited with status 0."""

    def __init__(self, argv: Sequence[str], timeout: float = 30.0) -> None:
        if not argv:
            raise ValueError("argv must not be empty")
        self._argv = tuple(argv)
        self._timeout = timeout

    @property
    def argv(self) -> Sequence[str]:
        return self._argv

    def __call__(self) -> ActionOutcome:
        try:
            completed = subprocess.run(
                self._argv,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ActionError(f"{self._argv[0]} timed out after {self._timeout}s") from exc
        except OSError as exc:
            raise ActionError(f"cannot run {self._argv[0]}: {exc}") from exc

        if completed.returncode == 0:
            return ActionOutcome(ok=True, detail=_tail(completed.stdout))
        detail = _tail(completed.stderr) or _tail(completed.stdout)
        return ActionOutcome(ok=False, detail=f"exit status {completed.returncode}: {detail}")


def _tail(text: str) -> str:
    text = (text or "").strip()
    if len(text) > _OUTPUT_LIMIT:
        return "..." + text[-_OUTPUT_LIMIT:]
    return text


__all__ = ["CommandAction"]
