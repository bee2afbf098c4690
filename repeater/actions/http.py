"""HTTP request as a job action, e.g. a heartbeat ping."""
from __future__ import annotations

from typing import Optional

import httpx

from .base import ActionError, ActionOutcome


class HttpPingAction:
    """Issue a request against ``url`` and treat any 2xx response as success.

    The underlying :class:`httpx.Client` is reused across runs and must be
    released with :meth:`close`.
    """

    def __init__(
        self,
        url: str,
        method: str = "GET",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = url
        self._method = method.upper()
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    @property
    def url(self) -> str:
        return self._url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpPingAction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def __call__(self) -> ActionOutcome:
        try:
            response = self._client.request(self._method, self._url)
        except httpx.HTTPError as exc:
            raise ActionError(f"{self._method} {self._url} failed: {exc}") from exc
        detail = f"{self._method} {self._url} -> {response.status_code}"
        return ActionOutcome(ok=response.is_success, detail=detail)


__all__ = ["HttpPingAction"]
