"""
JSON API client shared by both dashboards.

Issues GET requests against a fixed base URL and normalises every failure
into :class:`ApiError` (non-success status) or :class:`TransportError`
(network failure or a body that is not JSON).  A single best-effort
attempt per call: no retries, no cancellation.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any

import requests

logger = logging.getLogger(__name__)

_UNKNOWN_ERROR = "Unknown API error"
_TRANSPORT_MESSAGE = "parse or network failure"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ApiError(Exception):
    """Raised when the backend answers with a non-success HTTP status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(status, message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"API request failed with status {self.status}: {self.message}"


class TransportError(ApiError):
    """Raised when the request never completes or the body is not JSON."""

    def __init__(self, message: str = _TRANSPORT_MESSAGE) -> None:
        super().__init__(0, message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ApiClient:
    """GET-only JSON client bound to one backend base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def fetch_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Fetch *path* and return the decoded JSON body.

        Raises:
            ApiError: the server replied with a non-2xx status.
            TransportError: the request failed or the body was not JSON.
        """
        url = self.url_for(path)
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Error fetching from %s: %s", path, exc)
            raise TransportError() from exc

        if not resp.ok:
            error = ApiError(resp.status_code, _server_message(resp))
            logger.error("Error fetching from %s: %s", path, error)
            raise error

        try:
            return resp.json()
        except ValueError as exc:
            logger.error("Error fetching from %s: body is not JSON", path)
            raise TransportError() from exc

    def close(self) -> None:
        self._session.close()


def _server_message(resp: requests.Response) -> str:
    """Extract ``{"error": ...}`` from an error body, if there is one."""
    try:
        body = resp.json()
    except ValueError:
        return _UNKNOWN_ERROR
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return _UNKNOWN_ERROR


# ---------------------------------------------------------------------------
# Parallel group fetch
# ---------------------------------------------------------------------------

def fetch_parallel(
    client: ApiClient,
    requests_: list[str | tuple[str, dict[str, Any] | None]],
) -> list[Any]:
    """Fetch independent endpoints concurrently and return results in order.

    Each entry is a path or a ``(path, params)`` pair.  On success the call
    returns once every request has resolved.  The first failure aborts the
    group at once: requests that have not started are cancelled, running ones
    are abandoned and the error is re-raised, so callers never see a partial
    result set.
    """
    if not requests_:
        return []

    calls = [(r, None) if isinstance(r, str) else r for r in requests_]
    pool = ThreadPoolExecutor(max_workers=len(calls))
    futures = [pool.submit(client.fetch_json, path, params) for path, params in calls]
    done, _ = wait(futures, return_when=FIRST_EXCEPTION)
    for fut in futures:
        if fut in done and fut.exception() is not None:
            # Requests still in flight finish in the background; nobody waits for them.
            pool.shutdown(wait=False, cancel_futures=True)
            raise fut.exception()  # type: ignore[misc]
    pool.shutdown(wait=True)
    return [fut.result() for fut in futures]
