import asyncio
import logging
from typing import Any

import httpx

from kansoku.fflogs.auth import FFLogsAuth
from kansoku.fflogs.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://www.fflogs.com/api/v2/client"

MAX_RETRIES = 5
RETRYABLE_STATUS_CODES = frozenset({502, 503, 504})
MAX_BACKOFF_SECONDS = 120


class FFLogsAPIError(Exception):
    """Raised when the FFLogs GraphQL API returns errors."""


class FFLogsClient:
    """Async GraphQL client for the FFLogs v2 API."""

    def __init__(
        self,
        auth: FFLogsAuth,
        rate_limiter: RateLimiter,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self._auth = auth
        self._rate_limiter = rate_limiter
        self._api_url = api_url
        self._timeout = timeout
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FFLogsClient":
        self._http = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc: object) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def authenticate(self) -> None:
        """Fetch a token up front so credential problems fail the run early."""
        if self._http is None:
            raise RuntimeError("Use FFLogsClient as an async context manager")
        await self._auth.get_token(self._http)

    async def query(
        self,
        graphql_query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object.

        Throttled requests (429) park on the rate limiter until the points
        window reopens. A rejected token (401) is refreshed once. Gateway
        errors (502/503/504) and dropped connections back off exponentially.
        Up to ``MAX_RETRIES`` attempts are made in total.
        """
        if self._http is None:
            raise RuntimeError("Use FFLogsClient as an async context manager")

        body: dict[str, Any] = {"query": graphql_query}
        if variables:
            body["variables"] = variables

        reauthenticated = False
        for attempt in range(1, MAX_RETRIES + 1):
            final = attempt == MAX_RETRIES
            await self._rate_limiter.wait_if_needed()
            token = await self._auth.get_token(self._http)

            try:
                response = await self._http.post(
                    self._api_url,
                    json=body,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except (httpx.ConnectError, httpx.ReadTimeout) as exc:
                if final:
                    raise
                await self._back_off(attempt, f"network error: {exc}")
                continue

            status = response.status_code
            if status == 429:
                self._rate_limiter.mark_throttled(_parse_retry_after(response))
                if final:
                    response.raise_for_status()
                continue
            if status == 401 and not reauthenticated:
                logger.warning("FFLogs rejected access token, re-authenticating")
                self._auth.invalidate()
                reauthenticated = True
                continue
            if status in RETRYABLE_STATUS_CODES and not final:
                await self._back_off(attempt, f"HTTP {status}")
                continue

            response.raise_for_status()
            return self._unwrap(response.json())

        raise RuntimeError("Retry loop exhausted unexpectedly")

    async def _back_off(self, attempt: int, reason: str) -> None:
        wait = backoff_seconds(attempt)
        logger.warning(
            "FFLogs request failed (%s), attempt %d/%d, retrying in %ds",
            reason, attempt, MAX_RETRIES, wait,
        )
        await asyncio.sleep(wait)

    def _unwrap(self, result: Any) -> dict[str, Any]:
        if not isinstance(result, dict):
            raise FFLogsAPIError(
                f"Expected dict response, got {type(result).__name__}"
            )

        extensions = result.get("extensions") or {}
        rate_limit_data = (
            extensions.get("rateLimitData")
            or (result.get("data") or {}).get("rateLimitData")
        )
        if rate_limit_data:
            self._rate_limiter.update(rate_limit_data)

        if result.get("errors"):
            raise FFLogsAPIError(
                "; ".join(e.get("message", str(e)) for e in result["errors"])
            )

        data = result.get("data")
        if data is None:
            raise FFLogsAPIError("FFLogs response missing 'data' key")
        return data


def backoff_seconds(attempt: int) -> int:
    """4s, 8s, 16s, ... capped at two minutes."""
    return min(2 ** (attempt + 1), MAX_BACKOFF_SECONDS)


def _parse_retry_after(response: httpx.Response) -> int | None:
    raw = response.headers.get("Retry-After")
    if raw and raw.isdigit():
        return int(raw)
    return None
