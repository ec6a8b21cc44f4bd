"""
Async client for the public university directory.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx

from shared.logging import get_logger
from shared.errors import (
    UpstreamHTTPError,
    UpstreamRequestSetupError,
    UpstreamTimeout,
    UpstreamUnreachable,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_USER_AGENT = "UniversitySearchApp/1.0"
INVALID_BODY_MESSAGE = "Invalid data received from API"


class UniversitiesClient:
    """Issues directory searches and classifies every failure.

    The client never retries. Each call either returns the decoded JSON
    array or raises one of the shared upstream errors.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        metrics: Optional["MetricsCollector"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("directory.universities_client")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def fetch_universities(self, country: str, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Search universities in ``country``, optionally filtered by name."""
        params = {"country": country}
        if name:
            params["name"] = name
        return await self._fetch("fetch_universities", params)

    async def fetch_all_for_country_list(self) -> List[Dict[str, Any]]:
        """Fetch the unfiltered directory, used to derive the country list."""
        return await self._fetch("fetch_all_for_country_list", {})

    async def _fetch(self, operation: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """Execute one GET against the directory with a hard deadline."""
        outcome = "error"
        start_time = time.perf_counter()
        try:
            try:
                # httpx timeouts apply per phase; wait_for bounds the whole call
                response = await asyncio.wait_for(
                    self._client.get(self.base_url, params=params),
                    timeout=self.timeout,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                outcome = "timeout"
                self.logger.error("Directory request timed out", operation=operation, params=params, timeout=self.timeout)
                raise UpstreamTimeout(details={"timeout_seconds": self.timeout}) from exc
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
                outcome = "setup_error"
                self.logger.error("Directory request could not be built", operation=operation, error=str(exc))
                raise UpstreamRequestSetupError(str(exc), details={"url": self.base_url}) from exc
            except httpx.RequestError as exc:
                outcome = "unreachable"
                self.logger.error("Directory unreachable", operation=operation, params=params, error=str(exc))
                raise UpstreamUnreachable(details={"error": str(exc)}) from exc

            if not response.is_success:
                outcome = "http_error"
                self.logger.error(
                    "Directory request failed",
                    operation=operation,
                    params=params,
                    status_code=response.status_code,
                )
                raise UpstreamHTTPError(
                    response.status_code,
                    f"External API error: {response.reason_phrase}",
                    details={"status_code": response.status_code},
                )

            try:
                data = response.json()
            except ValueError:
                data = None
            if not isinstance(data, list):
                outcome = "invalid_body"
                self.logger.error(
                    "Directory returned a non-array body",
                    operation=operation,
                    params=params,
                    status_code=response.status_code,
                )
                raise UpstreamHTTPError(502, INVALID_BODY_MESSAGE, details={"status_code": response.status_code})

            outcome = "success"
            self.logger.debug("Directory records retrieved", operation=operation, params=params, count=len(data))
            return data
        finally:
            if self.metrics:
                self.metrics.increment_counter("upstream_requests_total", operation=operation, outcome=outcome)
                self.metrics.observe_histogram(
                    "upstream_request_duration_seconds",
                    time.perf_counter() - start_time,
                    operation=operation,
                )
