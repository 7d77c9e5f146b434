"""Deadline-bounded HTTP access to the business data API."""

import asyncio
import time
from typing import Any

import httpx

from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents

logger = get_logger(__name__)


class FetchError(Exception):
    """A live fetch did not produce a usable response."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class FetchTimeoutError(FetchError):
    """A live fetch did not complete within its deadline."""


class TimeoutFetcher:
    """Runs single outbound requests, each under its own hard deadline.

    The deadline covers the whole exchange (connect, send, read body), not a
    single socket operation. Expiry cancels only the request it belongs to;
    sibling fetches running on the same loop are unaffected.
    """

    def __init__(
        self,
        base_url: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _absolute(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def fetch(
        self,
        method: str,
        url: str,
        *,
        timeout_ms: int,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Perform one request bounded by ``timeout_ms``.

        Args:
            method: HTTP method
            url: Absolute URL, or a path relative to the base URL
            timeout_ms: Hard deadline in milliseconds
            headers: Optional request headers
            params: Optional query parameters

        Returns:
            The response, whatever its status code

        Raises:
            FetchTimeoutError: If the deadline expired
            FetchError: On any network failure
        """
        target = self._absolute(url)
        timeout_s = timeout_ms / 1000
        start_time = time.perf_counter()

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout_s),
                transport=self._transport,
            ) as client:
                return await asyncio.wait_for(
                    client.request(method, target, headers=headers, params=params),
                    timeout=timeout_s,
                )

        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            logger.debug(LogEvents.FETCH_TIMEOUT, url=target, timeout_ms=timeout_ms, elapsed_ms=elapsed_ms)
            raise FetchTimeoutError(
                f"Request to {target} exceeded {timeout_ms}ms",
                url=target,
                cause=e,
            ) from e

        except httpx.HTTPError as e:
            logger.debug(LogEvents.FETCH_FAILED, url=target, error=str(e))
            raise FetchError(f"Network error: {e}", url=target, cause=e) from e

    async def fetch_json(
        self,
        method: str,
        url: str,
        *,
        timeout_ms: int,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform a request and decode its JSON body.

        Raises:
            FetchTimeoutError: If the deadline expired
            FetchError: On network failure, non-2xx status or invalid JSON
        """
        response = await self.fetch(method, url, timeout_ms=timeout_ms, headers=headers, params=params)

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code}",
                url=str(response.url),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError("Invalid JSON body", url=str(response.url), cause=e) from e
