"""
HTTP client with per-attempt timeout, exponential backoff and fast failure
for errors that retrying cannot fix
"""
import asyncio
import httpx
import logging
from typing import Any, Dict, Optional
from smartcity.config import settings
from smartcity.errors import (
    BlockedError,
    ClientError,
    RequestTimeoutError,
    ServerError,
    SourceError,
    UnknownError,
)

logger = logging.getLogger(__name__)


class RetryClient:
    """Thin wrapper around httpx.AsyncClient used by every provider adapter"""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        backoff_base_seconds: Optional[float] = None,
    ):
        # Tests inject httpx.MockTransport here
        self.transport = transport
        self.backoff_base_seconds = (
            settings.http_backoff_base_seconds if backoff_base_seconds is None else backoff_base_seconds
        )

    async def request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        max_attempts: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        method: str = "GET",
    ) -> httpx.Response:
        """
        Perform a request, retrying timeouts, unresolved redirects and 5xx responses

        Args:
            url: Target URL
            params: Query parameters
            headers: Extra request headers
            max_attempts: Total attempts including the first one
            timeout_ms: Budget for each individual attempt

        Returns:
            The first successful response

        Raises:
            ClientError: 4xx response (never retried), or a 3xx once attempts are exhausted
            BlockedError: transport-level failure, never retried
            RequestTimeoutError / ServerError: when attempts are exhausted
        """
        attempts = max(1, max_attempts or settings.http_retry_attempts)
        timeout_ms = timeout_ms or settings.http_timeout_ms
        last_error: Optional[SourceError] = None

        for attempt in range(1, attempts + 1):
            logger.debug(f"{method} {url} (attempt {attempt}/{attempts})")
            try:
                response = await self._send(method, url, params, headers, timeout_ms)
            except SourceError as e:
                if not e.retryable:
                    raise
                last_error = e
            else:
                if response.is_success:
                    return response

                status = response.status_code
                if 400 <= status < 500:
                    raise ClientError(f"Client error: {status} {response.reason_phrase}", status, url)
                if 300 <= status < 400:
                    # redirects are followed, so this one had no usable Location
                    last_error = ClientError(f"Redirect error: {status} {response.reason_phrase}", status, url)
                else:
                    last_error = ServerError(f"Server error: {status} {response.reason_phrase}", status, url)

            if attempt < attempts:
                delay = self.backoff_base_seconds ** attempt
                logger.warning(f"Request to {url} failed ({last_error}), retrying in {delay:g}s")
                await asyncio.sleep(delay)

        logger.warning(f"Request to {url} failed after {attempts} attempts: {last_error}")
        raise last_error

    async def request_json(self, url: str, **kwargs) -> Any:
        """Perform a request and decode the JSON body"""
        response = await self.request(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise UnknownError(f"Invalid JSON from {url}: {e}", url) from e

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]],
        headers: Optional[Dict[str, str]],
        timeout_ms: int,
    ) -> httpx.Response:
        """Single attempt, translating httpx failures into SourceError kinds"""
        async with httpx.AsyncClient(
            timeout=timeout_ms / 1000.0,
            transport=self.transport,
            follow_redirects=True,
        ) as client:
            try:
                return await client.request(
                    method,
                    url,
                    params=params,
                    headers={"Accept": "application/json", **(headers or {})},
                )
            except httpx.TimeoutException as e:
                raise RequestTimeoutError(f"Request timeout after {timeout_ms}ms", url) from e
            except httpx.TransportError as e:
                raise BlockedError(
                    f"Request to {url} was blocked before a response arrived: {e}", url
                ) from e
            except httpx.HTTPError as e:
                raise UnknownError(f"Request to {url} failed: {e}", url) from e
