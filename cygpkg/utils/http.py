"""
HTTP client utilities for cygpkg.

This module provides an asynchronous HTTP client with retry logic,
concurrency control, and streaming downloads used to talk to Cygwin
mirrors.
"""

from __future__ import annotations

import httpx
import random
import asyncio
from pathlib import Path
from typing import Any, Optional

from cygpkg.utils.logger import get_logger
from cygpkg.__version__ import __version__
from cygpkg.exceptions import NetworkError
from cygpkg.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_CONCURRENCY,
    DOWNLOAD_CHUNK_SIZE,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


class HTTPClient:
    """Asynchronous HTTP client with retries and concurrency control.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Maximum number of retry attempts.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of concurrent requests.

    Example:
        >>> async with HTTPClient() as client:
        ...     text = await client.get_text("https://cygwin.com/mirrors.lst")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_429_retries: int = 5

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        """Initialize the underlying httpx client if needed."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _backoff(self, attempt: int) -> None:
        if attempt < self.max_retries:
            delay = (2**attempt) + random.uniform(0.0, 0.3)
            logger.debug("Retrying in %.2fs", delay)
            await asyncio.sleep(delay)

    @staticmethod
    def _status_error(response: httpx.Response, url: str) -> NetworkError:
        body: Optional[str]
        try:
            body = response.text
        except httpx.ResponseNotRead:
            body = None
        return NetworkError(
            f"HTTP {response.status_code} error for {url}",
            url=url,
            status_code=response.status_code,
            response_body=body,
        )

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute an HTTP request with retry and backoff logic.

        Client errors (4xx other than 429) are raised immediately as
        :exc:`NetworkError` carrying the status code; timeouts, transport
        errors and 5xx responses are retried.
        """
        await self._ensure_client()
        assert self._client is not None

        clean_url = url.strip().strip("\"'")
        last_exc: Optional[Exception] = None
        retry_429_count = 0

        for attempt in range(self.max_retries + 1):
            try:
                async with self._semaphore:
                    response = await self._client.request(method, clean_url, **kwargs)

                if response.status_code == 429:
                    retry_429_count += 1
                    if retry_429_count > self._max_429_retries:
                        raise NetworkError(
                            f"Rate limit exceeded after {self._max_429_retries} retries",
                            url=clean_url,
                            status_code=429,
                        )
                    retry_after = int(response.headers.get("Retry-After", "1"))
                    logger.warning(
                        "Rate limited (429), retrying after %ds (%d/%d)",
                        retry_after,
                        retry_429_count,
                        self._max_429_retries,
                    )
                    await asyncio.sleep(retry_after)
                    continue

                if 400 <= response.status_code < 500:
                    raise self._status_error(response, clean_url)

                if response.status_code >= 500:
                    last_exc = self._status_error(response, clean_url)
                    logger.warning(
                        "HTTP %d error (%d/%d): %s",
                        response.status_code,
                        attempt + 1,
                        self.max_retries + 1,
                        clean_url,
                    )
                    await self._backoff(attempt)
                    continue

                return response

            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning(
                    "Request timeout (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    clean_url,
                )

            except httpx.NetworkError as exc:
                last_exc = exc
                logger.warning(
                    "Network error (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )

            await self._backoff(attempt)

        raise NetworkError(
            f"Request failed after {self.max_retries + 1} attempts: {clean_url}",
            url=clean_url,
        ) from last_exc

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retry logic."""
        return await self._request_with_retry("GET", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a HEAD request with retry logic."""
        return await self._request_with_retry("HEAD", url, **kwargs)

    async def get_text(self, url: str, **kwargs: Any) -> str:
        """Fetch a URL and return the decoded body."""
        response = await self.get(url, **kwargs)
        return response.text

    async def download(self, url: str, target: Path) -> httpx.Headers:
        """Stream ``url`` into ``target``, overwriting it.

        Transport errors and 5xx responses are retried from the start.

        Returns:
            The response headers of the successful attempt.
        """
        await self._ensure_client()
        assert self._client is not None

        last_exc: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                async with self._semaphore:
                    async with self._client.stream("GET", url) as response:
                        if 400 <= response.status_code < 500:
                            raise self._status_error(response, url)
                        if response.status_code >= 500:
                            last_exc = self._status_error(response, url)
                            logger.warning(
                                "HTTP %d error (%d/%d): %s",
                                response.status_code,
                                attempt + 1,
                                self.max_retries + 1,
                                url,
                            )
                        else:
                            with open(target, "wb") as handle:
                                async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                                    handle.write(chunk)
                            return response.headers

            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning(
                    "Download timeout (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    url,
                )

            except httpx.NetworkError as exc:
                last_exc = exc
                logger.warning(
                    "Network error (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )

            await self._backoff(attempt)

        raise NetworkError(
            f"Download failed after {self.max_retries + 1} attempts: {url}",
            url=url,
        ) from last_exc
