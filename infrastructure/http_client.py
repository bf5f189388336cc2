"""Shared async HTTP client with configurable timeout and bounded retry."""

import asyncio
from typing import Any, Awaitable, Callable, Collection

import httpx

from shared.logging import get_logger

log = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({503})


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    One instance per external service keeps timeouts independently configurable.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout)
        self._sleep = sleep

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.get(url, **kwargs)

    async def post_with_retry(
        self,
        url: str,
        *,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        retry_on: Collection[int] = RETRYABLE_STATUS_CODES,
        **kwargs: Any,
    ) -> httpx.Response:
        """POST with up to *max_retries* extra attempts.

        Retries on transport errors and on status codes in *retry_on*, waiting
        ``backoff_seconds * attempt`` before each retry. The last response is
        returned even when its status is retryable; the last transport error
        is re-raised.
        """
        for attempt in range(max_retries + 1):
            if attempt:
                await self._sleep(backoff_seconds * attempt)
            try:
                response = await self._client.post(url, **kwargs)
            except httpx.TransportError as exc:
                log.warning(
                    "http_post_transport_error",
                    attempt=attempt + 1,
                    max_attempts=max_retries + 1,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                if attempt == max_retries:
                    raise
                continue

            if response.status_code in retry_on and attempt < max_retries:
                log.warning(
                    "http_post_retryable_status",
                    attempt=attempt + 1,
                    max_attempts=max_retries + 1,
                    status_code=response.status_code,
                )
                continue
            return response

        raise RuntimeError("unreachable")  # pragma: no cover

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
