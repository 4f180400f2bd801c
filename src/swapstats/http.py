"""Async JSON HTTP transport shared by the PostHog and CoinGecko clients.

Wraps an aiohttp session with a total-request timeout, exponential backoff
retry for transient failures (connection errors, 429, 5xx), and conversion
of every failure into an UpstreamError carrying the upstream status and body.

Retries live here, in the transport. The aggregation engine never retries:
a request that still fails after the last attempt aborts the run.
"""

import asyncio
import json
from typing import Any

import aiohttp

from swapstats.config import HttpSettings
from swapstats.exceptions import UpstreamError
from swapstats.logging import get_logger

logger = get_logger(__name__)

_RETRYABLE_STATUS = frozenset({408, 425, 429})


def _decode_body(text: str) -> Any:
    """Parse a response body as JSON, falling back to the raw text (None if empty)."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _is_retryable(error: UpstreamError) -> bool:
    if error.status is None:
        return True
    return error.status in _RETRYABLE_STATUS or error.status >= 500


class JsonHttpClient:
    """Minimal JSON-over-HTTP client with retry.

    Args:
        settings: Timeout and retry configuration.
        error_cls: UpstreamError subclass raised on failure, so callers can
            tell event source failures from price failures.
        headers: Headers sent with every request (auth, accept).
        session: Pre-built aiohttp session. When given, the caller owns it
            and close() leaves it open.
    """

    def __init__(
        self,
        settings: HttpSettings,
        error_cls: type[UpstreamError] = UpstreamError,
        headers: dict[str, str] | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._error_cls = error_cls
        self._headers = {"Accept": "application/json", **(headers or {})}
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "JsonHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._settings.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def get_json(
        self, url: str, params: dict[str, Any] | None = None
    ) -> Any:
        return await self.request_json("GET", url, params=params)

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        return await self.request_json("POST", url, payload=payload)

    async def request_json(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """Execute a request with exponential backoff retry and return decoded JSON.

        Retries up to max_retries attempts with delays base, 2*base, 4*base, ...
        Rate limit responses (429) get a longer delay multiplier.
        Re-raises the last UpstreamError on final failure.
        """
        max_retries = self._settings.max_retries
        base_delay = self._settings.retry_base_delay

        for attempt in range(max_retries):
            try:
                return await self._request_once(method, url, params, payload)
            except UpstreamError as e:
                if not _is_retryable(e) or attempt == max_retries - 1:
                    logger.error(
                        "http_request_failed",
                        method=method,
                        url=url,
                        status=e.status,
                        attempts=attempt + 1,
                    )
                    raise

                delay = base_delay * (2**attempt)
                if e.status == 429:
                    delay *= 3

                logger.warning(
                    "http_retry",
                    method=method,
                    url=url,
                    status=e.status,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)

        raise self._error_cls(f"{method} {url} failed")  # Unreachable: max_retries >= 1

    async def _request_once(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        payload: dict[str, Any] | None,
    ) -> Any:
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise self._error_cls(f"{method} {url} failed: {e!r}") from e

        body = _decode_body(text)
        if status >= 400:
            raise self._error_cls(
                f"{method} {url} returned HTTP {status}", status=status, body=body
            )
        if body is None or isinstance(body, str):
            raise self._error_cls(
                f"{method} {url} returned a non-JSON body", status=status, body=body
            )
        return body
