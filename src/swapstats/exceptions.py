"""Custom exceptions for swapstats.

Upstream (network/API) failures are fatal for a run: they propagate out of
the aggregation engine untouched so no partial report is ever emitted.
"""

from typing import Any


class SwapStatsError(Exception):
    """Base exception for all swapstats errors."""


class ConfigurationError(SwapStatsError):
    """Raised when settings are missing or inconsistent for the requested run."""


class UpstreamError(SwapStatsError):
    """Raised when a backend request fails.

    Attributes:
        status: HTTP status code, or None for transport-level failures.
        body: Structured upstream error body (parsed JSON when possible,
            raw text otherwise), or None when nothing was returned.
    """

    def __init__(
        self, message: str, status: int | None = None, body: Any = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class EventSourceError(UpstreamError):
    """Raised when a page of swap events cannot be fetched."""


class PriceSourceError(UpstreamError):
    """Raised when the price snapshot cannot be fetched."""
