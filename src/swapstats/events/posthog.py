"""PostHog swap event source via the HogQL query API.

Pages through swap events oldest -> newest with LIMIT/OFFSET. Each row of
the query result maps positionally onto a SwapEvent.

CRITICAL implementation notes:
- ORDER BY timestamp ASC is mandatory: window bucketing relies on ordered input
- uuid breaks timestamp ties so OFFSET paging is stable across queries
- HogQL caps unbounded queries at 100 rows, so LIMIT is always explicit
- Event names are interpolated into the query, so they are validated first
"""

import re
from typing import Any

from swapstats.config import HttpSettings, PostHogSettings
from swapstats.events.source import EventSource
from swapstats.exceptions import ConfigurationError, EventSourceError
from swapstats.http import JsonHttpClient
from swapstats.logging import get_logger
from swapstats.models import SwapEvent, parse_instant

logger = get_logger(__name__)

_SAFE_EVENT_NAME = re.compile(r"^[A-Za-z0-9_$:.\- ]+$")

_COLUMNS = (
    "timestamp",
    "properties.amount_in",
    "properties.token_in_id",
    "properties.amount_out",
    "properties.token_out_id",
)


def build_swap_query(
    event_name: str, offset: int, limit: int, since: str | None = None
) -> str:
    """Build the HogQL query for one page of swap events.

    Raises:
        ConfigurationError: If the event name or ``since`` value is unsafe/invalid.
        ValueError: If offset is negative or limit is not positive.
    """
    if offset < 0 or limit <= 0:
        raise ValueError(f"Invalid page request offset={offset} limit={limit}")
    if not _SAFE_EVENT_NAME.match(event_name):
        raise ConfigurationError(f"Unsupported PostHog event name: {event_name!r}")

    conditions = [f"event = '{event_name}'"]
    if since:
        since_instant = parse_instant(since)
        if since_instant is None:
            raise ConfigurationError(f"Invalid POSTHOG_SINCE value: {since!r}")
        conditions.append(
            f"timestamp >= toDateTime('{since_instant:%Y-%m-%d %H:%M:%S}')"
        )

    return (
        f"SELECT {', '.join(_COLUMNS)} FROM events "
        f"WHERE {' AND '.join(conditions)} "
        f"ORDER BY timestamp ASC, uuid ASC "
        f"LIMIT {limit} OFFSET {offset}"
    )


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def row_to_event(row: list[Any]) -> SwapEvent:
    """Map one positional HogQL result row onto a SwapEvent."""
    padded = list(row) + [None] * (len(_COLUMNS) - len(row))
    timestamp, amount_in, token_in, amount_out, token_out = padded[: len(_COLUMNS)]
    return SwapEvent(
        timestamp=timestamp,
        amount_in=_opt_str(amount_in),
        token_in_id=_opt_str(token_in),
        amount_out=_opt_str(amount_out),
        token_out_id=_opt_str(token_out),
    )


class PostHogEventSource(EventSource):
    """Concrete event source backed by the PostHog HogQL query endpoint."""

    def __init__(
        self,
        settings: PostHogSettings,
        http_settings: HttpSettings,
        client: JsonHttpClient | None = None,
    ) -> None:
        api_key = settings.api_key.get_secret_value()
        if not api_key or not settings.project_id:
            raise ConfigurationError(
                "POSTHOG_API_KEY and POSTHOG_PROJECT_ID must both be set"
            )

        self._settings = settings
        self._url = (
            f"{settings.host.rstrip('/')}/api/projects/{settings.project_id}/query/"
        )
        self._client = client or JsonHttpClient(
            http_settings,
            error_cls=EventSourceError,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def fetch_page(self, offset: int, limit: int) -> list[SwapEvent]:
        """Fetch one page of swap events, oldest first."""
        query = build_swap_query(
            self._settings.event_name, offset, limit, self._settings.since
        )
        body = await self._client.post_json(
            self._url, {"query": {"kind": "HogQLQuery", "query": query}}
        )

        rows = body.get("results") if isinstance(body, dict) else None
        if not isinstance(rows, list):
            raise EventSourceError(
                "PostHog query response has no results list", body=body
            )

        logger.debug("posthog_page_fetched", offset=offset, limit=limit, rows=len(rows))
        return [row_to_event(row) for row in rows]

    async def close(self) -> None:
        """Clean up the HTTP session. Must be called to avoid resource leaks."""
        await self._client.close()
