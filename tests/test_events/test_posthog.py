"""Tests for the PostHog HogQL event source.

All tests use a fake aiohttp session to avoid real API calls.
"""

import pytest

from swapstats.config import HttpSettings, PostHogSettings
from swapstats.events.posthog import PostHogEventSource, build_swap_query, row_to_event
from swapstats.exceptions import ConfigurationError, EventSourceError
from swapstats.http import JsonHttpClient
from swapstats.models import SwapEvent

from fakes import FakeResponse, FakeSession


def _source(
    settings: PostHogSettings, http_settings: HttpSettings, session: FakeSession
) -> PostHogEventSource:
    client = JsonHttpClient(http_settings, error_cls=EventSourceError, session=session)  # type: ignore[arg-type]
    return PostHogEventSource(settings, http_settings, client=client)


class TestBuildSwapQuery:
    """Tests for HogQL query construction."""

    def test_orders_oldest_first_with_explicit_paging(self) -> None:
        query = build_swap_query("swap", offset=200, limit=100)
        assert "FROM events" in query
        assert "event = 'swap'" in query
        assert "ORDER BY timestamp ASC" in query
        assert query.endswith("LIMIT 100 OFFSET 200")
        assert "properties.token_in_id" in query

    def test_equal_timestamps_have_stable_order(self) -> None:
        query = build_swap_query("swap", offset=0, limit=10)
        order_by = query.split("ORDER BY ", 1)[1].split(" LIMIT", 1)[0]
        assert order_by == "timestamp ASC, uuid ASC"

    def test_since_adds_lower_bound(self) -> None:
        query = build_swap_query("swap", 0, 10, since="2025-01-01T00:00:00Z")
        assert "timestamp >= toDateTime('2025-01-01 00:00:00')" in query

    def test_rejects_unsafe_event_name(self) -> None:
        with pytest.raises(ConfigurationError):
            build_swap_query("swap' OR 1=1 --", 0, 10)

    def test_rejects_invalid_since(self) -> None:
        with pytest.raises(ConfigurationError):
            build_swap_query("swap", 0, 10, since="last tuesday")

    def test_rejects_bad_paging(self) -> None:
        with pytest.raises(ValueError):
            build_swap_query("swap", -1, 10)
        with pytest.raises(ValueError):
            build_swap_query("swap", 0, 0)


class TestRowToEvent:
    """Tests for positional row mapping."""

    def test_full_row(self) -> None:
        row = ["2025-06-01T12:00:00Z", "100.50", "intents:usdc", "0.03", "nep141:eth.omft.near"]
        assert row_to_event(row) == SwapEvent(
            timestamp="2025-06-01T12:00:00Z",
            amount_in="100.50",
            token_in_id="intents:usdc",
            amount_out="0.03",
            token_out_id="nep141:eth.omft.near",
        )

    def test_numbers_stringified_and_short_rows_padded(self) -> None:
        event = row_to_event(["2025-06-01T12:00:00Z", 5, None])
        assert event.amount_in == "5"
        assert event.token_in_id is None
        assert event.amount_out is None
        assert event.token_out_id is None


class TestPostHogEventSource:
    """Tests for fetch_page against a fake session."""

    def test_requires_credentials(self, http_settings: HttpSettings) -> None:
        with pytest.raises(ConfigurationError):
            PostHogEventSource(PostHogSettings(project_id="1"), http_settings)

    @pytest.mark.asyncio
    async def test_fetch_page(
        self, posthog_settings: PostHogSettings, http_settings: HttpSettings
    ) -> None:
        body = {
            "columns": ["timestamp", "amount_in", "token_in_id", "amount_out", "token_out_id"],
            "results": [
                ["2025-06-01T10:00:00Z", "1", "intents:usdc", "1", "nep141:wrap.near"],
                ["2025-06-01T11:00:00Z", "2", "intents:usdc", "2", "nep141:wrap.near"],
            ],
        }
        session = FakeSession([FakeResponse(200, body)])
        source = _source(posthog_settings, http_settings, session)

        events = await source.fetch_page(offset=0, limit=2)

        assert [e.amount_in for e in events] == ["1", "2"]
        request = session.requests[0]
        assert request["url"] == "https://posthog.example.com/api/projects/12345/query/"
        assert request["json"]["query"]["kind"] == "HogQLQuery"
        assert "LIMIT 2 OFFSET 0" in request["json"]["query"]["query"]
        assert request["headers"]["Authorization"] == "Bearer phx_test_key"

    @pytest.mark.asyncio
    async def test_missing_results_is_error(
        self, posthog_settings: PostHogSettings, http_settings: HttpSettings
    ) -> None:
        session = FakeSession([FakeResponse(200, {"error": "weird"})])
        source = _source(posthog_settings, http_settings, session)

        with pytest.raises(EventSourceError) as exc_info:
            await source.fetch_page(0, 10)
        assert exc_info.value.body == {"error": "weird"}

    @pytest.mark.asyncio
    async def test_upstream_error_body_surfaced(
        self, posthog_settings: PostHogSettings, http_settings: HttpSettings
    ) -> None:
        error_body = {"type": "validation_error", "detail": "Unknown table"}
        session = FakeSession([FakeResponse(400, error_body)])
        source = _source(posthog_settings, http_settings, session)

        with pytest.raises(EventSourceError) as exc_info:
            await source.fetch_page(0, 10)
        assert exc_info.value.status == 400
        assert exc_info.value.body == error_body
