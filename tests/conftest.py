"""Shared test fixtures for swapstats."""

import pytest

from swapstats.config import (
    AggregationSettings,
    AppSettings,
    HttpSettings,
    PostHogSettings,
    PriceSettings,
)


@pytest.fixture
def http_settings() -> HttpSettings:
    """Fast-failing transport settings (no sleeping between retries)."""
    return HttpSettings(timeout_seconds=5.0, max_retries=3, retry_base_delay=0.0)


@pytest.fixture
def posthog_settings() -> PostHogSettings:
    return PostHogSettings(
        api_key="phx_test_key",  # type: ignore[arg-type]
        host="https://posthog.example.com",
        project_id="12345",
        event_name="swap",
    )


@pytest.fixture
def mock_settings(
    posthog_settings: PostHogSettings, http_settings: HttpSettings
) -> AppSettings:
    """Return AppSettings with test defaults (dummy keys, small batches)."""
    return AppSettings(
        log_level="DEBUG",
        posthog=posthog_settings,
        prices=PriceSettings(provider="coingecko"),
        aggregation=AggregationSettings(side="in", batch_size=2, max_events=0),
        http=http_settings,
    )
