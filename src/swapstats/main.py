"""Entry point for the swap volume aggregator.

Wires all components together, runs one aggregation and emits the report.
Two console scripts share the same run() coroutine:
- ``swapstats``: windowed report (VOLUME_WINDOWS preset, "standard" by default)
- ``swapstats-total``: all-time totals only

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. TokenMapper (static table + overrides)
4. PriceSnapshotProvider (CoinGecko or exchange tickers)
5. EventSource (PostHog)
6. AggregationEngine

Any upstream failure aborts the run with exit status 1 and no report.
"""

import asyncio
import json
from typing import Any

from swapstats.config import AppSettings
from swapstats.engine import AggregationEngine, RunConfig
from swapstats.events.posthog import PostHogEventSource
from swapstats.exceptions import SwapStatsError, UpstreamError
from swapstats.logging import bind_run_context, get_logger, setup_logging
from swapstats.prices.coingecko import CoinGeckoPriceSnapshot
from swapstats.prices.exchange import ExchangePriceSnapshot
from swapstats.report import emit_report
from swapstats.tokens import TokenMapper


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all run components from settings.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    token_mapper = TokenMapper(settings.tokens.extra_mappings)
    price_ids = token_mapper.known_price_ids()

    if settings.prices.provider == "exchange":
        price_provider = ExchangePriceSnapshot(settings.prices, price_ids)
    else:
        price_provider = CoinGeckoPriceSnapshot(
            settings.prices, settings.http, price_ids
        )

    event_source = PostHogEventSource(settings.posthog, settings.http)

    engine = AggregationEngine(
        event_source=event_source,
        price_provider=price_provider,
        token_mapper=token_mapper,
    )

    return {
        "token_mapper": token_mapper,
        "price_provider": price_provider,
        "event_source": event_source,
        "engine": engine,
    }


async def run(windows: str | None = None, settings: AppSettings | None = None) -> int:
    """Run one aggregation and emit the report.

    Args:
        windows: Window preset override ("standard" or "none"). None = from settings.
        settings: Pre-built settings, mainly for tests. None = load from env/.env.

    Returns:
        Process exit status: 0 on success, 1 on any swapstats error.
    """
    # 1. Load settings
    if settings is None:
        settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("swapstats.main")

    try:
        config = RunConfig.from_settings(settings.aggregation, windows=windows)
        components = _build_components(settings)
    except (SwapStatsError, ValueError) as e:
        logger.error("invalid_configuration", error=str(e))
        return 1

    bind_run_context(side=config.leg.value)
    logger.info(
        "swapstats_starting",
        batch_size=config.page_size,
        max_events=config.max_events,
        windows=[w.name for w in config.windows],
        price_provider=settings.prices.provider,
    )

    try:
        report = await components["engine"].run(config)
    except UpstreamError as e:
        logger.error(
            "upstream_error",
            error=str(e),
            status=e.status,
            body=json.dumps(e.body, indent=2) if e.body is not None else None,
        )
        return 1
    except SwapStatsError as e:
        logger.error("run_failed", error=str(e))
        return 1
    finally:
        await components["event_source"].close()
        await components["price_provider"].close()

    emit_report(report, settings.report_path)
    return 0


def main() -> None:
    """Synchronous entry point for the windowed report."""
    raise SystemExit(asyncio.run(run()))


def main_total() -> None:
    """Synchronous entry point for the all-time totals report."""
    raise SystemExit(asyncio.run(run(windows="none")))


if __name__ == "__main__":
    main()
