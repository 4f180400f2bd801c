"""Aggregation engine: paginated swap valuation into time-bucketed accumulators.

The engine is the single place where a run happens:
1. Fetch the price snapshot once (errors propagate -- no run without prices)
2. Capture "now" and resolve every window against it
3. Page through the event source oldest -> newest until a short/empty page
   or the event cap
4. Value each event once (amount x price) and fan the contribution out to
   every bucket whose window contains the event instant
5. Build the report, including growth for configured window pairs

A swap whose amount cannot be parsed is skipped entirely (no bucket counts
it). A swap whose token is unmapped or unpriced is still counted, with a
zero contribution. Both cases land in the diagnostics.

CRITICAL: All arithmetic uses Decimal. Never use float for amounts or totals.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from swapstats.config import AggregationSettings
from swapstats.events.source import EventSource
from swapstats.logging import get_logger
from swapstats.models import (
    EMPTY_TOKEN_PLACEHOLDER,
    Accumulator,
    Diagnostics,
    Leg,
    PriceSnapshot,
    SwapEvent,
    parse_amount,
)
from swapstats.prices.provider import PriceSnapshotProvider
from swapstats.report import Report
from swapstats.tokens import TokenMapper
from swapstats.windows import (
    ALL_TIME,
    WINDOW_PRESETS,
    GrowthPair,
    TimeWindow,
    WindowBounds,
    compute_growth,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RunConfig:
    """Parameters for a single aggregation run.

    Attributes:
        leg: Which side of each swap to value.
        page_size: Events requested per page (> 0).
        max_events: Cap on events processed, bad amounts included. 0 = unlimited.
        windows: Time-bucket definitions. Empty = all-time only.
        growth_pairs: (current, previous) window pairs to compute growth for.
    """

    leg: Leg = Leg.IN
    page_size: int = 1000
    max_events: int = 0
    windows: tuple[TimeWindow, ...] = ()
    growth_pairs: tuple[GrowthPair, ...] = ()

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.max_events < 0:
            raise ValueError(f"max_events must be >= 0, got {self.max_events}")

        names = [w.name for w in self.windows]
        if ALL_TIME in names or len(set(names)) != len(names):
            raise ValueError(f"Window names must be unique and not {ALL_TIME!r}: {names}")

        known = {ALL_TIME, *names}
        for pair in self.growth_pairs:
            if pair.current not in known or pair.previous not in known:
                raise ValueError(f"Growth pair references unknown window: {pair}")

    @classmethod
    def from_settings(
        cls, settings: AggregationSettings, windows: str | None = None
    ) -> "RunConfig":
        """Build a RunConfig from settings, optionally overriding the window preset."""
        preset_windows, preset_pairs = WINDOW_PRESETS[windows or settings.windows]
        return cls(
            leg=Leg(settings.side),
            page_size=settings.batch_size,
            max_events=settings.max_events,
            windows=preset_windows,
            growth_pairs=preset_pairs,
        )

    def cap_reached(self, processed: int) -> bool:
        return self.max_events > 0 and processed >= self.max_events


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AggregationEngine:
    """Values a swap event stream into per-window volume and count totals.

    Args:
        event_source: Paginated, ordered swap event supplier.
        price_provider: Price snapshot provider, called once per run.
        token_mapper: Raw token id -> price id lookup.
        clock: Returns the run's "now". Defaults to the current UTC time.
    """

    def __init__(
        self,
        event_source: EventSource,
        price_provider: PriceSnapshotProvider,
        token_mapper: TokenMapper,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._source = event_source
        self._prices = price_provider
        self._mapper = token_mapper
        self._clock = clock

    async def run(self, config: RunConfig) -> Report:
        """Execute one aggregation run and return its report.

        Raises:
            UpstreamError: If the price snapshot or any page fetch fails.
        """
        prices = await self._prices.fetch_all()
        logger.info("price_snapshot_loaded", prices=len(prices))

        now = self._clock()
        bounds: dict[str, WindowBounds] = {ALL_TIME: WindowBounds()}
        for window in config.windows:
            bounds[window.name] = window.bounds(now)
        buckets = {name: Accumulator() for name in bounds}
        diagnostics = Diagnostics()

        processed = 0
        pages = 0
        offset = 0

        while not config.cap_reached(processed):
            page = await self._source.fetch_page(offset, config.page_size)
            pages += 1
            logger.debug("page_fetched", offset=offset, events=len(page))

            for event in page:
                if config.cap_reached(processed):
                    logger.info("event_cap_reached", max_events=config.max_events)
                    break
                processed += 1

                contribution = self._value(event, config.leg, prices, diagnostics)
                if contribution is None:
                    continue

                instant = event.instant
                if instant is None:
                    diagnostics.undated_events += 1
                for name, window_bounds in bounds.items():
                    if window_bounds.contains(instant):
                        buckets[name].add(contribution)

            offset += len(page)
            if len(page) < config.page_size:
                break

        growth = {
            pair.current: (
                compute_growth(buckets[pair.current].swaps, buckets[pair.previous].swaps),
                compute_growth(
                    buckets[pair.current].volume_usd, buckets[pair.previous].volume_usd
                ),
            )
            for pair in config.growth_pairs
        }

        logger.info(
            "aggregation_complete",
            leg=config.leg.value,
            events_processed=processed,
            pages_fetched=pages,
            total_swaps=buckets[ALL_TIME].swaps,
            total_volume_usd=str(buckets[ALL_TIME].volume_usd),
            bad_amounts=diagnostics.bad_amounts,
            unmapped_tokens=len(diagnostics.unmapped_token_ids),
            missing_prices=len(diagnostics.missing_price_ids),
        )

        return Report(
            leg=config.leg,
            generated_at=now,
            events_processed=processed,
            pages_fetched=pages,
            buckets=buckets,
            growth=growth,
            diagnostics=diagnostics,
        )

    def _value(
        self,
        event: SwapEvent,
        leg: Leg,
        prices: PriceSnapshot,
        diagnostics: Diagnostics,
    ) -> Decimal | None:
        """Return the event's USD contribution, or None if its amount is unparseable."""
        raw_amount, token_id = leg.select(event)

        amount = parse_amount(raw_amount)
        if amount is None:
            diagnostics.bad_amounts += 1
            return None

        price_id = self._mapper.map(token_id)
        if price_id is None:
            diagnostics.unmapped_token_ids.add(token_id or EMPTY_TOKEN_PLACEHOLDER)
            return Decimal("0")

        price = prices.get(price_id)
        if price is None:
            diagnostics.missing_price_ids.add(price_id)
            return Decimal("0")

        return amount * price
