"""Time window definitions and growth computation for bucketed aggregation.

Windows are expressed relative to "now" (the instant the run started) and
resolved once per run. Each window is evaluated independently per event, so
overlapping windows (last 24h, last 7d, all time) all receive the same swap.

Growth between a window and its direct predecessor is a three-way result:
no baseline, zero change, or a finite percentage.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext

#: Name of the implicit bucket every run carries.
ALL_TIME = "allTime"


@dataclass(frozen=True)
class WindowBounds:
    """Resolved window interval: lower inclusive, upper exclusive, None = unbounded."""

    lower: datetime | None = None
    upper: datetime | None = None

    @property
    def unbounded(self) -> bool:
        return self.lower is None and self.upper is None

    def contains(self, instant: datetime | None) -> bool:
        """Return True if ``lower <= instant < upper``.

        An unknown instant only falls inside a window with no bounds at all.
        """
        if instant is None:
            return self.unbounded
        if self.lower is not None and instant < self.lower:
            return False
        if self.upper is not None and instant >= self.upper:
            return False
        return True


@dataclass(frozen=True)
class TimeWindow:
    """A named interval relative to the run start.

    Attributes:
        name: Bucket name used as the report key.
        start_offset: Lower bound is ``now - start_offset`` (inclusive). None = unbounded.
        end_offset: Upper bound is ``now - end_offset`` (exclusive). None = unbounded.
    """

    name: str
    start_offset: timedelta | None = None
    end_offset: timedelta | None = None

    def bounds(self, now: datetime) -> WindowBounds:
        return WindowBounds(
            lower=now - self.start_offset if self.start_offset is not None else None,
            upper=now - self.end_offset if self.end_offset is not None else None,
        )


@dataclass(frozen=True)
class GrowthPair:
    """A window and its direct temporal predecessor, compared for growth."""

    current: str
    previous: str


STANDARD_WINDOWS: tuple[TimeWindow, ...] = (
    TimeWindow("last24h", start_offset=timedelta(hours=24)),
    TimeWindow(
        "previous24h", start_offset=timedelta(hours=48), end_offset=timedelta(hours=24)
    ),
    TimeWindow("last7d", start_offset=timedelta(days=7)),
    TimeWindow("last30d", start_offset=timedelta(days=30)),
)

STANDARD_GROWTH_PAIRS: tuple[GrowthPair, ...] = (
    GrowthPair(current="last24h", previous="previous24h"),
)

WINDOW_PRESETS: dict[str, tuple[tuple[TimeWindow, ...], tuple[GrowthPair, ...]]] = {
    "standard": (STANDARD_WINDOWS, STANDARD_GROWTH_PAIRS),
    "none": ((), ()),
}


# ──────────────────────────────────────────────
# Growth
# ──────────────────────────────────────────────


class Growth(ABC):
    """Base class for the tagged growth result."""

    @abstractmethod
    def to_json(self) -> float | None:
        """Render for the report: None, 0.0, or the percentage to two places."""
        ...


@dataclass(frozen=True)
class NoBaseline(Growth):
    """Previous period was zero but current is not: growth is not expressible."""

    def to_json(self) -> None:
        return None


@dataclass(frozen=True)
class ZeroChange(Growth):
    """Both periods were zero."""

    def to_json(self) -> float:
        return 0.0


@dataclass(frozen=True)
class Percent(Growth):
    """Finite growth percentage.

    A dust-sized previous period can push the value far past the default
    28-digit context, so rounding runs with enough precision for every
    integer digit plus the two decimals.
    """

    value: Decimal

    def to_json(self) -> float:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, self.value.adjusted() + 3)
            rounded = self.value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return float(rounded)


def compute_growth(current: Decimal | int, previous: Decimal | int) -> Growth:
    """Compute growth of ``current`` over ``previous`` as a tagged result.

    Returns:
        ZeroChange if both are zero, NoBaseline if only previous is zero,
        otherwise Percent((current - previous) / previous * 100).
    """
    current = Decimal(current)
    previous = Decimal(previous)

    if previous == 0:
        return NoBaseline() if current > 0 else ZeroChange()
    return Percent((current - previous) / previous * Decimal("100"))
