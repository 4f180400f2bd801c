"""Shared data models for swap volume aggregation.

CRITICAL: All monetary values use Decimal. Never use float for amounts, prices, or totals.
Floats appear only when the final report is serialized.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

#: Read-only price-id -> USD unit price mapping, captured once per run.
PriceSnapshot = Mapping[str, Decimal]

#: Placeholder recorded in diagnostics when a swap carries no token id.
EMPTY_TOKEN_PLACEHOLDER = "(empty)"


class Leg(str, Enum):
    """Side of a swap whose amount is valued."""

    IN = "in"
    OUT = "out"

    def select(self, event: "SwapEvent") -> tuple[Any, str]:
        """Return (raw amount, token id) for this leg, with defaults for missing values."""
        if self is Leg.IN:
            amount, token_id = event.amount_in, event.token_in_id
        else:
            amount, token_id = event.amount_out, event.token_out_id
        return ("0" if amount is None else amount), (token_id or "")


def parse_instant(value: Any) -> datetime | None:
    """Convert a raw event timestamp to an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix, explicit offset, or naive, read
    as UTC), datetimes, and epoch milliseconds as int or digit string.
    Returns None when the value cannot be converted.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime):
            instant = value
        elif isinstance(value, (int, float)):
            instant = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.isdigit():
                instant = datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
            else:
                instant = datetime.fromisoformat(text.replace("Z", "+00:00"))
        else:
            return None
    except (ValueError, OverflowError, OSError):
        return None

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def parse_amount(raw: Any) -> Decimal | None:
    """Parse a decimal-string amount exactly.

    Returns None unless the value is a finite, non-negative number; a swap
    size below zero would subtract from every bucket it lands in.
    """
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


@dataclass(frozen=True)
class SwapEvent:
    """A single swap event as delivered by the event source. Never mutated."""

    timestamp: Any
    amount_in: str | None = None
    token_in_id: str | None = None
    amount_out: str | None = None
    token_out_id: str | None = None

    @property
    def instant(self) -> datetime | None:
        """Point-in-time instant of the swap, or None if the timestamp is unusable."""
        return parse_instant(self.timestamp)


class OrderedSet:
    """Insertion-ordered set with value-equality deduplication (dict-backed)."""

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: dict[str, None] = dict.fromkeys(items)

    def add(self, item: str) -> None:
        self._items.setdefault(item, None)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedSet):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedSet({list(self._items)!r})"


@dataclass
class Diagnostics:
    """Growth-only record of events that could not be (fully) valued."""

    unmapped_token_ids: OrderedSet = field(default_factory=OrderedSet)
    missing_price_ids: OrderedSet = field(default_factory=OrderedSet)
    bad_amounts: int = 0
    undated_events: int = 0

    def to_dict(self) -> dict:
        return {
            "unmappedIntentTokenIds": list(self.unmapped_token_ids),
            "priceIdMissing": list(self.missing_price_ids),
            "badAmounts": self.bad_amounts,
            "undatedEvents": self.undated_events,
        }


@dataclass
class Accumulator:
    """Swap count and exact USD volume for one bucket."""

    swaps: int = 0
    volume_usd: Decimal = Decimal("0")

    def add(self, contribution: Decimal) -> None:
        """Count one swap and add its USD contribution."""
        self.swaps += 1
        self.volume_usd += contribution
