"""Abstract price snapshot provider interface."""

from abc import ABC, abstractmethod

from swapstats.models import PriceSnapshot


class PriceSnapshotProvider(ABC):
    """Supplies a complete price-id -> USD unit price mapping.

    Called exactly once per run; the result is the single valuation
    reference point for every swap in that run.
    """

    @abstractmethod
    async def fetch_all(self) -> PriceSnapshot:
        """Fetch all prices. Only strictly positive prices are included."""
        ...

    async def close(self) -> None:
        """Release transport resources. No-op by default."""
