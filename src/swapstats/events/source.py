"""Abstract swap event source interface.

The aggregation engine depends only on this contract, keeping the
analytics-backend specifics isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod

from swapstats.models import SwapEvent


class EventSource(ABC):
    """Paginated, chronologically ordered supplier of swap events."""

    @abstractmethod
    async def fetch_page(self, offset: int, limit: int) -> list[SwapEvent]:
        """Fetch up to ``limit`` events starting at ``offset``, oldest first.

        An empty page, or one shorter than ``limit``, marks the end of the stream.

        Pagination is NOT handled here -- callers are responsible for
        advancing the offset by the number of records returned.
        """
        ...

    async def close(self) -> None:
        """Release transport resources. No-op by default."""
