"""Report model and emitter.

The report is the only place Decimal totals become floats, and only at
serialization time.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from swapstats.logging import get_logger
from swapstats.models import Accumulator, Diagnostics, Leg
from swapstats.windows import Growth

logger = get_logger(__name__)


@dataclass
class Report:
    """Final state of one aggregation run.

    Attributes:
        leg: Swap side that was valued.
        generated_at: The run's "now", against which windows were resolved.
        events_processed: Events consumed, bad amounts included.
        pages_fetched: Event source pages requested.
        buckets: Bucket name -> accumulator, all-time first.
        growth: Current-window name -> (swap growth, volume growth).
        diagnostics: Events that could not be (fully) valued.
    """

    leg: Leg
    generated_at: datetime
    events_processed: int
    pages_fetched: int
    buckets: dict[str, Accumulator]
    growth: dict[str, tuple[Growth, Growth]] = field(default_factory=dict)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict (volumes as floats)."""
        out: dict = {
            "sideValued": self.leg.value,
            "generatedAt": self.generated_at.isoformat(),
            "eventsProcessed": self.events_processed,
            "pagesFetched": self.pages_fetched,
        }
        for name, acc in self.buckets.items():
            entry: dict = {
                "totalSwaps": acc.swaps,
                "totalVolumeUSD": float(acc.volume_usd),
            }
            if name in self.growth:
                swap_growth, volume_growth = self.growth[name]
                entry["swapGrowthPercent"] = swap_growth.to_json()
                entry["volumeGrowthPercent"] = volume_growth.to_json()
            out[name] = entry
        out["notes"] = self.diagnostics.to_dict()
        return out


def emit_report(report: Report, path: str = "") -> str:
    """Render the report as indented JSON to stdout, or to ``path`` when given.

    Returns:
        The rendered JSON text.
    """
    text = json.dumps(report.to_dict(), indent=2)
    if path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text + "\n", encoding="utf-8")
        logger.info("report_written", path=str(target))
    else:
        print(text)
    return text
