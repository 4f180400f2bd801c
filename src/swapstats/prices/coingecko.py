"""CoinGecko price snapshot via the ``simple/price`` endpoint.

Requests USD prices for every price id the token mapper can produce,
chunked to keep request URLs bounded. Ids without a positive USD price are
left out of the snapshot; the engine reports them as missing prices.
"""

from decimal import Decimal, InvalidOperation
from types import MappingProxyType

from swapstats.config import HttpSettings, PriceSettings
from swapstats.exceptions import PriceSourceError
from swapstats.http import JsonHttpClient
from swapstats.logging import get_logger
from swapstats.models import PriceSnapshot
from swapstats.prices.provider import PriceSnapshotProvider

logger = get_logger(__name__)


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def parse_simple_price(body: object) -> dict[str, Decimal]:
    """Extract positive USD prices from a ``simple/price`` response body.

    Raises:
        PriceSourceError: If the body is not a JSON object.
    """
    if not isinstance(body, dict):
        raise PriceSourceError("CoinGecko simple/price returned an unexpected body", body=body)

    prices: dict[str, Decimal] = {}
    for price_id, quote in body.items():
        if not isinstance(quote, dict) or quote.get("usd") is None:
            continue
        try:
            price = Decimal(str(quote["usd"]))
        except InvalidOperation:
            continue
        if price.is_finite() and price > 0:
            prices[price_id] = price
    return prices


class CoinGeckoPriceSnapshot(PriceSnapshotProvider):
    """Fetches USD prices from the CoinGecko API.

    Args:
        settings: Base URL, API key and chunk size.
        http_settings: Transport timeout and retry settings.
        price_ids: Price ids to request (normally TokenMapper.known_price_ids()).
        client: Pre-built HTTP client, mainly for tests.
    """

    def __init__(
        self,
        settings: PriceSettings,
        http_settings: HttpSettings,
        price_ids: list[str],
        client: JsonHttpClient | None = None,
    ) -> None:
        self._settings = settings
        self._price_ids = sorted(set(price_ids))

        headers: dict[str, str] = {}
        api_key = settings.coingecko_api_key.get_secret_value()
        if api_key:
            header = "x-cg-pro-api-key" if settings.coingecko_pro else "x-cg-demo-api-key"
            headers[header] = api_key

        self._client = client or JsonHttpClient(
            http_settings, error_cls=PriceSourceError, headers=headers
        )

    async def fetch_all(self) -> PriceSnapshot:
        url = f"{self._settings.coingecko_base_url.rstrip('/')}/simple/price"
        prices: dict[str, Decimal] = {}

        for chunk in _chunks(self._price_ids, self._settings.chunk_size):
            body = await self._client.get_json(
                url, params={"ids": ",".join(chunk), "vs_currencies": "usd"}
            )
            prices.update(parse_simple_price(body))

        missing = [pid for pid in self._price_ids if pid not in prices]
        logger.info(
            "coingecko_prices_loaded",
            requested=len(self._price_ids),
            priced=len(prices),
            unpriced=missing,
        )
        return MappingProxyType(prices)

    async def close(self) -> None:
        await self._client.close()
