"""Exchange ticker price snapshot via ccxt async.

Alternative to CoinGecko when an exchange's spot tickers are the preferred
valuation source. Last traded prices quoted in a USD stablecoin are taken
as USD prices; the quote stablecoin itself is priced at exactly 1.
"""

from decimal import Decimal, InvalidOperation
from types import MappingProxyType

import ccxt.async_support as ccxt_async

from swapstats.config import PriceSettings
from swapstats.exceptions import ConfigurationError, PriceSourceError
from swapstats.logging import get_logger
from swapstats.models import PriceSnapshot
from swapstats.prices.provider import PriceSnapshotProvider

logger = get_logger(__name__)

# Static mapping from price ids (CoinGecko coin ids) to exchange base assets
PRICE_ID_TO_BASE: dict[str, str] = {
    "bitcoin": "BTC",
    "ethereum": "ETH",
    "solana": "SOL",
    "near": "NEAR",
    "ripple": "XRP",
    "dogecoin": "DOGE",
    "binancecoin": "BNB",
    "tron": "TRX",
    "sui": "SUI",
    "the-open-network": "TON",
    "zcash": "ZEC",
    "polygon-ecosystem-token": "POL",
    "usd-coin": "USDC",
    "tether": "USDT",
    "dai": "DAI",
    "aurora-near": "AURORA",
    "ref-finance": "REF",
    "sweatcoin": "SWEAT",
}


class ExchangePriceSnapshot(PriceSnapshotProvider):
    """Fetches last prices for known assets from a ccxt exchange.

    Args:
        settings: Exchange id and quote asset.
        price_ids: Price ids to price (normally TokenMapper.known_price_ids()).
            Ids without an exchange base asset are skipped.
        exchange: Pre-built ccxt exchange instance, mainly for tests.
    """

    def __init__(
        self,
        settings: PriceSettings,
        price_ids: list[str],
        exchange: ccxt_async.Exchange | None = None,
    ) -> None:
        self._quote = settings.exchange_quote.upper()
        self._symbols: dict[str, str] = {
            f"{PRICE_ID_TO_BASE[pid]}/{self._quote}": pid
            for pid in sorted(set(price_ids))
            if pid in PRICE_ID_TO_BASE and PRICE_ID_TO_BASE[pid] != self._quote
        }
        self._quote_price_ids = [
            pid for pid in price_ids if PRICE_ID_TO_BASE.get(pid) == self._quote
        ]

        if exchange is None:
            exchange_cls = getattr(ccxt_async, settings.exchange_id, None)
            if exchange_cls is None:
                raise ConfigurationError(
                    f"Unknown ccxt exchange id: {settings.exchange_id!r}"
                )
            exchange = exchange_cls({"enableRateLimit": True})
        self._exchange = exchange

    async def fetch_all(self) -> PriceSnapshot:
        prices: dict[str, Decimal] = {pid: Decimal("1") for pid in self._quote_price_ids}

        try:
            markets = await self._exchange.load_markets()
            symbols = [s for s in self._symbols if s in markets]
            tickers = await self._exchange.fetch_tickers(symbols) if symbols else {}
        except ccxt_async.BaseError as e:
            raise PriceSourceError(f"Exchange ticker fetch failed: {e}") from e
        finally:
            await self._exchange.close()

        for symbol, ticker in tickers.items():
            pid = self._symbols.get(symbol)
            last = ticker.get("last") if isinstance(ticker, dict) else None
            if pid is None or last is None:
                continue
            try:
                price = Decimal(str(last))
            except InvalidOperation:
                continue
            if price.is_finite() and price > 0:
                prices[pid] = price

        logger.info(
            "exchange_prices_loaded",
            exchange=self._exchange.id,
            quote=self._quote,
            requested=len(self._symbols) + len(self._quote_price_ids),
            priced=len(prices),
        )
        return MappingProxyType(prices)
