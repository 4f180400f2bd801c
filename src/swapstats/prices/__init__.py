"""Price snapshot providers -- CoinGecko REST and exchange tickers via ccxt."""

from swapstats.prices.coingecko import CoinGeckoPriceSnapshot
from swapstats.prices.exchange import ExchangePriceSnapshot
from swapstats.prices.provider import PriceSnapshotProvider

__all__ = ["CoinGeckoPriceSnapshot", "ExchangePriceSnapshot", "PriceSnapshotProvider"]
