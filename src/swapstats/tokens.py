"""Token mapper: raw NEAR Intents asset ids to price identifiers.

Raw ids arrive in several shapes (``nep141:wrap.near``, ``intents:usdc``,
bare contract ids). They are normalized by stripping a known standard prefix
and lower-casing before the table lookup. Price identifiers are CoinGecko
coin ids.
"""

from collections.abc import Mapping

from swapstats.logging import get_logger

logger = get_logger(__name__)

_PREFIXES = ("nep141:", "nep245:", "nep171:", "intents:")

# Static mapping from normalized intents token ids to CoinGecko coin ids
INTENTS_TO_PRICE_ID: dict[str, str] = {
    # Stablecoins
    "usdc": "usd-coin",
    "17208628f84f5d6ad33f0da3bbbeb27ffcb398eac501a31bd6ad2011e36133a1": "usd-coin",
    "eth-0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48.omft.near": "usd-coin",
    "base-0x833589fcd6edb6e08f4c7c32d4f71b54bda02913.omft.near": "usd-coin",
    "arb-0xaf88d065e77c8cc2239327c5edb3a432268e5831.omft.near": "usd-coin",
    "usdt": "tether",
    "usdt.tether-token.near": "tether",
    "eth-0xdac17f958d2ee523a2206206994597c13d831ec7.omft.near": "tether",
    "dai": "dai",
    "eth-0x6b175474e89094c44da98b954eedeac495271d0f.omft.near": "dai",
    # Native and wrapped majors
    "near": "near",
    "wrap.near": "near",
    "eth": "ethereum",
    "eth.omft.near": "ethereum",
    "base.omft.near": "ethereum",
    "arb.omft.near": "ethereum",
    "aurora": "ethereum",
    "btc": "bitcoin",
    "btc.omft.near": "bitcoin",
    "nbtc.bridge.near": "bitcoin",
    "sol": "solana",
    "sol.omft.near": "solana",
    "doge": "dogecoin",
    "doge.omft.near": "dogecoin",
    "xrp": "ripple",
    "xrp.omft.near": "ripple",
    "zec": "zcash",
    "zec.omft.near": "zcash",
    "bnb": "binancecoin",
    "bsc.omft.near": "binancecoin",
    "trx": "tron",
    "tron.omft.near": "tron",
    "sui": "sui",
    "sui.omft.near": "sui",
    "ton": "the-open-network",
    "ton.omft.near": "the-open-network",
    "pol": "polygon-ecosystem-token",
    "pol.omft.near": "polygon-ecosystem-token",
    # NEAR ecosystem
    "aurora.token.near": "aurora-near",
    "token.sweat": "sweatcoin",
    "token.v2.ref-finance.near": "ref-finance",
    "blackdragon.tkn.near": "black-dragon",
}


def normalize_token_id(raw_token_id: str) -> str:
    """Strip a known token standard prefix and lower-case the id."""
    token_id = raw_token_id.strip().lower()
    for prefix in _PREFIXES:
        if token_id.startswith(prefix):
            return token_id[len(prefix) :]
    return token_id


class TokenMapper:
    """Pure raw-token-id -> price-id lookup.

    Args:
        extra_mappings: Operator-supplied raw id -> price id overrides. Keys are
            normalized the same way as incoming ids and win over the built-in table.
    """

    def __init__(self, extra_mappings: Mapping[str, str] | None = None) -> None:
        self._table: dict[str, str] = dict(INTENTS_TO_PRICE_ID)
        for raw, price_id in (extra_mappings or {}).items():
            self._table[normalize_token_id(raw)] = price_id
        if extra_mappings:
            logger.debug("token_overrides_loaded", count=len(extra_mappings))

    def map(self, raw_token_id: str) -> str | None:
        """Return the price id for a raw token id, or None if unmapped."""
        if not raw_token_id:
            return None
        return self._table.get(normalize_token_id(raw_token_id))

    def known_price_ids(self) -> list[str]:
        """Every price id this mapper can produce, sorted and deduplicated."""
        return sorted(set(self._table.values()))
