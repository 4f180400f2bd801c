"""Tests for the token mapper."""

from swapstats.tokens import INTENTS_TO_PRICE_ID, TokenMapper, normalize_token_id


class TestNormalizeTokenId:
    """Tests for prefix stripping and case folding."""

    def test_strips_known_prefixes(self) -> None:
        assert normalize_token_id("nep141:wrap.near") == "wrap.near"
        assert normalize_token_id("intents:USDC") == "usdc"
        assert normalize_token_id("nep245:v2_1.omni.hot.tg:56_11111") == "v2_1.omni.hot.tg:56_11111"

    def test_leaves_bare_ids(self) -> None:
        assert normalize_token_id("  Wrap.Near ") == "wrap.near"


class TestTokenMapper:
    """Tests for TokenMapper.map and known_price_ids."""

    def test_maps_intents_usdc(self) -> None:
        assert TokenMapper().map("intents:usdc") == "usd-coin"

    def test_maps_nep141_contract_ids(self) -> None:
        mapper = TokenMapper()
        assert mapper.map("nep141:wrap.near") == "near"
        assert mapper.map("nep141:usdt.tether-token.near") == "tether"
        assert mapper.map("nep141:eth.omft.near") == "ethereum"

    def test_unmapped_returns_none(self) -> None:
        mapper = TokenMapper()
        assert mapper.map("unknown.token.near") is None
        assert mapper.map("") is None

    def test_extra_mappings_override_table(self) -> None:
        mapper = TokenMapper({"nep141:wrap.near": "wrapped-near", "FOO.near": "foo-coin"})
        assert mapper.map("wrap.near") == "wrapped-near"
        assert mapper.map("nep141:foo.near") == "foo-coin"

    def test_known_price_ids(self) -> None:
        ids = TokenMapper({"foo.near": "foo-coin"}).known_price_ids()
        assert ids == sorted(set(ids))
        assert "usd-coin" in ids
        assert "foo-coin" in ids
        assert set(INTENTS_TO_PRICE_ID.values()) <= set(ids)
