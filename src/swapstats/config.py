"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostHogSettings(BaseSettings):
    """PostHog analytics backend connection settings."""

    model_config = SettingsConfigDict(env_prefix="POSTHOG_")

    api_key: SecretStr = SecretStr("")
    host: str = "https://us.posthog.com"
    project_id: str = ""
    event_name: str = "swap"
    since: str | None = None  # ISO date/datetime lower bound, None = whole history


class PriceSettings(BaseSettings):
    """Price snapshot provider settings."""

    model_config = SettingsConfigDict(env_prefix="PRICES_")

    provider: Literal["coingecko", "exchange"] = "coingecko"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: SecretStr = SecretStr("")
    coingecko_pro: bool = False
    chunk_size: int = Field(default=100, gt=0)  # ids per simple/price request
    exchange_id: str = "binance"
    exchange_quote: str = "USDT"


class AggregationSettings(BaseSettings):
    """Aggregation run parameters."""

    model_config = SettingsConfigDict(env_prefix="VOLUME_")

    side: Literal["in", "out"] = "in"
    batch_size: int = Field(default=1000, gt=0)
    max_events: int = Field(default=0, ge=0)  # 0 = unlimited
    windows: Literal["standard", "none"] = "standard"


class TokenSettings(BaseSettings):
    """Token mapping overrides.

    ``TOKENS_EXTRA_MAPPINGS`` takes a JSON object of raw token id to price id,
    e.g. ``{"nep141:foo.near": "foo-coin"}``. Entries win over the built-in table.
    """

    model_config = SettingsConfigDict(env_prefix="TOKENS_")

    extra_mappings: dict[str, str] = {}


class HttpSettings(BaseSettings):
    """HTTP transport settings shared by the PostHog and CoinGecko clients."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    timeout_seconds: float = 30.0
    max_retries: int = Field(default=3, ge=1)  # total attempts per request
    retry_base_delay: float = 1.0


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"  # env LOG_FORMAT
    report_path: str = ""  # empty = write the report to stdout
    posthog: PostHogSettings = PostHogSettings()
    prices: PriceSettings = PriceSettings()
    aggregation: AggregationSettings = AggregationSettings()
    tokens: TokenSettings = TokenSettings()
    http: HttpSettings = HttpSettings()
