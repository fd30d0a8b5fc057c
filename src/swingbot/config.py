"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from swingbot.exceptions import ValidationError
from swingbot.models import FOUR_HOURS_SECS


class ExchangeSettings(BaseSettings):
    """Kraken exchange connection settings."""

    model_config = SettingsConfigDict(env_prefix="KRAKEN_")

    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")


class StorageSettings(BaseSettings):
    """SQLite storage location."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/swingbot.db"


class RetentionSettings(BaseSettings):
    """Age-tiered candle retention policy.

    Candles younger than full_days keep full resolution, 1 in 2 is kept up to
    half_days, 1 in 6 up to sixth_days, and everything older is purged.
    All fields configurable via RETENTION_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="RETENTION_")

    full_days: int = 30
    half_days: int = 90
    sixth_days: int = 180
    interval_seconds: int = FOUR_HOURS_SECS

    @model_validator(mode="after")
    def _check_ordering(self) -> "RetentionSettings":
        if not (0 <= self.full_days < self.half_days < self.sixth_days):
            raise ValueError("retention days must satisfy full_days < half_days < sixth_days")
        return self


class FetchSettings(BaseSettings):
    """Periodic OHLC fetch loop configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCH_")

    interval_sec: int = 300  # seconds between fetch passes
    on_start: bool = True  # fetch immediately on startup
    timeframe: str = "4h"
    max_retries: int = 5
    retry_base_delay: float = 1.0


class StrategySettings(BaseSettings):
    """Swing strategy window sizes and run mode.

    All fields configurable via STRATEGY_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="STRATEGY_")

    ma_short: int = 10
    ma_long: int = 42
    lookback: int = 300  # max candles loaded per decision
    mode: Literal["simulation", "real"] = "simulation"
    sim_candles: int = 1000  # candles replayed per pair in simulation


class LogSettings(BaseSettings):
    """Log rendering and routing."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    format: Literal["console", "json"] = "console"
    mode: Literal["console", "files"] = "console"
    dir: str = "logs"
    info_name: str = "app.log"
    error_name: str = "error.log"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    base_fiat: Literal["EUR", "USD"] = "EUR"
    dry_run: bool = True
    exchange: ExchangeSettings = ExchangeSettings()
    storage: StorageSettings = StorageSettings()
    retention: RetentionSettings = RetentionSettings()
    fetch: FetchSettings = FetchSettings()
    strategy: StrategySettings = StrategySettings()
    logs: LogSettings = LogSettings()

    def validate_live(self) -> None:
        """Require API credentials before running without dry-run."""
        if self.dry_run:
            return
        if not self.exchange.api_key.get_secret_value():
            raise ValidationError("KRAKEN_API_KEY is required when dry_run is false")
        if not self.exchange.api_secret.get_secret_value():
            raise ValidationError("KRAKEN_API_SECRET is required when dry_run is false")
