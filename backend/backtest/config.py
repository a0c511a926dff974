"""Backtest configuration loaded from environment variables.

Every strategy parameter can be overridden with a ``BACKTEST_`` prefixed
variable (e.g. ``BACKTEST_MIN_ATR=50``) or a ``.env`` file.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models.config import StrategyConfig


class BacktestSettings(BaseSettings):
    """Backtest configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Market data
    symbol: str = "BTCUSDT"
    interval: str = "1h"
    total_candles: int = Field(default=5000, gt=1)
    base_url: str = "https://api.binance.com"
    request_timeout: float = 30.0
    page_delay: float = 0.5  # Seconds between paged requests

    # Strategy
    atr_period: int = 10
    rsi_period: int = 14
    stoch_period: int = 14
    k_smooth: int = 3
    d_smooth: int = 3
    sl_atr_mult: Decimal = Decimal("1.5")
    tp_atr_mult: Decimal = Decimal("2.0")
    oversold_threshold: Decimal = Decimal("20")
    min_atr: Decimal = Decimal("100")
    starting_equity: Decimal = Decimal("1000")
    risk_percent: Decimal = Decimal("0.02")
    allow_warmup_entries: bool = False

    def to_strategy_config(self) -> StrategyConfig:
        """Build the validated StrategyConfig from these settings."""
        fields = StrategyConfig.model_fields.keys()
        return StrategyConfig(**self.model_dump(include=set(fields)))


_settings: BacktestSettings | None = None


def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings
