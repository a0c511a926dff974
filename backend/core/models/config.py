"""Strategy configuration models."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class StrategyConfig(BaseModel):
    """StochRSI oversold entry with ATR stop/target.

    Defaults match the BTCUSDT 1h setup the thresholds were tuned on.
    ``min_atr`` and ``oversold_threshold`` are absolute values and depend
    on the instrument's price scale.
    """

    model_config = ConfigDict(frozen=True)

    # Indicator periods
    atr_period: int = Field(default=10, gt=0)
    rsi_period: int = Field(default=14, gt=0)
    stoch_period: int = Field(default=14, gt=0)
    k_smooth: int = Field(default=3, gt=0)
    d_smooth: int = Field(default=3, gt=0)

    # SL/TP distances (multiples of ATR at the current bar)
    sl_atr_mult: Decimal = Field(default=Decimal("1.5"), gt=0)
    tp_atr_mult: Decimal = Field(default=Decimal("2.0"), gt=0)

    # Entry filters
    oversold_threshold: Decimal = Decimal("20")
    min_atr: Decimal = Decimal("100")

    # Account / sizing
    starting_equity: Decimal = Field(default=Decimal("1000"), gt=0)
    risk_percent: Decimal = Field(default=Decimal("0.02"), gt=0)  # Fraction of equity risked per trade

    # Reference behavior: the zero sentinel of a warming-up %D is below the
    # oversold threshold and opens trades. Off by default.
    allow_warmup_entries: bool = False

    @property
    def min_candles(self) -> int:
        """Candles needed before %D produces its first value."""
        return self.rsi_period + self.stoch_period

    @property
    def stoch_warmup(self) -> int:
        """First candle index whose %K and %D windows hold no warm-up zeros."""
        return self.min_candles - 1 + (self.k_smooth - 1) + (self.d_smooth - 1)
