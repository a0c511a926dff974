"""Align indicator series with the candle sequence.

Indicators need a warm-up window before they produce values. The engine
indexes every series by candle position, so each series is left-padded
to the candle count and its undefined slots become the zero sentinel.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from core.errors import SeriesLengthError
from core.indicators.indicators import IndicatorCalculator
from core.models.candle import Candle
from core.models.config import StrategyConfig

SENTINEL = Decimal("0")


def align_series(values: Sequence[Decimal | None], length: int) -> list[Decimal]:
    """Left-pad ``values`` to ``length`` and replace undefined slots with 0.

    Raises:
        SeriesLengthError: if ``values`` is longer than ``length``
    """
    if len(values) > length:
        raise SeriesLengthError(
            f"Indicator series has {len(values)} values, expected at most {length}"
        )
    padded = [None] * (length - len(values)) + list(values)
    return [SENTINEL if v is None else v for v in padded]


def warmup_index(values: Sequence[Decimal | None]) -> int:
    """Index of the first defined value, or ``len(values)`` if none is."""
    for i, v in enumerate(values):
        if v is not None:
            return i
    return len(values)


@dataclass(frozen=True)
class AlignedIndicators:
    """Indicator series the engine trades on, one value per candle."""

    atr: list[Decimal]
    stoch_rsi: list[Decimal]
    atr_warmup: int
    stoch_warmup: int  # First index where %D averages no warm-up zeros


def align_indicators(
    candles: Sequence[Candle], config: StrategyConfig
) -> AlignedIndicators:
    """Compute ATR and StochRSI %D for ``candles`` and align both."""
    raw = IndicatorCalculator(config).calculate_all(candles)
    count = len(candles)
    # Warm-up is measured after padding so it is a candle index
    atr_padded = [None] * (count - len(raw["atr"])) + list(raw["atr"])
    d_padded = [None] * (count - len(raw["stoch_d"])) + list(raw["stoch_d"])
    # The first %K and %D values average in warm-up zeros; skip until both
    # smoothing windows are full
    stoch_warmup = warmup_index(d_padded) + (config.k_smooth - 1) + (config.d_smooth - 1)

    return AlignedIndicators(
        atr=align_series(raw["atr"], count),
        stoch_rsi=align_series(raw["stoch_d"], count),
        atr_warmup=warmup_index(atr_padded),
        stoch_warmup=min(stoch_warmup, count),
    )
