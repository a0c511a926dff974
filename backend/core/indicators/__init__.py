"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    atr,
    rsi,
    sma,
    stoch_rsi,
    stoch_rsi_raw,
    true_range,
    IndicatorCalculator,
    StochRsiResult,
)
from core.indicators.align import (
    SENTINEL,
    AlignedIndicators,
    align_indicators,
    align_series,
    warmup_index,
)

__all__ = [
    "atr",
    "rsi",
    "sma",
    "stoch_rsi",
    "stoch_rsi_raw",
    "true_range",
    "IndicatorCalculator",
    "StochRsiResult",
    "SENTINEL",
    "AlignedIndicators",
    "align_indicators",
    "align_series",
    "warmup_index",
]
