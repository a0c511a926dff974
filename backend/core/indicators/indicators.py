"""Technical indicators for the StochRSI/ATR strategy.

Every function is pure and works on Decimal sequences, so running the
same candles twice yields identical series. Values inside an indicator's
warm-up window are returned as ``None``; ``core.indicators.align`` turns
them into the zero sentinel the backtest engine consumes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import NamedTuple, Sequence

from core.models.candle import Candle, price_columns
from core.models.config import StrategyConfig

ZERO = Decimal("0")
HUNDRED = Decimal("100")


# =============================================================================
# Volatility
# =============================================================================

def true_range(
    highs: Sequence[Decimal],
    lows: Sequence[Decimal],
    closes: Sequence[Decimal],
) -> list[Decimal]:
    """
    Calculate True Range for every bar that has a previous close.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices

    Returns:
        List of ``len(highs) - 1`` values; element ``t`` belongs to bar ``t + 1``
    """
    result = []
    for i in range(1, len(highs)):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(max(hl, hc, lc))
    return result


def atr(
    highs: Sequence[Decimal],
    lows: Sequence[Decimal],
    closes: Sequence[Decimal],
    period: int = 10,
) -> list[Decimal | None]:
    """
    Calculate exponentially smoothed Average True Range.

    The first ``period`` TR samples are warm-up. The seed is the simple
    mean of the ``period`` samples ending at TR index ``period``; after
    that ``atr = (tr - prev) * 2 / (period + 1) + prev``.

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices
        period: Smoothing period

    Returns:
        List aligned with the candles (index 0 is the first candle), with
        None for bars that have no ATR yet
    """
    if not highs:
        return []

    tr = true_range(highs, lows, closes)
    multiplier = Decimal(2) / Decimal(period + 1)

    # Bar 0 has no previous close, hence no TR
    result: list[Decimal | None] = [None]
    prev: Decimal | None = None

    for i, value in enumerate(tr):
        if i < period:
            result.append(None)
        elif i == period:
            prev = sum(tr[i - period + 1 : i + 1], ZERO) / period
            result.append(prev)
        else:
            prev = (value - prev) * multiplier + prev
            result.append(prev)

    return result


# =============================================================================
# Momentum
# =============================================================================

def _rsi_value(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == 0:
        return HUNDRED
    rs = avg_gain / avg_loss
    return HUNDRED - HUNDRED / (1 + rs)


def rsi(closes: Sequence[Decimal], period: int = 14) -> list[Decimal | None]:
    """
    Calculate Wilder's Relative Strength Index.

    Args:
        closes: Sequence of close prices
        period: RSI period

    Returns:
        List of the same length as ``closes``; the first defined value is
        at index ``period``
    """
    n = len(closes)
    result: list[Decimal | None] = [None] * n
    if n <= period:
        return result

    avg_gain = ZERO
    avg_loss = ZERO
    for i in range(1, period + 1):
        change = closes[i] - closes[i - 1]
        if change >= 0:
            avg_gain += change
        else:
            avg_loss -= change
    avg_gain /= period
    avg_loss /= period
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        change = closes[i] - closes[i - 1]
        gain = change if change > 0 else ZERO
        loss = -change if change < 0 else ZERO
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    return result


def sma(values: Sequence[Decimal | None], period: int) -> list[Decimal | None]:
    """
    Calculate Simple Moving Average over a partially defined series.

    A window made only of undefined values stays undefined. Undefined
    values inside a partially warmed window count as zero, which keeps
    %K/%D identical to the zero-padded series they were tuned on.

    Args:
        values: Sequence of values, None where undefined
        period: SMA period

    Returns:
        List of SMA values (same length as input)
    """
    result: list[Decimal | None] = [None] * len(values)

    for i in range(period - 1, len(values)):
        window = values[i - period + 1 : i + 1]
        if all(v is None for v in window):
            continue
        total = sum((v for v in window if v is not None), ZERO)
        result[i] = total / period

    return result


def stoch_rsi_raw(
    rsi_values: Sequence[Decimal | None], period: int = 14
) -> list[Decimal | None]:
    """
    Rescale RSI into 0-100 relative to its trailing ``period``-bar range.

    A flat window (max == min) yields 0. A window that still contains
    undefined RSI values yields None.
    """
    result: list[Decimal | None] = [None] * len(rsi_values)

    for i in range(period - 1, len(rsi_values)):
        window = rsi_values[i - period + 1 : i + 1]
        if any(v is None for v in window):
            continue
        lo = min(window)
        hi = max(window)
        if hi == lo:
            result[i] = ZERO
        else:
            result[i] = (rsi_values[i] - lo) / (hi - lo) * HUNDRED

    return result


class StochRsiResult(NamedTuple):
    rsi: list[Decimal | None]
    raw: list[Decimal | None]
    k: list[Decimal | None]
    d: list[Decimal | None]


def stoch_rsi(
    closes: Sequence[Decimal],
    rsi_period: int = 14,
    stoch_period: int = 14,
    k_smooth: int = 3,
    d_smooth: int = 3,
) -> StochRsiResult:
    """
    Calculate Stochastic RSI with %K and %D smoothing.

    Args:
        closes: Sequence of close prices
        rsi_period: RSI period
        stoch_period: Lookback for the RSI min/max window
        k_smooth: SMA period applied to the raw StochRSI
        d_smooth: SMA period applied to %K

    Returns:
        StochRsiResult; ``d`` is the signal line the strategy trades on
    """
    rsi_values = rsi(closes, rsi_period)
    raw = stoch_rsi_raw(rsi_values, stoch_period)
    k = sma(raw, k_smooth)
    d = sma(k, d_smooth)
    return StochRsiResult(rsi=rsi_values, raw=raw, k=k, d=d)


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Calculator for all indicators the strategy needs."""

    def __init__(self, config: StrategyConfig | None = None):
        self.config = config or StrategyConfig()

    def calculate_all(self, candles: Sequence[Candle]) -> dict:
        """
        Calculate every indicator for the given candles.

        Returns:
            Dict of unaligned series, None where undefined
        """
        cfg = self.config
        high_values, low_values, close_values = price_columns(candles)
        atr_values = atr(high_values, low_values, close_values, cfg.atr_period)
        stoch = stoch_rsi(
            close_values,
            rsi_period=cfg.rsi_period,
            stoch_period=cfg.stoch_period,
            k_smooth=cfg.k_smooth,
            d_smooth=cfg.d_smooth,
        )

        return {
            "atr": atr_values,
            "rsi": stoch.rsi,
            "stoch_raw": stoch.raw,
            "stoch_k": stoch.k,
            "stoch_d": stoch.d,
        }
