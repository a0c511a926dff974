"""Tests for indicator/candle series alignment."""

import math
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from core.errors import ConfigurationError, SeriesLengthError
from core.indicators import align_indicators, align_series, warmup_index
from core.models.candle import Candle
from core.models.config import StrategyConfig


def make_candles(n: int, base: float = 30000.0) -> list[Candle]:
    """Deterministic oscillating candles."""
    t0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
    candles = []
    prev = Decimal(str(base))
    for i in range(n):
        close = Decimal(str(round(base + 2500 * math.sin(i / 6) + 800 * math.sin(i / 2.3), 2)))
        candles.append(
            Candle(
                open_time=t0 + timedelta(hours=i),
                open=prev,
                high=max(prev, close) + Decimal("150"),
                low=min(prev, close) - Decimal("150"),
                close=close,
            )
        )
        prev = close
    return candles


def dip_then_rally_candles(n: int) -> list[Candle]:
    """Closes fall for 16 bars, then rise every bar."""
    t0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
    closes = [Decimal(1000 - 10 * i) for i in range(16)]
    while len(closes) < n:
        closes.append(closes[-1] + Decimal("10"))
    candles = []
    prev = closes[0]
    for i, close in enumerate(closes):
        candles.append(
            Candle(
                open_time=t0 + timedelta(hours=i),
                open=prev,
                high=max(prev, close) + Decimal("5"),
                low=min(prev, close) - Decimal("5"),
                close=close,
            )
        )
        prev = close
    return candles


class TestAlignSeries:
    def test_left_pads_with_zero(self):
        result = align_series([Decimal("1"), Decimal("2")], 4)
        assert result == [Decimal("0"), Decimal("0"), Decimal("1"), Decimal("2")]

    def test_undefined_becomes_zero(self):
        result = align_series([None, Decimal("5")], 3)
        assert result == [Decimal("0"), Decimal("0"), Decimal("5")]

    def test_equal_length_keeps_values(self):
        values = [Decimal("1"), Decimal("2"), Decimal("3")]
        assert align_series(values, 3) == values

    def test_never_truncates(self):
        with pytest.raises(SeriesLengthError):
            align_series([Decimal("1")] * 5, 4)

    def test_length_error_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            align_series([Decimal("1")] * 2, 1)


class TestWarmupIndex:
    def test_first_defined(self):
        assert warmup_index([None, None, Decimal("1"), None]) == 2

    def test_nothing_defined(self):
        assert warmup_index([None, None]) == 2


class TestAlignIndicators:
    @pytest.mark.parametrize("n", [2, 5, 28, 29, 200])
    def test_lengths_match_candles(self, n):
        result = align_indicators(make_candles(n), StrategyConfig())

        assert len(result.atr) == n
        assert len(result.stoch_rsi) == n

    def test_warmup_indices(self):
        config = StrategyConfig()

        result = align_indicators(make_candles(100), config)

        assert result.atr_warmup == config.atr_period + 1
        assert result.stoch_warmup == config.stoch_warmup == 31
        assert all(v == 0 for v in result.atr[: result.atr_warmup])
        assert all(v > 0 for v in result.atr[result.atr_warmup :])

    def test_stoch_warmup_skips_diluted_d(self):
        """%D is defined from bar 27 but averages warm-up zeros until bar 31."""
        result = align_indicators(dip_then_rally_candles(40), StrategyConfig())

        diluted = result.stoch_rsi[27:31]
        assert [round(v, 2) for v in diluted] == [
            Decimal("11.11"),
            Decimal("33.33"),
            Decimal("66.67"),
            Decimal("88.89"),
        ]
        assert result.stoch_warmup == 31
        assert result.stoch_rsi[31] == Decimal("100")

    def test_stoch_warmup_follows_smoothing(self):
        config = StrategyConfig(k_smooth=1, d_smooth=1)

        result = align_indicators(make_candles(100), config)

        assert result.stoch_warmup == config.min_candles - 1

    def test_short_input_never_warms_up(self):
        result = align_indicators(make_candles(10), StrategyConfig())

        assert result.stoch_warmup == 10
        assert all(v == 0 for v in result.stoch_rsi)
