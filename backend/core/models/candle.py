"""Candle (OHLC bar) data model."""

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from pydantic import BaseModel, ConfigDict


class Candle(BaseModel):
    """A closed OHLC bar, immutable once produced."""

    model_config = ConfigDict(frozen=True)

    open_time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @property
    def range_size(self) -> Decimal:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low


def price_columns(
    candles: Sequence[Candle],
) -> tuple[list[Decimal], list[Decimal], list[Decimal]]:
    """Split candles into (highs, lows, closes) lists."""
    return (
        [c.high for c in candles],
        [c.low for c in candles],
        [c.close for c in candles],
    )
