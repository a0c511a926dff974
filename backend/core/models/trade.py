"""Trade record for the single-position long-only backtest."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class ExitReason(str, Enum):
    """Why a trade was closed."""

    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    END_OF_DATA = "end_of_data"  # Forced close at the last candle


class Trade(BaseModel):
    """A long position opened at a candle close.

    Open while ``exit_price`` is unset. Profit/loss is always derived from
    the prices and size, never stored.
    """

    entry_time: datetime
    entry_price: Decimal
    position_size: Decimal
    exit_time: datetime | None = None
    exit_price: Decimal | None = None
    exit_reason: ExitReason | None = None

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    @property
    def profit_loss(self) -> Decimal:
        """Realized P/L; zero while the trade is still open."""
        if self.exit_price is None:
            return Decimal("0")
        return (self.exit_price - self.entry_price) * self.position_size

    def close(
        self, exit_time: datetime, exit_price: Decimal, reason: ExitReason
    ) -> "Trade":
        """Return a closed copy of this trade."""
        return self.model_copy(
            update={
                "exit_time": exit_time,
                "exit_price": exit_price,
                "exit_reason": reason,
            }
        )
