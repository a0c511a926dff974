"""Single-position backtest engine for the StochRSI/ATR strategy.

Walks candles in order together with their aligned ATR and StochRSI %D
values. At most one long trade is open at a time.

Rules per bar (ATR == 0 means "not warmed up" and skips the bar):
- In trade: SL = entry - sl_mult * ATR, TP = entry + tp_mult * ATR, both
  from the ATR of the current bar
- low <= SL → exit at SL; else high >= TP → exit at TP
- Both hit same candle → SL (pessimistic assumption)
- Flat: ATR >= min_atr and %D < oversold → buy at the close, sized so
  that the SL distance costs ``risk_percent`` of current equity
- An exit and an entry never happen on the same bar
- Anything still open after the last bar is closed at its close
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from core.errors import ConfigurationError
from core.indicators import SENTINEL, align_indicators
from core.models.candle import Candle
from core.models.config import StrategyConfig
from core.models.trade import ExitReason, Trade

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    """Account state threaded through the per-bar loop."""

    equity: Decimal
    open_trade: Trade | None = None
    ledger: tuple[Trade, ...] = ()

    @property
    def in_trade(self) -> bool:
        return self.open_trade is not None


@dataclass
class BacktestOutcome:
    """Closed trades (in close order) and the resulting equity."""

    trades: list[Trade] = field(default_factory=list)
    starting_equity: Decimal = Decimal("0")
    final_equity: Decimal = Decimal("0")


def _close_trade(
    state: EngineState,
    exit_time: datetime,
    exit_price: Decimal,
    reason: ExitReason,
) -> EngineState:
    closed = state.open_trade.close(exit_time, exit_price, reason)
    logger.debug(
        f"Exit {reason.value} @ {exit_price} ({exit_time:%Y-%m-%d %H:%M}) "
        f"P/L={closed.profit_loss:.2f}"
    )
    return EngineState(
        equity=state.equity + closed.profit_loss,
        open_trade=None,
        ledger=state.ledger + (closed,),
    )


def step(
    state: EngineState,
    candle: Candle,
    atr: Decimal,
    stoch_rsi: Decimal,
    config: StrategyConfig,
    entries_allowed: bool = True,
) -> EngineState:
    """Process one bar and return the new state.

    Args:
        state: State before this bar
        candle: The bar being processed
        atr: Aligned ATR at this bar (0 = undefined)
        stoch_rsi: Aligned StochRSI %D at this bar
        config: Strategy parameters
        entries_allowed: False suppresses new entries on this bar
    """
    if atr == SENTINEL:
        return state

    if state.open_trade is not None:
        entry = state.open_trade.entry_price
        stop_loss = entry - config.sl_atr_mult * atr
        take_profit = entry + config.tp_atr_mult * atr

        # Stop first: a candle touching both counts as a loss
        if candle.low <= stop_loss:
            return _close_trade(state, candle.open_time, stop_loss, ExitReason.STOP_LOSS)
        if candle.high >= take_profit:
            return _close_trade(state, candle.open_time, take_profit, ExitReason.TAKE_PROFIT)
        return state

    if not entries_allowed:
        return state
    if atr < config.min_atr or stoch_rsi >= config.oversold_threshold:
        return state

    risk_amount = state.equity * config.risk_percent
    stop_distance = config.sl_atr_mult * atr
    position_size = risk_amount / stop_distance
    if position_size <= 0:
        logger.warning(f"Skipping entry at {candle.open_time}: equity {state.equity} leaves nothing to risk")
        return state

    trade = Trade(
        entry_time=candle.open_time,
        entry_price=candle.close,
        position_size=position_size,
    )
    logger.debug(
        f"Entry @ {candle.close} ({candle.open_time:%Y-%m-%d %H:%M}) "
        f"size={position_size:.4f} atr={atr:.2f} stoch={stoch_rsi:.2f}"
    )
    return replace(state, open_trade=trade)


def run_backtest(
    candles: Sequence[Candle],
    atr_values: Sequence[Decimal],
    stoch_values: Sequence[Decimal],
    config: StrategyConfig | None = None,
    stoch_warmup: int | None = None,
) -> BacktestOutcome:
    """
    Run the strategy over aligned candle/indicator series.

    Args:
        candles: Candles, oldest first
        atr_values: ATR aligned with ``candles`` (0 where undefined)
        stoch_values: StochRSI %D aligned with ``candles`` (0 where undefined)
        config: Strategy parameters
        stoch_warmup: First candle index whose %D is not diluted by warm-up
            zeros. Defaults to the index implied by the configured periods.

    Returns:
        BacktestOutcome with every trade closed

    Raises:
        ConfigurationError: fewer than two candles, or series not aligned
    """
    config = config or StrategyConfig()

    if len(candles) < 2:
        raise ConfigurationError(f"Need at least 2 candles, got {len(candles)}")
    if len(atr_values) != len(candles) or len(stoch_values) != len(candles):
        raise ConfigurationError(
            "Indicator lists length mismatch with candles: "
            f"candles={len(candles)} atr={len(atr_values)} stoch={len(stoch_values)}"
        )

    if stoch_warmup is None:
        stoch_warmup = config.stoch_warmup
    first_entry = 0 if config.allow_warmup_entries else stoch_warmup
    last = len(candles) - 1

    state = EngineState(equity=config.starting_equity)
    for i in range(1, len(candles)):
        state = step(
            state,
            candles[i],
            atr_values[i],
            stoch_values[i],
            config,
            entries_allowed=first_entry <= i < last,
        )

    if state.open_trade is not None:
        final = candles[-1]
        state = _close_trade(state, final.open_time, final.close, ExitReason.END_OF_DATA)

    return BacktestOutcome(
        trades=list(state.ledger),
        starting_equity=config.starting_equity,
        final_equity=state.equity,
    )


class BacktestEngine:
    """Compute indicators for a candle sequence and backtest the strategy."""

    def __init__(self, config: StrategyConfig | None = None):
        self.config = config or StrategyConfig()

    def run(self, candles: Sequence[Candle]) -> BacktestOutcome:
        if not self.config.allow_warmup_entries and len(candles) <= self.config.stoch_warmup + 1:
            logger.warning(
                f"Only {len(candles)} candles, StochRSI needs "
                f"{self.config.stoch_warmup + 2} to open a trade"
            )

        indicators = align_indicators(candles, self.config)
        outcome = run_backtest(
            candles,
            indicators.atr,
            indicators.stoch_rsi,
            self.config,
            stoch_warmup=indicators.stoch_warmup,
        )
        logger.info(
            f"Backtest done: {len(candles):,} candles, {len(outcome.trades)} trades, "
            f"equity {outcome.starting_equity:.2f} → {outcome.final_equity:.2f}"
        )
        return outcome
