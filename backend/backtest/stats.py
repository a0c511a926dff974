"""Statistics calculator for backtest results.

Reduces the trade ledger to win rate, net profit and profit factor, plus
the account-level figures the console report shows (ending equity,
total return, drawdown on the closed-trade equity curve).

Profit factor convention: with no losing trades the profit factor is the
gross profit itself, not infinity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

import numpy as np

from core.models.trade import Trade

from backtest.engine import BacktestOutcome

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


@dataclass
class PerformanceSummary:
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: Decimal = ZERO  # percent
    net_profit: Decimal = ZERO
    gross_profit: Decimal = ZERO
    gross_loss: Decimal = ZERO  # absolute value
    profit_factor: Decimal = ZERO
    avg_win: Decimal = ZERO
    avg_loss: Decimal = ZERO
    starting_equity: Decimal = ZERO
    ending_equity: Decimal = ZERO
    total_return_pct: Decimal = ZERO
    max_drawdown: Decimal = ZERO
    max_drawdown_pct: Decimal = ZERO  # percent of the preceding peak
    equity_curve: list[Decimal] = field(default_factory=list)


def calculate_profit_factor(trades: Sequence[Trade]) -> Decimal:
    """Gross profit / gross loss; gross profit when there is no loss."""
    gross_profit = sum((t.profit_loss for t in trades if t.profit_loss > 0), ZERO)
    gross_loss = sum((abs(t.profit_loss) for t in trades if t.profit_loss < 0), ZERO)
    return gross_profit if gross_loss == 0 else gross_profit / gross_loss


def equity_curve(starting_equity: Decimal, trades: Sequence[Trade]) -> list[Decimal]:
    """Equity after each closed trade, starting with the initial balance."""
    curve = [starting_equity]
    for t in trades:
        curve.append(curve[-1] + t.profit_loss)
    return curve


def max_drawdown(curve: Sequence[Decimal]) -> tuple[Decimal, Decimal]:
    """Largest peak-to-trough drop of an equity curve, absolute and in %.

    numpy locates the trough; the drop itself is recomputed from the
    Decimal curve.
    """
    if len(curve) < 2:
        return ZERO, ZERO
    arr = np.array([float(v) for v in curve], dtype=np.float64)
    drops = np.maximum.accumulate(arr) - arr
    idx = int(np.argmax(drops))
    if drops[idx] <= 0:
        return ZERO, ZERO
    peak = max(curve[: idx + 1])
    dd = peak - curve[idx]
    dd_pct = dd / peak * 100 if peak > 0 else ZERO
    return dd.quantize(CENT), dd_pct.quantize(CENT)


class StatisticsCalculator:
    """Calculate performance statistics from a backtest outcome."""

    def calculate(self, outcome: BacktestOutcome) -> PerformanceSummary:
        trades = outcome.trades
        summary = PerformanceSummary(
            starting_equity=outcome.starting_equity,
            ending_equity=outcome.final_equity,
        )
        self._calc_overall(summary, trades)
        self._calc_equity(summary, trades)
        return summary

    def _calc_overall(self, summary: PerformanceSummary, trades: Sequence[Trade]) -> None:
        pls = [t.profit_loss for t in trades]
        winners = [pl for pl in pls if pl > 0]
        losers = [pl for pl in pls if pl < 0]

        summary.total_trades = len(trades)
        summary.wins = len(winners)
        summary.losses = len(losers)
        if trades:
            summary.win_rate = Decimal(summary.wins) / Decimal(summary.total_trades) * 100
        summary.net_profit = sum(pls, ZERO)
        summary.gross_profit = sum(winners, ZERO)
        summary.gross_loss = sum((abs(pl) for pl in losers), ZERO)
        summary.profit_factor = calculate_profit_factor(trades)
        if winners:
            summary.avg_win = summary.gross_profit / len(winners)
        if losers:
            summary.avg_loss = summary.gross_loss / len(losers)

    def _calc_equity(self, summary: PerformanceSummary, trades: Sequence[Trade]) -> None:
        summary.equity_curve = equity_curve(summary.starting_equity, trades)
        if summary.starting_equity > 0:
            summary.total_return_pct = (
                (summary.ending_equity - summary.starting_equity)
                / summary.starting_equity
                * 100
            )
        summary.max_drawdown, summary.max_drawdown_pct = max_drawdown(summary.equity_curve)

        if summary.equity_curve[-1] != summary.ending_equity:
            logger.warning(
                f"Ledger P/L ({summary.equity_curve[-1]:.2f}) disagrees with "
                f"final equity ({summary.ending_equity:.2f})"
            )
