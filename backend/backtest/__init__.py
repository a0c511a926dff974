"""Backtesting system for the StochRSI/ATR long-only strategy.

Pure computation lives in core/ (models, indicators). This package holds
the trade state machine, statistics and the I/O around them.

Usage:
    python -m backtest --symbol BTCUSDT --interval 1h --candles 5000
"""

from backtest.engine import BacktestEngine, BacktestOutcome, run_backtest
from backtest.runner import BacktestResult, BacktestRunner
from backtest.stats import PerformanceSummary, StatisticsCalculator

__all__ = [
    "BacktestEngine",
    "BacktestOutcome",
    "run_backtest",
    "BacktestResult",
    "BacktestRunner",
    "PerformanceSummary",
    "StatisticsCalculator",
]
