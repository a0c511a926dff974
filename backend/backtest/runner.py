"""BacktestRunner — orchestrates the full backtest pipeline.

Fetch candles → compute and align indicators → run the engine →
summarize. Only the fetch step does I/O.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime

from core.models.config import StrategyConfig

from backtest.client import BinanceKlineClient
from backtest.config import BacktestSettings
from backtest.engine import BacktestEngine, BacktestOutcome
from backtest.stats import PerformanceSummary, StatisticsCalculator

logger = logging.getLogger(__name__)


@dataclass
class BacktestResult:
    """Complete backtest results."""

    symbol: str
    interval: str
    candle_count: int
    start_time: datetime
    end_time: datetime
    strategy: StrategyConfig
    outcome: BacktestOutcome
    summary: PerformanceSummary


class BacktestRunner:
    """Run a backtest for one symbol/interval."""

    def __init__(
        self,
        settings: BacktestSettings,
        client: BinanceKlineClient | None = None,
    ):
        self.settings = settings
        self.strategy = settings.to_strategy_config()
        self._client = client or BinanceKlineClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            page_delay=settings.page_delay,
        )

    async def run(self) -> BacktestResult:
        """Execute the full backtest pipeline."""
        started = time.time()
        symbol = self.settings.symbol
        interval = self.settings.interval

        logger.info(
            f"Starting backtest: {symbol} {interval}, "
            f"{self.settings.total_candles:,} candles"
        )

        try:
            candles = await self._client.get_historical_candles(
                symbol, interval, self.settings.total_candles
            )
        finally:
            await self._client.close()

        engine = BacktestEngine(self.strategy)
        outcome = engine.run(candles)
        summary = StatisticsCalculator().calculate(outcome)

        elapsed = time.time() - started
        logger.info(
            f"Backtest {symbol} completed in {elapsed:.1f}s: "
            f"{summary.total_trades} trades, win rate {summary.win_rate:.1f}%"
        )

        return BacktestResult(
            symbol=symbol,
            interval=interval,
            candle_count=len(candles),
            start_time=candles[0].open_time,
            end_time=candles[-1].open_time,
            strategy=self.strategy,
            outcome=outcome,
            summary=summary,
        )
