"""Report formatting for backtest results.

Outputs results to console (trade ledger + summary) and JSON files.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum

from backtest.runner import BacktestResult

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(result: BacktestResult) -> None:
        """Print formatted report to console."""
        s = result.summary

        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS — StochRSI/ATR {result.symbol} {result.interval}")
        print("=" * 70)
        print(f"  Period:  {result.start_time:%Y-%m-%d %H:%M} → {result.end_time:%Y-%m-%d %H:%M}")
        print(f"  Candles: {result.candle_count:,}")

        if result.outcome.trades:
            print("\n" + "-" * 70)
            print("  TRADES")
            print("-" * 70)
            for t in result.outcome.trades:
                print(
                    f"  Entry {t.entry_time:%Y-%m-%d %H:%M} @ {t.entry_price:.2f}  "
                    f"Exit {t.exit_time:%Y-%m-%d %H:%M} @ {t.exit_price:.2f}  "
                    f"Size: {t.position_size:.4f}  P/L: {t.profit_loss:+.2f}  "
                    f"({t.exit_reason.value})"
                )

        print("\n" + "-" * 70)
        print("  PERFORMANCE SUMMARY")
        print("-" * 70)
        print(f"  Starting capital: {s.starting_equity:.2f}")
        print(f"  Ending capital:   {s.ending_equity:.2f}")
        print(f"  Total return:     {s.total_return_pct:+.2f}%")
        print(f"  Total trades:     {s.total_trades}")
        print(f"  Winning trades:   {s.wins}")
        print(f"  Losing trades:    {s.losses}")
        print(f"  Win rate:         {s.win_rate:.2f}%")
        print(f"  Net profit:       {s.net_profit:+.2f}")
        print(f"  Profit factor:    {s.profit_factor:.2f}")
        print(f"  Avg win / loss:   {s.avg_win:.2f} / {s.avg_loss:.2f}")
        print(f"  Max drawdown:     {s.max_drawdown:.2f} ({s.max_drawdown_pct:.2f}%)")
        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert results to JSON-serializable dict."""
        s = result.summary
        return {
            "metadata": {
                "symbol": result.symbol,
                "interval": result.interval,
                "candles": result.candle_count,
                "start_time": result.start_time.isoformat(),
                "end_time": result.end_time.isoformat(),
                "strategy": result.strategy.model_dump(mode="json"),
            },
            "summary": {
                "total_trades": s.total_trades,
                "wins": s.wins,
                "losses": s.losses,
                "win_rate": round(float(s.win_rate), 2),
                "net_profit": round(float(s.net_profit), 2),
                "gross_profit": round(float(s.gross_profit), 2),
                "gross_loss": round(float(s.gross_loss), 2),
                "profit_factor": round(float(s.profit_factor), 2),
                "starting_equity": float(s.starting_equity),
                "ending_equity": round(float(s.ending_equity), 2),
                "total_return_pct": round(float(s.total_return_pct), 2),
                "max_drawdown": float(s.max_drawdown),
                "max_drawdown_pct": float(s.max_drawdown_pct),
            },
            "trades": [t.model_dump() for t in result.outcome.trades],
        }

    @staticmethod
    def save_json(result: BacktestResult, path: str) -> None:
        """Save results to a JSON file."""
        data = ReportFormatter.to_dict(result)
        with open(path, "w") as f:
            json.dump(data, f, indent=2, cls=DecimalEncoder)
        logger.info(f"Results saved to {path}")
