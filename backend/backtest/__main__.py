"""CLI entry point for the backtesting system.

Usage:
    python -m backtest
    python -m backtest --symbol ETHUSDT --interval 4h --candles 3000
    python -m backtest --output results.json -v

Strategy parameters come from BACKTEST_* environment variables or .env
(see backtest/config.py).
"""

import argparse
import asyncio
import logging
import sys

import httpx

from backtest.config import BacktestSettings, get_backtest_settings
from backtest.report import ReportFormatter
from backtest.runner import BacktestRunner

logger = logging.getLogger("backtest")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Backtest the StochRSI/ATR long-only strategy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m backtest
  python -m backtest --symbol ETHUSDT --interval 4h --candles 3000
  BACKTEST_MIN_ATR=5 python -m backtest --symbol SOLUSDT
        """,
    )
    parser.add_argument(
        "--symbol",
        type=str,
        default=None,
        help="Trading pair (default: BACKTEST_SYMBOL or BTCUSDT)",
    )
    parser.add_argument(
        "--interval",
        type=str,
        default=None,
        help="Candle interval (default: BACKTEST_INTERVAL or 1h)",
    )
    parser.add_argument(
        "--candles",
        type=int,
        default=None,
        help="Number of candles to fetch (default: BACKTEST_TOTAL_CANDLES or 5000)",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file path for JSON results",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    """Run a backtest and print the report."""
    overrides = {
        "symbol": args.symbol,
        "interval": args.interval,
        "total_candles": args.candles,
    }
    # Re-validate so CLI values get the same checks as environment values
    settings = BacktestSettings(
        **{
            **get_backtest_settings().model_dump(),
            **{k: v for k, v in overrides.items() if v is not None},
        }
    )

    runner = BacktestRunner(settings)
    result = await runner.run()

    ReportFormatter.print_console(result)
    if args.output:
        ReportFormatter.save_json(result, args.output)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # ConfigurationError and pydantic ValidationError are ValueErrors, as are
    # malformed exchange payloads
    try:
        asyncio.run(run(args))
    except (ValueError, httpx.HTTPError) as e:
        logger.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
