"""Core logic for the StochRSI/ATR backtester: models and indicators.

This package contains pure business logic with no I/O dependencies
(no network or file access). The backtest package builds on it.
"""
