"""Fatal precondition errors raised by the backtest core."""


class ConfigurationError(ValueError):
    """A backtest run cannot start or continue with the inputs it was given.

    Raised for too few candles or indicator series that are not aligned
    with the candle sequence. A run that raises this produces no ledger.
    """


class SeriesLengthError(ConfigurationError):
    """An indicator series is longer than the candle sequence it must align to."""
