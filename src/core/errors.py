"""Error taxonomy for the price store and its queries."""

from datetime import timedelta
from typing import Optional


class TickerWindowError(Exception):
    """Base class for all domain errors."""


class InvalidSample(TickerWindowError, ValueError):
    """Raised when a sample is rejected at ingestion."""

    def __init__(self, message: str, ticker: Optional[str] = None):
        self.ticker = ticker
        super().__init__(message)


class NoDataAvailable(TickerWindowError, LookupError):
    """Raised when a single-ticker window holds no samples."""

    def __init__(self, ticker: str, window: timedelta):
        self.ticker = ticker
        self.window = window
        minutes = window.total_seconds() / 60
        super().__init__(
            f"No price history available for ticker: {ticker} "
            f"(window {minutes:g} minutes)"
        )


class UnsupportedOperation(TickerWindowError, ValueError):
    """Raised when a caller asks for an aggregation or input shape we do not implement."""


class StorageFailure(TickerWindowError, RuntimeError):
    """Raised when the underlying store is unavailable or fails."""


class EmptyInput(TickerWindowError, ValueError):
    """Raised when a statistic needs at least one value."""
