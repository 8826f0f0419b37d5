"""Core price model: clock, errors and sample types."""

from src.core.clock import Clock, ManualClock, SystemClock
from src.core.errors import (
    EmptyInput,
    InvalidSample,
    NoDataAvailable,
    StorageFailure,
    TickerWindowError,
    UnsupportedOperation,
)
from src.core.models import AlignedPair, AverageResult, CorrelationResult, Sample, TickerSummary

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "EmptyInput",
    "InvalidSample",
    "NoDataAvailable",
    "StorageFailure",
    "TickerWindowError",
    "UnsupportedOperation",
    "AlignedPair",
    "AverageResult",
    "CorrelationResult",
    "Sample",
    "TickerSummary",
]
