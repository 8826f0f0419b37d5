"""Price sample records and the derived query results."""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from src.core.clock import ensure_utc
from src.core.errors import InvalidSample

DEFAULT_RETENTION = timedelta(hours=1)

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d{1,9}))?(?:Z|\+00:00)?$"
)


def format_timestamp(value: datetime) -> str:
    """Render a UTC timestamp with seven fractional digits and a ``Z`` suffix."""
    value = ensure_utc(value)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond:06d}0Z"


def parse_timestamp(text: str) -> datetime:
    """Parse a timestamp written by :func:`format_timestamp`.

    Accepts 0-9 fractional digits; anything finer than a microsecond is
    truncated. Other ISO-8601 offsets fall back to ``datetime.fromisoformat``.
    """
    match = _TIMESTAMP_RE.match(text.strip())
    if match is None:
        return ensure_utc(datetime.fromisoformat(text.strip()))

    base = datetime.strptime(match.group("base"), "%Y-%m-%dT%H:%M:%S")
    frac = match.group("frac") or ""
    micros = int((frac + "000000")[:6])
    return base.replace(microsecond=micros, tzinfo=timezone.utc)


def validate_sample_fields(ticker: Any, price: Any) -> None:
    """Reject empty tickers and non-finite prices."""
    if not isinstance(ticker, str) or not ticker.strip():
        raise InvalidSample("Ticker must be a non-empty string", ticker=ticker)
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise InvalidSample(f"Price must be a number, got {type(price).__name__}", ticker=ticker)
    if not math.isfinite(price):
        raise InvalidSample(f"Price must be finite, got {price}", ticker=ticker)


@dataclass(frozen=True)
class Sample:
    """A single observed price for a ticker.

    Samples are immutable. They stop being visible once ``expires_at`` is
    reached; nothing ever edits them in place.
    """

    ticker: str
    price: float
    observed_at: datetime
    expires_at: datetime
    id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        validate_sample_fields(self.ticker, self.price)
        object.__setattr__(self, "price", float(self.price))
        object.__setattr__(self, "observed_at", ensure_utc(self.observed_at))
        object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
        if self.expires_at <= self.observed_at:
            raise InvalidSample(
                f"expires_at ({self.expires_at.isoformat()}) must be after "
                f"observed_at ({self.observed_at.isoformat()})",
                ticker=self.ticker,
            )

    @classmethod
    def create(
        cls,
        ticker: str,
        price: float,
        observed_at: datetime,
        retention: timedelta = DEFAULT_RETENTION,
        expires_at: Optional[datetime] = None,
    ) -> "Sample":
        """Build a sample, deriving ``expires_at`` from the retention horizon.

        Args:
            ticker: Instrument identifier
            price: Observed price
            observed_at: When the price was observed
            retention: How long the sample stays visible
            expires_at: Explicit expiry, overrides ``retention``

        Returns:
            New Sample
        """
        observed_at = ensure_utc(observed_at)
        if expires_at is None:
            expires_at = observed_at + retention
        return cls(ticker=ticker, price=price, observed_at=observed_at, expires_at=expires_at)

    def with_id(self, sample_id: str) -> "Sample":
        """Copy of this sample carrying a store identifier."""
        return Sample(
            ticker=self.ticker,
            price=self.price,
            observed_at=self.observed_at,
            expires_at=self.expires_at,
            id=sample_id,
        )

    def is_expired(self, now: datetime) -> bool:
        """True once ``now`` has reached ``expires_at``."""
        return self.expires_at <= ensure_utc(now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted record shape."""
        data = {
            "ticker": self.ticker,
            "price": self.price,
            "observedAt": format_timestamp(self.observed_at),
            "expiresAt": format_timestamp(self.expires_at),
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sample":
        """Rebuild a sample from :meth:`to_dict` output."""
        return cls(
            ticker=data["ticker"],
            price=data["price"],
            observed_at=parse_timestamp(data["observedAt"]),
            expires_at=parse_timestamp(data["expiresAt"]),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class AlignedPair:
    """Two samples from different tickers matched by nearest timestamp."""

    sample_a: Sample
    sample_b: Sample

    @property
    def delta(self) -> float:
        """Absolute timestamp difference in seconds."""
        return abs((self.sample_a.observed_at - self.sample_b.observed_at).total_seconds())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "a": self.sample_a.to_dict(),
            "b": self.sample_b.to_dict(),
            "deltaSeconds": self.delta,
        }


@dataclass
class AverageResult:
    """Mean price over a window together with the samples it was computed from."""

    ticker: str
    average_price: float
    price_history: List[Sample] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "averageStockPrice": self.average_price,
            "priceHistory": [s.to_dict() for s in self.price_history],
        }


@dataclass
class TickerSummary:
    """Per-ticker part of a correlation result."""

    average_price: float
    price_history: List[Sample] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "averagePrice": self.average_price,
            "priceHistory": [s.to_dict() for s in self.price_history],
        }


@dataclass
class CorrelationResult:
    """Pearson correlation of two tickers over aligned samples."""

    ticker_a: str
    ticker_b: str
    correlation: float
    pairs: List[AlignedPair] = field(default_factory=list)
    stocks: Dict[str, TickerSummary] = field(default_factory=dict)

    @property
    def paired_a(self) -> List[Sample]:
        """Samples of ``ticker_a`` that found a partner."""
        return [p.sample_a for p in self.pairs]

    @property
    def paired_b(self) -> List[Sample]:
        """Partners chosen from ``ticker_b``, in the same order."""
        return [p.sample_b for p in self.pairs]

    @property
    def sample_size(self) -> int:
        """Number of aligned pairs."""
        return len(self.pairs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "correlation": self.correlation,
            "sampleSize": self.sample_size,
            "stocks": {ticker: summary.to_dict() for ticker, summary in self.stocks.items()},
        }
