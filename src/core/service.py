"""Price service: ingestion, window averages and pairwise correlation."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from src.analytics import stats
from src.analytics.alignment import DEFAULT_TOLERANCE, align
from src.analytics.history import HistoryQuery
from src.core.clock import Clock, SystemClock
from src.core.errors import InvalidSample, NoDataAvailable, UnsupportedOperation
from src.core.models import (
    DEFAULT_RETENTION,
    AverageResult,
    CorrelationResult,
    Sample,
    TickerSummary,
)
from src.storage.sample_store import SampleStore

logger = logging.getLogger(__name__)

SUPPORTED_AGGREGATIONS = ("average",)


class PriceService:
    """Facade over one explicitly owned sample store.

    Features:
    - Validated ingestion with a store-wide retention horizon
    - Trailing-window history and average price
    - Nearest-timestamp alignment and Pearson correlation of two tickers
    """

    def __init__(
        self,
        store: SampleStore,
        clock: Optional[Clock] = None,
        retention: timedelta = DEFAULT_RETENTION,
        tolerance: timedelta = DEFAULT_TOLERANCE,
    ):
        """Initialize price service.

        Args:
            store: Backing sample store
            clock: Time source (wall clock if None)
            retention: Default lifetime of ingested samples
            tolerance: Default alignment tolerance for correlation
        """
        if retention <= timedelta(0):
            raise UnsupportedOperation(f"Retention must be positive, got {retention}")
        self.store = store
        self.clock = clock or SystemClock()
        self.retention = retention
        self.tolerance = tolerance
        self.query = HistoryQuery(store, self.clock)

    def ingest(
        self,
        ticker: str,
        price: float,
        observed_at: Optional[datetime] = None,
        expires_at: Optional[datetime] = None,
    ) -> Sample:
        """Record a price observation.

        Args:
            ticker: Instrument identifier
            price: Observed price (must be finite)
            observed_at: Observation time (now if None)
            expires_at: Explicit expiry (observed_at + retention if None)

        Returns:
            Stored sample
        """
        if observed_at is None:
            observed_at = self.clock.now()

        try:
            sample = Sample.create(
                ticker,
                price,
                observed_at,
                retention=self.retention,
                expires_at=expires_at,
            )
        except InvalidSample as e:
            logger.warning(f"Rejected sample for {ticker!r}: {e}")
            raise

        return self.store.put(sample)

    def history(self, ticker: str, window: timedelta) -> List[Sample]:
        """Samples for ``ticker`` within the trailing ``window``."""
        return self.query.history(ticker, window)

    def average_price(
        self,
        ticker: str,
        window: timedelta,
        aggregation: str = "average",
    ) -> AverageResult:
        """Mean price of ``ticker`` over the trailing ``window``.

        Raises:
            UnsupportedOperation: aggregation other than "average"
            NoDataAvailable: the window holds no samples
        """
        if aggregation not in SUPPORTED_AGGREGATIONS:
            raise UnsupportedOperation(f"Unsupported aggregation type: {aggregation}")

        price_history = self.history(ticker, window)
        if not price_history:
            raise NoDataAvailable(ticker, window)

        average = stats.mean([s.price for s in price_history])
        return AverageResult(ticker=ticker, average_price=average, price_history=price_history)

    def correlate(
        self,
        ticker_a: str,
        ticker_b: str,
        window: timedelta,
        tolerance: Optional[timedelta] = None,
    ) -> CorrelationResult:
        """Pearson correlation of two tickers over time-aligned samples.

        An empty window on either side is not an error: it yields no pairs
        and a correlation of 0.

        Args:
            ticker_a: First ticker
            ticker_b: Second ticker
            window: Trailing lookback for both tickers
            tolerance: Max timestamp gap for a pair (service default if None)

        Returns:
            Correlation result with the aligned pairs and per-ticker summaries
        """
        if tolerance is None:
            tolerance = self.tolerance
        if tolerance < timedelta(0):
            raise UnsupportedOperation(f"Tolerance must be non-negative, got {tolerance}")

        history_a = self.history(ticker_a, window)
        history_b = self.history(ticker_b, window)

        pairs = align(history_a, history_b, tolerance)
        prices_a = [p.sample_a.price for p in pairs]
        prices_b = [p.sample_b.price for p in pairs]

        avg_a = stats.mean(prices_a) if prices_a else 0.0
        avg_b = stats.mean(prices_b) if prices_b else 0.0
        corr = stats.correlation(prices_a, prices_b)

        logger.info(
            f"Correlation {ticker_a}/{ticker_b} = {corr:.6f} over {len(pairs)} aligned pairs"
        )

        return CorrelationResult(
            ticker_a=ticker_a,
            ticker_b=ticker_b,
            correlation=corr,
            pairs=pairs,
            stocks={
                ticker_a: TickerSummary(average_price=avg_a, price_history=history_a),
                ticker_b: TickerSummary(average_price=avg_b, price_history=history_b),
            },
        )

    def correlate_tickers(
        self,
        tickers: Sequence[str],
        window: timedelta,
        tolerance: Optional[timedelta] = None,
    ) -> CorrelationResult:
        """Correlation entry point for a caller-supplied ticker list.

        Raises:
            UnsupportedOperation: unless exactly two tickers are given
        """
        if len(tickers) != 2:
            raise UnsupportedOperation(f"Exactly two tickers required, got {len(tickers)}")
        return self.correlate(tickers[0], tickers[1], window, tolerance)

    def summary(self) -> dict:
        """Visible sample counts per ticker."""
        now = self.clock.now()
        tickers = self.store.tickers(now)
        return {
            "total_samples": self.store.count(now),
            "tickers": {t: self.store.count(now, ticker=t) for t in tickers},
            "retention_seconds": self.retention.total_seconds(),
            "tolerance_seconds": self.tolerance.total_seconds(),
        }
