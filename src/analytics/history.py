"""Bounded-lookback history reads."""

import logging
from datetime import timedelta
from typing import List

from src.core.clock import Clock, SystemClock
from src.core.errors import UnsupportedOperation
from src.core.models import Sample
from src.storage.sample_store import SampleStore

logger = logging.getLogger(__name__)


class HistoryQuery:
    """Reads the trailing window of samples for a ticker."""

    def __init__(self, store: SampleStore, clock: Clock = None):
        self.store = store
        self.clock = clock or SystemClock()

    def history(self, ticker: str, window: timedelta) -> List[Sample]:
        """Visible samples for ``ticker`` observed within ``window`` of now.

        Args:
            ticker: Exact, case-sensitive ticker
            window: Non-negative lookback duration

        Returns:
            Samples ascending by ``observed_at``; empty if none qualify
        """
        if window < timedelta(0):
            raise UnsupportedOperation(f"Window must be non-negative, got {window}")

        now = self.clock.now()
        cutoff = now - window
        entries = self.store.scan_by_key_range(ticker, cutoff, now)

        logger.info(
            f"Retrieved {len(entries)} entries for ticker {ticker} "
            f"within {window.total_seconds() / 60:g} minutes"
        )
        return entries
