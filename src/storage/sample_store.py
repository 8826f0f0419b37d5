"""Self-expiring sample storage.

Two backends share one contract:

- ``InMemorySampleStore`` keeps a sorted list per ticker.
- ``SQLiteSampleStore`` persists samples in SQLite with a compound
  ``(ticker, observed_at)`` index.

Expired samples are filtered on every read, so they are invisible the
moment ``now >= expires_at`` regardless of when ``expire()`` last ran.
``expire()`` only reclaims space.
"""

import bisect
import logging
import sqlite3
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from src.core.clock import ensure_utc
from src.core.errors import StorageFailure
from src.core.models import Sample, validate_sample_fields

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class SampleStore(ABC):
    """Append-only sample collection with an expiry policy."""

    @abstractmethod
    def put(self, sample: Sample) -> Sample:
        """Insert a sample and return it with its store identifier.

        Raises:
            InvalidSample: ticker is empty or price is not finite
            StorageFailure: the backend could not accept the write
        """

    @abstractmethod
    def scan_by_key_range(
        self,
        ticker: str,
        from_time: datetime,
        now: datetime,
    ) -> List[Sample]:
        """Visible samples for ``ticker`` with ``observed_at >= from_time``.

        Samples with ``expires_at <= now`` are never returned. Results are
        ascending by ``observed_at``; equal timestamps keep insertion order.
        """

    @abstractmethod
    def expire(self, now: datetime) -> int:
        """Physically remove samples with ``expires_at <= now``.

        Returns:
            Number of samples removed
        """

    @abstractmethod
    def count(self, now: datetime, ticker: Optional[str] = None) -> int:
        """Number of visible samples, optionally for one ticker."""

    @abstractmethod
    def tickers(self, now: datetime) -> List[str]:
        """Sorted distinct tickers that have at least one visible sample."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every sample (administrative reset, used by seeding)."""

    def _check(self, sample: Sample) -> None:
        validate_sample_fields(sample.ticker, sample.price)


class InMemorySampleStore(SampleStore):
    """Process-local store backed by one sorted list per ticker.

    Entries are ``(observed_at, seq, sample)`` tuples; ``seq`` is a
    monotonically increasing insertion counter that keeps equal timestamps
    in arrival order and stops tuple comparison before it reaches the
    sample. A single lock guards mutation and the copy taken by reads.
    """

    def __init__(self):
        self._series: Dict[str, List[Tuple[datetime, int, Sample]]] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def put(self, sample: Sample) -> Sample:
        self._check(sample)
        stored = sample if sample.id else sample.with_id(uuid.uuid4().hex)

        with self._lock:
            self._seq += 1
            series = self._series.setdefault(stored.ticker, [])
            bisect.insort(series, (stored.observed_at, self._seq, stored))

        logger.debug(f"Stored sample {stored.id} for {stored.ticker} @ {stored.price}")
        return stored

    def scan_by_key_range(
        self,
        ticker: str,
        from_time: datetime,
        now: datetime,
    ) -> List[Sample]:
        from_time = ensure_utc(from_time)
        now = ensure_utc(now)

        with self._lock:
            series = self._series.get(ticker)
            if not series:
                return []
            start = bisect.bisect_left(series, (from_time, -1))
            window = series[start:]

        return [entry[2] for entry in window if entry[2].expires_at > now]

    def expire(self, now: datetime) -> int:
        now = ensure_utc(now)
        removed = 0

        with self._lock:
            for ticker in list(self._series):
                series = self._series[ticker]
                kept = [entry for entry in series if entry[2].expires_at > now]
                removed += len(series) - len(kept)
                if kept:
                    self._series[ticker] = kept
                else:
                    del self._series[ticker]

        if removed:
            logger.info(f"Expired {removed} samples")
        return removed

    def count(self, now: datetime, ticker: Optional[str] = None) -> int:
        now = ensure_utc(now)
        with self._lock:
            if ticker is not None:
                series_list = [self._series.get(ticker, [])]
            else:
                series_list = list(self._series.values())
            return sum(
                1 for series in series_list for entry in series if entry[2].expires_at > now
            )

    def tickers(self, now: datetime) -> List[str]:
        now = ensure_utc(now)
        with self._lock:
            return sorted(
                ticker for ticker, series in self._series.items()
                if any(entry[2].expires_at > now for entry in series)
            )

    def clear(self) -> None:
        with self._lock:
            self._series.clear()
        logger.warning("All samples cleared")


def _to_micros(value: datetime) -> int:
    delta = ensure_utc(value) - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds


def _from_micros(value: int) -> datetime:
    seconds, micros = divmod(value, 1_000_000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=micros)


class SQLiteSampleStore(SampleStore):
    """Durable sample store on SQLite.

    Timestamps are stored as integer microseconds since the epoch so range
    scans and expiry comparisons are exact. One connection is opened per
    operation; SQLite's own locking gives read-committed visibility between
    concurrent readers and writers.
    """

    def __init__(self, db_path: str = "samples.db", timeout: float = 5.0):
        """Initialize sample database.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS samples (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    ticker TEXT NOT NULL,
                    price REAL NOT NULL,
                    observed_at INTEGER NOT NULL,
                    expires_at INTEGER NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_samples_ticker_observed
                ON samples(ticker, observed_at)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_samples_expires
                ON samples(expires_at)
            """)

            conn.commit()
            logger.info(f"Database initialized: {self.db_path}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connection.

        Any ``sqlite3.Error`` raised while connecting or inside the block is
        re-raised as ``StorageFailure``.
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            logger.error(f"Cannot open sample database {self.db_path}: {e}")
            raise StorageFailure(f"Cannot open sample database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Sample database error: {e}")
            raise StorageFailure(f"Sample database error: {e}") from e
        finally:
            conn.close()

    def put(self, sample: Sample) -> Sample:
        self._check(sample)
        with self._connect() as conn:
            cursor = conn.execute("""
                INSERT INTO samples (ticker, price, observed_at, expires_at)
                VALUES (?, ?, ?, ?)
            """, (
                sample.ticker,
                sample.price,
                _to_micros(sample.observed_at),
                _to_micros(sample.expires_at),
            ))
            conn.commit()
            sample_id = str(cursor.lastrowid)

        logger.debug(f"Stored sample {sample_id} for {sample.ticker} @ {sample.price}")
        return sample.with_id(sample_id)

    def scan_by_key_range(
        self,
        ticker: str,
        from_time: datetime,
        now: datetime,
    ) -> List[Sample]:
        with self._connect() as conn:
            rows = conn.execute("""
                SELECT * FROM samples
                WHERE ticker = ? AND observed_at >= ? AND expires_at > ?
                ORDER BY observed_at ASC, id ASC
            """, (ticker, _to_micros(from_time), _to_micros(now))).fetchall()

        return [self._row_to_sample(row) for row in rows]

    def _row_to_sample(self, row: sqlite3.Row) -> Sample:
        """Convert database row to Sample."""
        return Sample(
            ticker=row["ticker"],
            price=row["price"],
            observed_at=_from_micros(row["observed_at"]),
            expires_at=_from_micros(row["expires_at"]),
            id=str(row["id"]),
        )

    def expire(self, now: datetime) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM samples WHERE expires_at <= ?",
                (_to_micros(now),),
            )
            conn.commit()
            removed = cursor.rowcount

        if removed:
            logger.info(f"Expired {removed} samples")
        return removed

    def count(self, now: datetime, ticker: Optional[str] = None) -> int:
        query = "SELECT COUNT(*) AS count FROM samples WHERE expires_at > ?"
        params: list = [_to_micros(now)]

        if ticker is not None:
            query += " AND ticker = ?"
            params.append(ticker)

        with self._connect() as conn:
            row = conn.execute(query, params).fetchone()

        return row["count"]

    def tickers(self, now: datetime) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT ticker FROM samples WHERE expires_at > ? ORDER BY ticker",
                (_to_micros(now),),
            ).fetchall()

        return [row["ticker"] for row in rows]

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM samples")
            conn.commit()
        logger.warning("All samples cleared")
