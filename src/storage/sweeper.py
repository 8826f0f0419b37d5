"""Background removal of expired samples."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.core.clock import Clock, SystemClock
from src.logging_config import get_context_logger
from src.storage.sample_store import SampleStore


@dataclass
class SweepMetrics:
    """Counters for the expiry sweep."""

    sweeps: int = 0
    removed: int = 0
    failures: int = 0
    last_sweep_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "sweeps": self.sweeps,
            "removed": self.removed,
            "failures": self.failures,
            "last_sweep_at": self.last_sweep_at.isoformat() if self.last_sweep_at else None,
        }


class ExpirySweeper:
    """Periodically calls ``store.expire(now)``.

    Reads already hide expired samples, so the sweep only reclaims space and
    its timing never affects query results.
    """

    def __init__(
        self,
        store: SampleStore,
        clock: Optional[Clock] = None,
        interval: float = 60.0,
    ):
        if interval <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval}")
        self.store = store
        self.clock = clock or SystemClock()
        self.interval = interval
        self.metrics = SweepMetrics()
        self._task: Optional[asyncio.Task] = None
        self._log = get_context_logger(__name__, store=type(store).__name__)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the sweep task."""
        if self._task is None:
            self._task = asyncio.create_task(self._sweep_loop())
            self._log.info(f"Expiry sweeper started (every {self.interval:g}s)")

    async def stop(self) -> None:
        """Stop the sweep task."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            self._log.info("Expiry sweeper stopped")

    async def _sweep_loop(self) -> None:
        """Sweep until cancelled."""
        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.metrics.failures += 1
                self._log.error(f"Expiry sweep error: {e}")

    async def sweep_once(self) -> int:
        """Remove everything expired as of now.

        Returns:
            Number of samples removed
        """
        now = self.clock.now()
        removed = await asyncio.to_thread(self.store.expire, now)

        self.metrics.sweeps += 1
        self.metrics.removed += removed
        self.metrics.last_sweep_at = now
        if removed:
            self._log.debug(f"Sweep removed {removed} samples")
        return removed
