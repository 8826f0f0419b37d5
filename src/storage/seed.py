"""Reference sample data for demos and smoke tests."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from src.core.models import Sample
from src.core.service import PriceService

logger = logging.getLogger(__name__)

SEED_EXPIRY = timedelta(minutes=10)

# (ticker, price, minutes before now)
SEED_SAMPLES: List[Tuple[str, float, int]] = [
    ("NVDA", 231.95296, 50),
    ("NVDA", 124.95156, 40),
    ("NVDA", 459.09558, 30),
    ("GOOGL", 150.23456, 45),
    ("GOOGL", 152.78901, 35),
    ("PYPL", 680.59766, 15),
    ("PYPL", 652.6387, 10),
]


def seed_sample_data(
    service: PriceService,
    now: Optional[datetime] = None,
    clear: bool = True,
) -> List[Sample]:
    """Load the reference samples relative to ``now``.

    Every seeded sample expires ``SEED_EXPIRY`` after ``now``, so the set
    disappears ten minutes after seeding.

    Args:
        service: Service whose store receives the samples
        now: Anchor time (service clock if None)
        clear: Drop existing samples first

    Returns:
        Stored samples in insertion order
    """
    if now is None:
        now = service.clock.now()

    if clear:
        service.store.clear()

    stored = [
        service.ingest(
            ticker,
            price,
            observed_at=now - timedelta(minutes=minutes_ago),
            expires_at=now + SEED_EXPIRY,
        )
        for ticker, price, minutes_ago in SEED_SAMPLES
    ]

    logger.info(f"Inserted {len(stored)} stock price entries")
    return stored
