"""Nearest-timestamp alignment of two sample series."""

import logging
from datetime import timedelta
from typing import List, Optional, Sequence

from src.core.models import AlignedPair, Sample

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = timedelta(seconds=60)


def nearest_sample(target: Sample, candidates: Sequence[Sample]) -> Optional[Sample]:
    """Candidate whose ``observed_at`` is closest to ``target``'s.

    Scans every candidate; on a tie the first one seen wins.
    """
    closest = None
    min_diff = None
    for candidate in candidates:
        diff = abs(target.observed_at - candidate.observed_at)
        if min_diff is None or diff < min_diff:
            min_diff = diff
            closest = candidate
    return closest


def align(
    seq_a: Sequence[Sample],
    seq_b: Sequence[Sample],
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> List[AlignedPair]:
    """Pair each sample of ``seq_a`` with its nearest neighbour in ``seq_b``.

    Both sequences must already be ascending by ``observed_at`` (as returned
    by ``HistoryQuery``); they are not re-sorted. For every ``a`` the whole
    of ``seq_b`` is scanned. The pair is kept only when the nearest ``b`` is
    within ``tolerance``; otherwise ``a`` is dropped without trying the
    runner-up. A ``b`` may be matched by several ``a``'s.

    Args:
        seq_a: Samples for the first ticker
        seq_b: Samples for the second ticker
        tolerance: Maximum allowed timestamp difference

    Returns:
        Aligned pairs in ``seq_a`` order
    """
    pairs = []
    for a in seq_a:
        b = nearest_sample(a, seq_b)
        if b is None:
            break
        if abs(a.observed_at - b.observed_at) <= tolerance:
            pairs.append(AlignedPair(sample_a=a, sample_b=b))

    logger.debug(
        f"Aligned {len(pairs)} of {len(seq_a)} samples against {len(seq_b)} "
        f"(tolerance {tolerance.total_seconds():g}s)"
    )
    return pairs
