"""Descriptive statistics over paired price sequences.

All functions are pure. Degenerate inputs have defined numeric results:

- ``covariance`` and ``std_dev`` return 0.0 when ``n <= 1`` instead of
  dividing by zero.
- ``correlation`` returns 0.0 for empty input or when either series has
  zero standard deviation.
"""

import math
from typing import Sequence

from src.core.errors import EmptyInput, UnsupportedOperation


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean.

    Raises:
        EmptyInput: if ``values`` is empty
    """
    if len(values) == 0:
        raise EmptyInput("Cannot compute the mean of an empty sequence")
    return math.fsum(values) / len(values)


def covariance(
    xs: Sequence[float],
    ys: Sequence[float],
    mean_x: float,
    mean_y: float,
) -> float:
    """Sample covariance ``sum((x - mean_x) * (y - mean_y)) / (n - 1)``."""
    if len(xs) != len(ys):
        raise UnsupportedOperation(
            f"Covariance needs equal-length sequences, got {len(xs)} and {len(ys)}"
        )
    n = len(xs)
    if n <= 1:
        return 0.0
    return math.fsum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys)) / (n - 1)


def std_dev(values: Sequence[float], mean_value: float) -> float:
    """Sample standard deviation around ``mean_value``."""
    n = len(values)
    if n <= 1:
        return 0.0
    return math.sqrt(math.fsum((v - mean_value) ** 2 for v in values) / (n - 1))


def correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson correlation of two equal-length sequences.

    The result is not clamped to [-1, 1]; rounding may push it marginally
    outside.
    """
    if len(xs) != len(ys):
        raise UnsupportedOperation(
            f"Correlation needs equal-length sequences, got {len(xs)} and {len(ys)}"
        )
    if len(xs) == 0:
        return 0.0

    mean_x = mean(xs)
    mean_y = mean(ys)
    cov = covariance(xs, ys, mean_x, mean_y)
    std_x = std_dev(xs, mean_x)
    std_y = std_dev(ys, mean_y)

    if std_x == 0 or std_y == 0:
        return 0.0
    return cov / (std_x * std_y)
