"""
Sample Statistics Module

Stateless summary statistics over return series. Every function degrades
to 0.0 on empty or too-short input instead of raising or returning NaN.
"""

import numpy as np
from typing import Sequence


def mean(series: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty series."""
    values = np.asarray(series, dtype=float)
    if values.size == 0:
        return 0.0
    return float(values.mean())


def sample_std(series: Sequence[float]) -> float:
    """Unbiased sample standard deviation.

    Uses divisor (n - 1), falling back to 1 for a single observation so the
    result is 0.0 rather than a division by zero.

    Args:
        series: Observations (e.g. periodic returns)

    Returns:
        Standard deviation, 0.0 for an empty series
    """
    values = np.asarray(series, dtype=float)
    n = values.size
    if n == 0:
        return 0.0

    ddof = 1 if n > 1 else 0
    return float(np.std(values, ddof=ddof))


def covariance(series_a: Sequence[float], series_b: Sequence[float]) -> float:
    """Sample covariance of two series over their common leading prefix.

    Only the first n = min(len(a), len(b)) elements of each series are
    used; the series are not aligned by date.

    Args:
        series_a: First series
        series_b: Second series

    Returns:
        Covariance with divisor (n - 1), 0.0 when n < 2
    """
    a = np.asarray(series_a, dtype=float)
    b = np.asarray(series_b, dtype=float)
    n = min(a.size, b.size)
    if n < 2:
        return 0.0

    return float(np.cov(a[:n], b[:n], ddof=1)[0, 1])
