"""
Covariance Aggregation Module

Builds the pairwise covariance matrix of asset return series and aggregates
it with dollar exposures into portfolio variance and volatility.
"""

import math
from typing import Sequence

import numpy as np
import structlog

from .statistics import covariance

logger = structlog.get_logger(__name__)


def covariance_matrix(return_series: Sequence[Sequence[float]]) -> np.ndarray:
    """Estimate the covariance matrix from per-asset return series.

    Each entry is the sample covariance of a pair of series over their
    common leading prefix (see statistics.covariance), so series of
    different lengths are allowed. Diagonal entries are variances.

    Args:
        return_series: One return series per asset, in asset order

    Returns:
        N x N symmetric covariance matrix (empty 0 x 0 for no assets)
    """
    n = len(return_series)
    cov_matrix = np.zeros((n, n))

    for i in range(n):
        for j in range(i, n):
            cov_ij = covariance(return_series[i], return_series[j])
            cov_matrix[i, j] = cov_matrix[j, i] = cov_ij

    logger.debug(
        "covariance_matrix: covariance estimated",
        num_assets=n,
        series_lengths=[len(s) for s in return_series][:10]
    )

    return cov_matrix


def portfolio_dollar_variance(market_values: Sequence[float], cov: np.ndarray) -> float:
    """Per-period portfolio variance in squared dollars.

    variance = sum_i sum_j mv_i * mv_j * cov_ij  (= mv' * Sigma * mv)

    Args:
        market_values: Dollar exposure per asset
        cov: Per-period covariance matrix (N x N)

    Returns:
        Portfolio variance; may be slightly negative for noisy short series
    """
    mv = np.asarray(market_values, dtype=float).flatten()

    if mv.shape[0] != cov.shape[0]:
        raise ValueError(
            f"Market values dimension {mv.shape[0]} doesn't match covariance {cov.shape[0]}"
        )

    if mv.size == 0:
        return 0.0

    return float(mv @ cov @ mv)


def annualized_dollar_variance(
    market_values: Sequence[float],
    cov: np.ndarray,
    trading_days: int = 252,
) -> float:
    """Annualized portfolio dollar variance.

    The absolute value of the per-period variance is taken before scaling,
    which absorbs small negative aggregates from non-PSD pairwise matrices.
    """
    if trading_days <= 0:
        raise ValueError(f"Trading days must be positive, got {trading_days}")

    dollar_var = portfolio_dollar_variance(market_values, cov)

    if dollar_var < 0:
        logger.warning(
            "annualized_dollar_variance: negative portfolio variance, using magnitude",
            dollar_variance=dollar_var
        )

    return abs(dollar_var) * trading_days


def portfolio_volatility(annual_variance: float, total_market_value: float) -> float:
    """Annualized portfolio volatility as a fraction of total exposure.

    vol = sqrt(annual_dollar_variance) / total_market_value

    Returns:
        Volatility as decimal, 0.0 when total market value is zero
    """
    if total_market_value <= 0:
        return 0.0
    return math.sqrt(max(annual_variance, 0.0)) / total_market_value
