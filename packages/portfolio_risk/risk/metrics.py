"""
Risk Metrics Module

Single-asset risk metrics: exposure, annualized volatility, parametric VaR
and historical CVaR. All horizons are one year (sqrt(252) scaling).

Insufficient price history is a soft failure: the metric is 0.0, never an
exception.
"""

import math
from typing import Optional, Sequence

import numpy as np
import structlog

from ..models import LeveragedDerivativePosition, PricePoint, Strategy
from .returns import build_returns
from .statistics import mean, sample_std

logger = structlog.get_logger(__name__)

TRADING_DAYS = 252
DEFAULT_CONFIDENCE_Z = 1.65  # 95% one-tailed
DEFAULT_TAIL_FRACTION = 0.05
MIN_HISTORY = 5


def market_value(position) -> float:
    """Absolute dollar exposure of a position.

    MV = |price * quantity|, scaled by the leverage multiplier for leveraged
    derivatives. Long and short positions both contribute positive exposure.

    Args:
        position: Any position variant

    Returns:
        Exposure as a non-negative float
    """
    mv = abs(position.price * position.quantity)
    if isinstance(position, LeveragedDerivativePosition):
        mv *= position.leverage_multiplier
    return float(mv)


def returns_volatility(returns: Sequence[float], trading_days: int = TRADING_DAYS) -> float:
    """Annualize the sample standard deviation of a return series."""
    if len(returns) == 0:
        return 0.0
    return sample_std(returns) * math.sqrt(trading_days)


def annualized_volatility(
    price_history: Sequence[PricePoint],
    trading_days: int = TRADING_DAYS,
) -> float:
    """Annualized volatility of a price history.

    vol = std(returns) * sqrt(trading_days)

    Args:
        price_history: Price samples in any order
        trading_days: Trading days per year

    Returns:
        Volatility as decimal (0.25 = 25%), 0.0 with fewer than 2 samples
    """
    if trading_days <= 0:
        raise ValueError(f"Trading days must be positive, got {trading_days}")

    return returns_volatility(build_returns(price_history), trading_days)


def parametric_var(
    position,
    confidence_z: float = DEFAULT_CONFIDENCE_Z,
    *,
    trading_days: int = TRADING_DAYS,
    min_history: int = MIN_HISTORY,
    returns: Optional[np.ndarray] = None,
) -> float:
    """Parametric Value-at-Risk over a one-year horizon.

    VaR = z * annualized_vol * market_value

    Args:
        position: Any position variant
        confidence_z: Normal quantile for the confidence level
        trading_days: Trading days per year
        min_history: Minimum price samples required
        returns: Precomputed return series for the position, if available

    Returns:
        VaR as positive number (loss amount), 0.0 with fewer than
        min_history price samples
    """
    if confidence_z <= 0:
        raise ValueError(f"Confidence z-score must be positive, got {confidence_z}")

    if len(position.price_history) < min_history:
        return 0.0

    if returns is None:
        returns = build_returns(position.price_history)

    vol = returns_volatility(returns, trading_days)

    return float(confidence_z * vol * market_value(position))


def historical_cvar(
    position,
    tail_fraction: float = DEFAULT_TAIL_FRACTION,
    *,
    trading_days: int = TRADING_DAYS,
    min_history: int = MIN_HISTORY,
    returns: Optional[np.ndarray] = None,
) -> float:
    """Conditional VaR (expected shortfall) by historical simulation.

    Averages the worst tail_fraction of observed returns (at least one),
    then scales by sqrt(trading_days) and market value. The tail average is
    a per-period figure annualized like a volatility, matching the horizon
    of parametric_var.

    Args:
        position: Any position variant
        tail_fraction: Share of worst returns to average (0.05 = worst 5%)
        trading_days: Trading days per year
        min_history: Minimum number of returns required
        returns: Precomputed return series for the position, if available

    Returns:
        CVaR as positive number (loss amount), 0.0 with fewer than
        min_history returns
    """
    if not 0 < tail_fraction <= 1:
        raise ValueError(f"Tail fraction must be in (0, 1], got {tail_fraction}")

    if returns is None:
        returns = build_returns(position.price_history)

    n = len(returns)
    if n < min_history:
        return 0.0

    sorted_returns = np.sort(returns)
    tail_size = max(1, int(math.floor(n * tail_fraction)))
    avg_loss = abs(mean(sorted_returns[:tail_size]))

    return float(avg_loss * math.sqrt(trading_days) * market_value(position))


def has_sufficient_history(
    position,
    strategy: Strategy,
    *,
    min_history: int = MIN_HISTORY,
    returns: Optional[np.ndarray] = None,
) -> bool:
    """Whether the position carries enough data for its standalone metric."""
    if strategy == Strategy.CVAR:
        if returns is None:
            returns = build_returns(position.price_history)
        return len(returns) >= min_history
    return len(position.price_history) >= min_history


def standalone_risk(
    position,
    strategy: Strategy,
    *,
    settings=None,
    returns: Optional[np.ndarray] = None,
) -> float:
    """Standalone risk of one position under a portfolio strategy.

    VAR and MONTE_CARLO use parametric VaR; CVAR uses historical CVaR.

    Args:
        position: Any position variant
        strategy: Portfolio aggregation strategy
        settings: RiskSettings supplying horizon, z-score and tail fraction
            (module defaults when omitted)
        returns: Precomputed return series for the position, if available

    Returns:
        Risk as positive loss amount
    """
    trading_days = settings.TRADING_DAYS if settings is not None else TRADING_DAYS
    min_history = settings.MIN_HISTORY if settings is not None else MIN_HISTORY

    if strategy == Strategy.CVAR:
        tail_fraction = settings.TAIL_FRACTION if settings is not None else DEFAULT_TAIL_FRACTION
        return historical_cvar(
            position,
            tail_fraction,
            trading_days=trading_days,
            min_history=min_history,
            returns=returns,
        )

    confidence_z = settings.CONFIDENCE_Z if settings is not None else DEFAULT_CONFIDENCE_Z
    return parametric_var(
        position,
        confidence_z,
        trading_days=trading_days,
        min_history=min_history,
        returns=returns,
    )
