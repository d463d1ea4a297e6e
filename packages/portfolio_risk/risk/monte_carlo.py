"""
Monte Carlo VaR Module

Simulates zero-drift daily portfolio returns from normal draws and reads
VaR off the empirical percentile.  Normal variates come from a Box-Muller
transform over an injectable uniform random source, so runs are
reproducible when the source is seeded.
"""

import math
from typing import Callable, Optional, Protocol, Sequence

import numpy as np
import structlog

from ..errors import SimulationCancelled

logger = structlog.get_logger(__name__)


class RandomSource(Protocol):
    """Uniform random source.  ``random()`` returns a float in [0, 1).

    ``numpy.random.Generator`` and ``random.Random`` both satisfy this.
    """

    def random(self) -> float: ...


def _uniforms(rng: RandomSource, size: int) -> np.ndarray:
    """Draw ``size`` uniforms, redrawing exact zeros so log() stays finite."""
    if isinstance(rng, np.random.Generator):
        draws = rng.random(size)
    else:
        draws = np.fromiter((rng.random() for _ in range(size)), dtype=float, count=size)

    zeros = draws == 0
    while zeros.any():
        count = int(zeros.sum())
        if isinstance(rng, np.random.Generator):
            draws[zeros] = rng.random(count)
        else:
            draws[zeros] = [rng.random() for _ in range(count)]
        zeros = draws == 0

    return draws


def standard_normal_draws(rng: RandomSource, size: int) -> np.ndarray:
    """Standard normal variates via the Box-Muller transform.

    Each variate consumes its own pair of uniforms:
    z = sqrt(-2 ln u1) * cos(2 pi u2)

    Args:
        rng: Uniform random source
        size: Number of variates

    Returns:
        1-D array of length size
    """
    u1 = _uniforms(rng, size)
    u2 = _uniforms(rng, size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def monte_carlo_var(
    market_values: Sequence[float],
    portfolio_volatility: float,
    *,
    confidence: float = 0.95,
    simulations: int = 10000,
    rng: Optional[RandomSource] = None,
    trading_days: int = 252,
    batch_size: int = 1000,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> float:
    """Monte Carlo Value-at-Risk over a one-year horizon.

    daily_vol = portfolio_volatility / sqrt(trading_days)
    r_k = daily_vol * z_k  for k = 1..simulations
    VaR = |r_(floor(simulations * (1 - confidence)))| * sqrt(trading_days) * total_MV

    Args:
        market_values: Dollar exposure per asset
        portfolio_volatility: Annualized portfolio volatility (decimal)
        confidence: Confidence level (e.g., 0.95 for 95% VaR)
        simulations: Number of simulated daily returns
        rng: Uniform random source; a fresh unseeded numpy Generator if omitted
        trading_days: Trading days per year
        batch_size: Draws generated between cancellation checks
        should_cancel: Polled before each batch; returning True aborts the run

    Returns:
        VaR as positive number (loss amount), 0.0 for zero volatility or
        zero exposure

    Raises:
        SimulationCancelled: If should_cancel() returns True mid-run
    """
    if not 0 < confidence < 1:
        raise ValueError(f"Confidence must be between 0 and 1, got {confidence}")

    if simulations < 1:
        raise ValueError(f"Simulations must be >= 1, got {simulations}")

    if batch_size < 1:
        raise ValueError(f"Batch size must be >= 1, got {batch_size}")

    total_mv = float(np.sum(np.asarray(market_values, dtype=float)))

    if portfolio_volatility == 0 or total_mv == 0:
        logger.info(
            "monte_carlo_var: zero volatility or exposure, skipping simulation",
            portfolio_volatility=portfolio_volatility,
            total_market_value=total_mv
        )
        return 0.0

    if rng is None:
        rng = np.random.default_rng()

    daily_vol = portfolio_volatility / math.sqrt(trading_days)

    simulated = np.empty(simulations, dtype=float)
    completed = 0
    while completed < simulations:
        if should_cancel is not None and should_cancel():
            logger.warning(
                "monte_carlo_var: simulation cancelled",
                completed=completed,
                requested=simulations
            )
            raise SimulationCancelled(completed, simulations)

        size = min(batch_size, simulations - completed)
        simulated[completed:completed + size] = daily_vol * standard_normal_draws(rng, size)
        completed += size

    simulated.sort()
    index = int(math.floor(simulations * (1 - confidence)))
    index = min(max(index, 0), simulations - 1)
    percentile_return = float(simulated[index])

    var = abs(percentile_return) * math.sqrt(trading_days) * total_mv

    logger.info(
        "monte_carlo_var: simulation complete",
        simulations=simulations,
        confidence=confidence,
        percentile_return=percentile_return,
        var=var
    )

    return float(var)
