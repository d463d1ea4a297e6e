"""
Portfolio Risk Module

Orchestrates a full portfolio risk computation: per-asset returns, exposure
and standalone risk, the covariance aggregation, strategy dispatch, and the
per-asset contribution breakdown.

Each call works on its own snapshot of positions and holds no state between
calls.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np
import structlog

from ..config import RiskSettings, get_settings
from ..errors import EmptyPortfolioError, InsufficientDataError
from ..models import AssetContribution, RiskReport, Strategy
from .covariance import annualized_dollar_variance, covariance_matrix, portfolio_volatility
from .metrics import has_sufficient_history, market_value, standalone_risk
from .monte_carlo import RandomSource, monte_carlo_var
from .returns import build_returns

logger = structlog.get_logger(__name__)

# Strategies whose total is a diversified aggregate rather than a plain sum
DIVERSIFIED_STRATEGIES = frozenset({Strategy.VAR, Strategy.MONTE_CARLO})


@dataclass(frozen=True)
class AssetRisk:
    """Per-asset inputs to the portfolio aggregation."""

    asset_id: str
    name: str
    returns: np.ndarray
    market_value: float
    risk: float
    has_data: bool


@dataclass(frozen=True)
class _Aggregation:
    assets: List[AssetRisk]
    annual_variance: float
    volatility: float
    settings: RiskSettings
    rng: Optional[RandomSource]
    should_cancel: Optional[Callable[[], bool]]


def _var_total(agg: _Aggregation) -> float:
    # A lone position keeps its standalone VaR and its history threshold
    if len(agg.assets) == 1:
        return agg.assets[0].risk
    return agg.settings.CONFIDENCE_Z * math.sqrt(agg.annual_variance)


def _monte_carlo_total(agg: _Aggregation) -> float:
    rng = agg.rng
    if rng is None:
        rng = np.random.default_rng(agg.settings.MC_SEED)

    return monte_carlo_var(
        [a.market_value for a in agg.assets],
        agg.volatility,
        confidence=agg.settings.MC_CONFIDENCE,
        simulations=agg.settings.MC_SIMULATIONS,
        rng=rng,
        trading_days=agg.settings.TRADING_DAYS,
        batch_size=agg.settings.MC_BATCH_SIZE,
        should_cancel=agg.should_cancel,
    )


def _summed_total(agg: _Aggregation) -> float:
    return float(sum(a.risk for a in agg.assets))


STRATEGY_HANDLERS: Dict[Strategy, Callable[[_Aggregation], float]] = {
    Strategy.VAR: _var_total,
    Strategy.MONTE_CARLO: _monte_carlo_total,
    Strategy.CVAR: _summed_total,
}


def _finite(value: float, field: str, **context: Any) -> float:
    if math.isfinite(value):
        return float(value)
    logger.warning("compute_portfolio_risk: non-finite result replaced with zero", field=field, **context)
    return 0.0


def _resolve_strategy(strategy: Any) -> Strategy:
    resolved = Strategy.parse(strategy)
    if (
        strategy is not None
        and not isinstance(strategy, Strategy)
        and str(strategy).strip().upper() != resolved.value
    ):
        logger.warning(
            "compute_portfolio_risk: unknown strategy, summing standalone risks",
            requested=strategy,
            resolved=resolved.value
        )
    return resolved


def assess_assets(
    positions: Iterable[Any],
    strategy: Strategy,
    settings: RiskSettings,
) -> List[AssetRisk]:
    """Compute return series, exposure and standalone risk once per position.

    Exposures or risks that overflow to a non-finite value are zeroed, so
    the position drops out of every aggregate instead of poisoning it.
    """
    assets = []
    for position in positions:
        returns = build_returns(position.price_history)
        mv = _finite(market_value(position), 'market_value', asset_id=position.id)
        risk = _finite(
            standalone_risk(position, strategy, settings=settings, returns=returns),
            'individual_risk',
            asset_id=position.id,
        )
        if mv == 0:
            risk = 0.0
        assets.append(AssetRisk(
            asset_id=position.id,
            name=position.name,
            returns=returns,
            market_value=mv,
            risk=risk,
            has_data=has_sufficient_history(
                position, strategy, min_history=settings.MIN_HISTORY, returns=returns
            ),
        ))
    return assets


def build_contributions(assets: List[AssetRisk]) -> List[AssetContribution]:
    """Split the summed standalone risk into per-asset percentages.

    contribution_i = 100 * risk_i / sum(risk)

    This is a standalone-risk ratio, not a covariance-based component VaR;
    it ignores correlation under every strategy. All percentages are 0 when
    the summed risk is 0.
    """
    sum_individual = sum(a.risk for a in assets)
    if not math.isfinite(sum_individual):
        sum_individual = 0.0

    return [
        AssetContribution(
            asset_id=a.asset_id,
            name=a.name,
            individual_risk=a.risk,
            contribution_percentage=_finite(
                (a.risk / sum_individual) * 100 if sum_individual > 0 else 0.0,
                'contribution_percentage',
                asset_id=a.asset_id,
            ),
        )
        for a in assets
    ]


def compute_portfolio_risk(
    positions: Iterable[Any],
    strategy: Any = Strategy.VAR,
    *,
    rng: Optional[RandomSource] = None,
    settings: Optional[RiskSettings] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    strict: bool = False,
) -> RiskReport:
    """Compute portfolio-level risk under the selected strategy.

    Steps:
    1. Per-asset return series, market value and standalone risk
    2. Pairwise covariance matrix -> annualized dollar variance -> volatility
    3. Strategy total: covariance VaR, Monte Carlo VaR or summed CVaR
    4. Standalone-proportional contributions and diversification benefit

    Args:
        positions: Position snapshot (any position variant)
        strategy: Strategy member or selector string; unknown selectors sum
            standalone risks like CVAR
        rng: Uniform random source for MONTE_CARLO; seeded from settings when
            omitted
        settings: Engine settings (loaded from the environment if omitted)
        should_cancel: Cancellation callback polled during Monte Carlo runs
        strict: Raise instead of returning an all-zero report when the
            portfolio is empty or no position has enough history

    Returns:
        RiskReport

    Raises:
        EmptyPortfolioError: strict and no positions
        InsufficientDataError: strict and every position lacks history
        SimulationCancelled: should_cancel() aborted a Monte Carlo run
    """
    if settings is None:
        settings = get_settings()
    resolved = _resolve_strategy(strategy)
    positions = list(positions)

    if not positions:
        if strict:
            raise EmptyPortfolioError("No positions found in portfolio")
        logger.warning("compute_portfolio_risk: empty portfolio", strategy=resolved.value)
        return RiskReport(
            strategy=resolved,
            total_risk=0.0,
            portfolio_volatility=0.0,
            diversification_benefit=0.0,
            per_asset_contributions=[],
        )

    assets = assess_assets(positions, resolved, settings)

    if not any(a.has_data for a in assets):
        ids = [a.asset_id for a in assets]
        if strict:
            raise InsufficientDataError(
                f"Insufficient price history for all {len(assets)} positions "
                f"(need at least {settings.MIN_HISTORY} samples)",
                position_ids=ids,
            )
        logger.warning(
            "compute_portfolio_risk: no position has sufficient history",
            strategy=resolved.value,
            position_ids=ids[:10]
        )

    market_values = [a.market_value for a in assets]
    total_mv = float(sum(market_values))

    cov = covariance_matrix([a.returns for a in assets])
    annual_variance = annualized_dollar_variance(market_values, cov, settings.TRADING_DAYS)
    volatility = portfolio_volatility(annual_variance, total_mv)

    agg = _Aggregation(
        assets=assets,
        annual_variance=annual_variance,
        volatility=volatility,
        settings=settings,
        rng=rng,
        should_cancel=should_cancel,
    )
    total_risk = _finite(STRATEGY_HANDLERS[resolved](agg), 'total_risk')

    sum_individual = sum(a.risk for a in assets)
    if resolved in DIVERSIFIED_STRATEGIES:
        diversification_benefit = sum_individual - total_risk
    else:
        diversification_benefit = 0.0

    report = RiskReport(
        strategy=resolved,
        total_risk=total_risk,
        portfolio_volatility=_finite(volatility, 'portfolio_volatility'),
        diversification_benefit=_finite(diversification_benefit, 'diversification_benefit'),
        per_asset_contributions=build_contributions(assets),
    )

    logger.info(
        "compute_portfolio_risk: report built",
        strategy=resolved.value,
        num_positions=len(assets),
        total_market_value=total_mv,
        total_risk=report.total_risk,
        portfolio_volatility=report.portfolio_volatility,
        diversification_benefit=report.diversification_benefit
    )

    return report
