"""
Portfolio Risk Engine

Risk measurement for portfolios of long, short and leveraged positions.
Pure computation modules operating on position snapshots and numpy arrays.

Modules:
- returns: Chronological simple-return series from price histories
- statistics: Mean, sample standard deviation, covariance
- metrics: Exposure, volatility, parametric VaR, historical CVaR
- covariance: Covariance matrix and portfolio dollar variance
- monte_carlo: Box-Muller Monte Carlo VaR
- portfolio: Strategy dispatch and risk report assembly
"""

# Returns module
from .returns import (
    build_returns,
    sort_price_history,
)

# Statistics module
from .statistics import (
    mean,
    sample_std,
)

# Metrics module
from .metrics import (
    TRADING_DAYS,
    DEFAULT_CONFIDENCE_Z,
    DEFAULT_TAIL_FRACTION,
    MIN_HISTORY,
    market_value,
    returns_volatility,
    annualized_volatility,
    parametric_var,
    historical_cvar,
    has_sufficient_history,
    standalone_risk,
)

# Covariance module
from .covariance import (
    covariance_matrix,
    portfolio_dollar_variance,
    annualized_dollar_variance,
    portfolio_volatility,
)

# Monte Carlo module
from .monte_carlo import (
    RandomSource,
    standard_normal_draws,
    monte_carlo_var,
)

# Portfolio module
from .portfolio import (
    AssetRisk,
    assess_assets,
    build_contributions,
    compute_portfolio_risk,
)

__all__ = [
    # Returns
    'build_returns',
    'sort_price_history',
    # Statistics
    'mean',
    'sample_std',
    # Metrics
    'TRADING_DAYS',
    'DEFAULT_CONFIDENCE_Z',
    'DEFAULT_TAIL_FRACTION',
    'MIN_HISTORY',
    'market_value',
    'returns_volatility',
    'annualized_volatility',
    'parametric_var',
    'historical_cvar',
    'has_sufficient_history',
    'standalone_risk',
    # Covariance
    'covariance_matrix',
    'portfolio_dollar_variance',
    'annualized_dollar_variance',
    'portfolio_volatility',
    # Monte Carlo
    'RandomSource',
    'standard_normal_draws',
    'monte_carlo_var',
    # Portfolio
    'AssetRisk',
    'assess_assets',
    'build_contributions',
    'compute_portfolio_risk',
]
