"""
Shared test fixtures for the risk engine test suite.

Provides consistent test data across all test modules:
- Short hand-written price histories (rising, flat, too short)
- Random-walk price histories with a fixed seed
- Position factories for each instrument kind
- Default engine settings and a seeded random source
"""

from pathlib import Path

import pytest
import numpy as np
import pandas as pd

from portfolio_risk.config import RiskSettings
from portfolio_risk.models import (
    EquityPosition,
    LeveragedDerivativePosition,
    OptionPosition,
)

DATA_DIR = Path(__file__).parent / "data"


def history_from_prices(prices, start='2024-01-01'):
    """Turn a list of prices into [{'date', 'price'}] on consecutive business days."""
    dates = pd.bdate_range(start, periods=len(prices))
    return [{'date': d.date().isoformat(), 'price': float(p)} for d, p in zip(dates, prices)]


@pytest.fixture
def rising_history():
    """9-point rising daily history, 2800 -> 2950.45.

    Returns:
        List[dict]: price samples in chronological order
    """
    prices = [2800, 2820, 2810, 2850, 2840, 2860, 2880, 2920, 2950.45]
    return [
        {'date': f'2024-01-0{i + 1}', 'price': p}
        for i, p in enumerate(prices)
    ]


@pytest.fixture
def flat_history():
    """10-point constant price history (zero volatility)."""
    return history_from_prices([100.0] * 10)


@pytest.fixture
def short_history():
    """4-point history, below the 5-sample minimum."""
    return history_from_prices([100, 102, 101, 103])


@pytest.fixture
def random_walk_histories():
    """Three independent 120-day random-walk histories.

    Returns:
        Dict[str, List[dict]]: symbol -> price samples
    """
    np.random.seed(42)
    histories = {}
    for i, sym in enumerate(['AAA', 'BBB', 'CCC']):
        base_price = 100 + i * 50
        returns = np.random.normal(0.0005, 0.02, 120)
        histories[sym] = history_from_prices(base_price * np.exp(np.cumsum(returns)))
    return histories


@pytest.fixture
def make_equity():
    """Factory for equity positions."""
    def _make(history, price=100.0, quantity=10.0, position_id='eq-1', name='Equity'):
        return EquityPosition(
            id=position_id,
            name=name,
            price=price,
            quantity=quantity,
            price_history=history,
        )
    return _make


@pytest.fixture
def make_future():
    """Factory for leveraged derivative positions."""
    def _make(history, price=100.0, quantity=1.0, leverage=10.0, position_id='fut-1', name='Future'):
        return LeveragedDerivativePosition(
            id=position_id,
            name=name,
            price=price,
            quantity=quantity,
            leverage_multiplier=leverage,
            price_history=history,
        )
    return _make


@pytest.fixture
def make_option():
    """Factory for option positions."""
    def _make(history, price=5.0, quantity=100.0, position_id='opt-1', name='Option'):
        return OptionPosition(
            id=position_id,
            name=name,
            price=price,
            quantity=quantity,
            strike_price=110.0,
            underlying_price=105.0,
            price_history=history,
        )
    return _make


@pytest.fixture
def settings():
    """Default engine settings, isolated from any .env file."""
    return RiskSettings(_env_file=None)


@pytest.fixture
def rng():
    """Seeded numpy random source for reproducible Monte Carlo runs."""
    return np.random.default_rng(12345)


@pytest.fixture
def seed_positions_path():
    """Path to the sample positions snapshot."""
    return DATA_DIR / "positions.json"
