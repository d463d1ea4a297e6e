"""
Unit tests for monte_carlo.py - Monte Carlo VaR Module

Tests cover:
- Box-Muller draws and zero-uniform redraws
- Zero volatility / zero exposure short circuit
- Reproducibility with a seeded source
- Agreement with the analytic normal quantile
- Cooperative cancellation
"""

import random

import pytest
import numpy as np
from numpy.testing import assert_allclose

from portfolio_risk.errors import SimulationCancelled
from portfolio_risk.risk.monte_carlo import monte_carlo_var, standard_normal_draws


class ScriptedSource:
    """Uniform source replaying a fixed sequence."""

    def __init__(self, values):
        self._values = iter(values)

    def random(self):
        return next(self._values)


class TestStandardNormalDraws:
    """Tests for standard_normal_draws function."""

    def test_box_muller_value(self):
        """u1 = 0.5, u2 = 0.5 -> z = -sqrt(2 ln 2)."""
        z = standard_normal_draws(ScriptedSource([0.5, 0.5]), 1)

        assert_allclose(z, [-np.sqrt(2 * np.log(2))], rtol=1e-12)

    def test_zero_uniform_redrawn(self):
        """A zero uniform is replaced by a fresh draw instead of taking log(0)."""
        z = standard_normal_draws(ScriptedSource([0.0, 0.5, 0.5]), 1)

        assert np.isfinite(z).all()
        assert_allclose(z, [-np.sqrt(2 * np.log(2))], rtol=1e-12)

    def test_moments(self):
        z = standard_normal_draws(np.random.default_rng(7), 50000)

        assert abs(z.mean()) < 0.02
        assert abs(z.std() - 1.0) < 0.02

    def test_stdlib_random_source(self):
        z = standard_normal_draws(random.Random(7), 100)

        assert z.shape == (100,)
        assert np.isfinite(z).all()


class TestMonteCarloVar:
    """Tests for monte_carlo_var function."""

    def test_zero_volatility_is_zero(self, rng):
        assert monte_carlo_var([1000.0, 2000.0], 0.0, rng=rng) == 0.0

    def test_zero_exposure_is_zero(self, rng):
        assert monte_carlo_var([0.0], 0.3, rng=rng) == 0.0

    def test_zero_volatility_draws_nothing(self):
        """The short circuit happens before any random draw."""
        assert monte_carlo_var([1000.0], 0.0, rng=ScriptedSource([])) == 0.0

    def test_positive_for_nonzero_volatility(self, rng):
        assert monte_carlo_var([1000.0], 0.25, rng=rng) > 0

    def test_seeded_runs_reproducible(self):
        first = monte_carlo_var([1000.0, 500.0], 0.2, rng=np.random.default_rng(99))
        second = monte_carlo_var([1000.0, 500.0], 0.2, rng=np.random.default_rng(99))

        assert first == second

    def test_close_to_analytic_quantile(self):
        """With 10k draws VaR lands near 1.645 * vol * MV."""
        vol = 0.2
        mv = [60000.0, 40000.0]
        var = monte_carlo_var(mv, vol, rng=np.random.default_rng(2024))

        assert_allclose(var, 1.645 * vol * 100000.0, rtol=0.05)

    def test_scales_with_exposure(self):
        base = monte_carlo_var([1000.0], 0.2, rng=np.random.default_rng(3))
        double = monte_carlo_var([2000.0], 0.2, rng=np.random.default_rng(3))

        assert_allclose(double, 2 * base, rtol=1e-12)

    def test_cancellation(self, rng):
        calls = {'count': 0}

        def should_cancel():
            calls['count'] += 1
            return calls['count'] > 2

        with pytest.raises(SimulationCancelled) as exc_info:
            monte_carlo_var([1000.0], 0.2, rng=rng, batch_size=1000, should_cancel=should_cancel)

        assert exc_info.value.completed == 2000
        assert exc_info.value.requested == 10000

    def test_not_cancelled_runs_to_completion(self, rng):
        var = monte_carlo_var([1000.0], 0.2, rng=rng, should_cancel=lambda: False)

        assert var > 0

    def test_invalid_confidence_raises(self, rng):
        with pytest.raises(ValueError, match="Confidence must be between"):
            monte_carlo_var([1000.0], 0.2, rng=rng, confidence=1.0)

    def test_invalid_simulations_raises(self, rng):
        with pytest.raises(ValueError, match="Simulations must be"):
            monte_carlo_var([1000.0], 0.2, rng=rng, simulations=0)
