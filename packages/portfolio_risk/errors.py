"""Exceptions raised by the risk engine.

Sparse price data is never an error on its own: metrics degrade to ``0.0``.
These types cover the cases a hosting layer needs to tell apart.
"""

from __future__ import annotations


class RiskEngineError(Exception):
    """Base class for risk engine failures."""


class EmptyPortfolioError(RiskEngineError, ValueError):
    """No positions were supplied to a strict risk computation."""


class InsufficientDataError(RiskEngineError, ValueError):
    """Every supplied position lacks the history needed for a risk figure."""

    def __init__(self, message: str, position_ids: list[str] | None = None):
        super().__init__(message)
        self.position_ids = position_ids or []


class SimulationCancelled(RiskEngineError):
    """A Monte Carlo run was aborted by its cancellation callback."""

    def __init__(self, completed: int, requested: int):
        super().__init__(
            f"Monte Carlo simulation cancelled after {completed} of {requested} draws"
        )
        self.completed = completed
        self.requested = requested
