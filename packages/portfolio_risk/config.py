"""Configuration for the risk engine loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class RiskSettings(BaseSettings):
    """Risk engine configuration.

    All fields are loaded from ``RISK_``-prefixed environment variables (for
    example ``RISK_MC_SIMULATIONS``).  The defaults reproduce the standard
    95% one-tailed, 1-year horizon conventions and need no environment at all.
    """

    TRADING_DAYS: int = Field(default=252, gt=0)
    CONFIDENCE_Z: float = Field(default=1.65, gt=0)  # 95% one-tailed normal quantile
    TAIL_FRACTION: float = Field(default=0.05, gt=0, le=1)
    MIN_HISTORY: int = Field(default=5, ge=2)
    MC_SIMULATIONS: int = Field(default=10000, ge=1)
    MC_CONFIDENCE: float = Field(default=0.95, gt=0, lt=1)
    MC_BATCH_SIZE: int = Field(default=1000, ge=1)
    MC_SEED: int | None = None  # None draws fresh OS entropy per call

    model_config = {"env_prefix": "RISK_", "env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> RiskSettings:
    """Return a RiskSettings instance loaded from the environment."""
    return RiskSettings()
