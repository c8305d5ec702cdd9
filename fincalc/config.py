"""
Engine configuration using Pydantic Settings.
"""

import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FINCALC_",
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App settings
    app_name: str = "Financial Calculators"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Newton-Raphson solvers
    solver_tolerance: float = 1e-6
    solver_max_iterations: int = 100
    rate_initial_guess: float = 0.10
    rate_floor: float = -0.99
    zero_rate_nudge: float = 0.001
    periods_initial_guess: float = 10.0
    periods_floor: float = 0.1

    # Revolving credit payoff
    payoff_max_periods: int = 600  # 50 years of monthly statements
    payoff_balance_epsilon: float = 0.01
    minimum_payment_floor: float = 25.0
    minimum_payment_percent: float = 0.01

    # Installment loans
    default_periods_per_year: int = 12


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Route engine log records to stderr at the configured level."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
