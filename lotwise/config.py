"""
Configuration management for Lotwise.

Centralizes all configuration from environment variables with sensible defaults.
The engine itself never reads this module; callers pass settings explicitly.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

VALID_METHODS = ("FIFO", "LIFO", "SPECIFIC_ID")


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        # NaN is rejected by validate()
        return float("nan")


@dataclass
class Config:
    """
    Application configuration loaded from environment variables.

    Optional:
        LOTWISE_DB_PATH: Path to the SQLite ledger used by the CLI
        LOTWISE_DEFAULT_METHOD: FIFO, LIFO or SPECIFIC_ID
        LOTWISE_RISK_FREE_RATE: Annual risk-free rate as a fraction (0.02 = 2%)
        LOTWISE_PERIODS_PER_YEAR: Return series frequency (252 = daily)
        LOTWISE_BENCHMARK: Default benchmark symbol
        LOTWISE_LOG_LEVEL: Logging level name
    """

    db_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("LOTWISE_DB_PATH", "./data/lotwise.db")
        )
    )

    # ========================================================================
    # Cost basis
    # ========================================================================
    default_cost_basis_method: str = field(
        default_factory=lambda: os.getenv("LOTWISE_DEFAULT_METHOD", "FIFO").upper()
    )

    # ========================================================================
    # Performance analytics
    # ========================================================================
    risk_free_rate: float = field(
        default_factory=lambda: _env_float("LOTWISE_RISK_FREE_RATE", "0.02")
    )
    periods_per_year: int = field(
        default_factory=lambda: int(
            os.getenv("LOTWISE_PERIODS_PER_YEAR", "252")
        )
    )
    default_benchmark: str = field(
        default_factory=lambda: os.getenv("LOTWISE_BENCHMARK", "SPY")
    )

    log_level: str = field(
        default_factory=lambda: os.getenv("LOTWISE_LOG_LEVEL", "WARNING").upper()
    )

    def __post_init__(self) -> None:
        """Convert string paths to Path objects if needed."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If a value is missing or invalid.
        """
        from lotwise.core.exceptions import ConfigurationError

        if self.default_cost_basis_method not in VALID_METHODS:
            raise ConfigurationError(
                f"Invalid LOTWISE_DEFAULT_METHOD: {self.default_cost_basis_method}. "
                f"Must be one of {', '.join(VALID_METHODS)}"
            )
        if self.risk_free_rate != self.risk_free_rate:  # NaN
            raise ConfigurationError("LOTWISE_RISK_FREE_RATE must be a number")
        if self.periods_per_year <= 0:
            raise ConfigurationError("LOTWISE_PERIODS_PER_YEAR must be positive")

    def ensure_directories(self) -> None:
        """Create data directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance (CLI only)
config = Config()
