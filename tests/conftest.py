"""
Pytest configuration and shared fixtures for Lotwise tests.

Provides a fixed clock, an asset registry, static price/dividend sources,
an engine wired to them, and a temporary SQLite database.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest

from lotwise.core.engine import CostBasisEngine
from lotwise.core.lots.ledger import TaxLotLedger
from lotwise.core.sources import (
    InMemoryAssetRegistry,
    InMemoryRepository,
    StaticDividendSource,
    StaticPriceSource,
)

# "Now" for every test that uses the clock fixture
NOW = datetime(2024, 12, 31, 12, 0, tzinfo=timezone.utc)


def day(year: int, month: int, dom: int) -> datetime:
    """Midnight UTC on the given date."""
    return datetime(year, month, dom, tzinfo=timezone.utc)


# ==============================================================================
# Autouse Fixtures - Run automatically for all tests
# ==============================================================================


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of a developer's .env settings."""
    for name in (
        "LOTWISE_DEFAULT_METHOD",
        "LOTWISE_RISK_FREE_RATE",
        "LOTWISE_PERIODS_PER_YEAR",
        "LOTWISE_BENCHMARK",
        "LOTWISE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# ==============================================================================
# Engine Fixtures
# ==============================================================================


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def registry() -> InMemoryAssetRegistry:
    registry = InMemoryAssetRegistry()
    registry.add("aapl", "AAPL", "Apple Inc.")
    registry.add("msft", "MSFT", "Microsoft Corporation")
    registry.add("ko", "KO", "Coca-Cola Company")
    return registry


@pytest.fixture
def prices() -> StaticPriceSource:
    return StaticPriceSource({"AAPL": 150, "MSFT": 300, "KO": 60})


@pytest.fixture
def dividends() -> StaticDividendSource:
    return StaticDividendSource()


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def engine(registry, prices, dividends, repository, clock) -> CostBasisEngine:
    return CostBasisEngine(
        registry,
        price_source=prices,
        dividend_source=dividends,
        repository=repository,
        clock=clock,
    )


@pytest.fixture
def ledger(clock) -> TaxLotLedger:
    return TaxLotLedger(clock=clock)


# ==============================================================================
# Database Fixtures
# ==============================================================================


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test_lotwise.db"


@pytest.fixture
def tmp_db(tmp_db_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """
    Set up a temporary database for testing.

    Patches the config singleton (read at import time) and initializes the schema.
    """
    monkeypatch.setenv("LOTWISE_DB_PATH", str(tmp_db_path))

    from lotwise.config import config

    monkeypatch.setattr(config, "db_path", tmp_db_path)

    from lotwise.db.database import reset_engine

    reset_engine()

    from lotwise.db import init_db

    init_db()

    yield tmp_db_path

    reset_engine()
    if tmp_db_path.exists():
        tmp_db_path.unlink()
