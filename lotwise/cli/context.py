"""Builds the engine the CLI commands work against."""

from decimal import Decimal
from typing import Mapping, Optional

from lotwise.config import config
from lotwise.core.engine import CostBasisEngine
from lotwise.core.sources import StaticPriceSource
from lotwise.db.repository import SqlAssetRegistry, SqlLedgerRepository


def open_engine(prices: Optional[Mapping[str, Decimal]] = None) -> CostBasisEngine:
    """
    Engine backed by the SQLite database at config.db_path.

    The CLI has no market data feed; current prices come from the command
    line (--price SYMBOL=PRICE).
    """
    return CostBasisEngine.from_config(
        config,
        SqlAssetRegistry(),
        repository=SqlLedgerRepository(),
        price_source=StaticPriceSource(prices or {}),
    )
