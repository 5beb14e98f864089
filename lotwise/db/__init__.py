"""
Database module for Lotwise.

Provides SQLModel definitions, connection management, and the SQL-backed
ledger repository and asset registry.
"""

from lotwise.db.database import get_engine, get_session, init_db, reset_engine
from lotwise.db.models import AssetRow, RealizedGainRow, TaxLotRow
from lotwise.db.repository import SqlAssetRegistry, SqlLedgerRepository

__all__ = [
    # Models
    "AssetRow",
    "TaxLotRow",
    "RealizedGainRow",
    # Repositories
    "SqlAssetRegistry",
    "SqlLedgerRepository",
    # Database
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
