"""
SQLModel definitions for the Lotwise ledger store.

Defines the schema for:
- AssetRow: Registered assets (id, ticker, name)
- TaxLotRow: Open and closed tax lots
- RealizedGainRow: One row per recorded sale

Datetimes are stored as naive UTC.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


class AssetRow(SQLModel, table=True):
    """Registered asset."""

    __tablename__ = "assets"

    id: str = Field(primary_key=True, max_length=64)
    symbol: str = Field(index=True, max_length=16)
    name: str = Field(default="", max_length=255)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None)
    )


class TaxLotRow(SQLModel, table=True):
    """
    Individual purchase lot.

    Split remainders keep the original id; the consumed part is its own
    closed row pointing back through parent_lot_id.
    """

    __tablename__ = "tax_lots"

    id: str = Field(primary_key=True, max_length=64)
    asset_id: str = Field(index=True, max_length=64)
    sequence: int = Field(default=0, index=True)  # Creation order

    # Lot details
    quantity: Decimal = Field(max_digits=20, decimal_places=8)
    purchase_price: Decimal = Field(max_digits=20, decimal_places=8)
    purchase_date: datetime

    # Sale details (NULL while open)
    sale_date: Optional[datetime] = None
    sale_price: Optional[Decimal] = Field(default=None, max_digits=20, decimal_places=8)
    realized_gain: Optional[Decimal] = Field(default=None, max_digits=20, decimal_places=8)
    realized_gain_percent: Optional[Decimal] = Field(default=None, max_digits=20, decimal_places=8)
    holding_period_days: Optional[int] = None
    parent_lot_id: Optional[str] = Field(default=None, max_length=64)


class RealizedGainRow(SQLModel, table=True):
    """Recorded sale with its computed gain."""

    __tablename__ = "realized_gains"

    id: str = Field(primary_key=True, max_length=64)
    asset_id: str = Field(index=True, max_length=64)
    symbol: str = Field(max_length=16)
    sale_date: datetime = Field(index=True)
    sale_price: Decimal = Field(max_digits=20, decimal_places=8)
    quantity: Decimal = Field(max_digits=20, decimal_places=8)
    cost_basis: Decimal = Field(max_digits=20, decimal_places=8)
    proceeds: Decimal = Field(max_digits=20, decimal_places=8)
    realized_gain: Decimal = Field(max_digits=20, decimal_places=8)
    realized_gain_percent: Decimal = Field(max_digits=20, decimal_places=8)
    holding_period: float
    is_long_term: bool = Field(default=False)
    method: str = Field(default="FIFO", max_length=16)

    # JSON array of closed lot ids
    tax_lot_ids: str = Field(default="[]")
