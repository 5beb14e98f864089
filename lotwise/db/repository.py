"""
SQL-backed collaborators for the engine.

SqlLedgerRepository persists LedgerState (lots and realized gains);
SqlAssetRegistry stores the asset registry. Both go through get_session(),
so every save is one transaction.
"""

import json
import logging
from typing import Optional

from sqlmodel import select

from lotwise.core.lots.ledger import LedgerState
from lotwise.core.lots.models import (
    CostBasisMethod,
    RealizedGainRecord,
    TaxLot,
    to_decimal,
    to_naive_utc,
)
from lotwise.core.sources import Asset
from lotwise.db.database import get_session, init_db
from lotwise.db.models import AssetRow, RealizedGainRow, TaxLotRow

logger = logging.getLogger(__name__)


def _optional_decimal(value):
    return to_decimal(value) if value is not None else None


def _optional_naive(value):
    return to_naive_utc(value) if value is not None else None


def lot_to_row(lot: TaxLot) -> TaxLotRow:
    return TaxLotRow(
        id=lot.id,
        asset_id=lot.asset_id,
        sequence=lot.sequence,
        quantity=lot.quantity,
        purchase_price=lot.purchase_price,
        purchase_date=to_naive_utc(lot.purchase_date),
        sale_date=_optional_naive(lot.sale_date),
        sale_price=lot.sale_price,
        realized_gain=lot.realized_gain,
        realized_gain_percent=lot.realized_gain_percent,
        holding_period_days=lot.holding_period_days,
        parent_lot_id=lot.parent_lot_id,
    )


def row_to_lot(row: TaxLotRow) -> TaxLot:
    return TaxLot(
        id=row.id,
        asset_id=row.asset_id,
        quantity=to_decimal(row.quantity),
        purchase_price=to_decimal(row.purchase_price),
        purchase_date=row.purchase_date,
        sequence=row.sequence,
        sale_date=row.sale_date,
        sale_price=_optional_decimal(row.sale_price),
        realized_gain=_optional_decimal(row.realized_gain),
        realized_gain_percent=_optional_decimal(row.realized_gain_percent),
        holding_period_days=row.holding_period_days,
        parent_lot_id=row.parent_lot_id,
    )


def record_to_row(record: RealizedGainRecord) -> RealizedGainRow:
    return RealizedGainRow(
        id=record.id,
        asset_id=record.asset_id,
        symbol=record.symbol,
        sale_date=to_naive_utc(record.sale_date),
        sale_price=record.sale_price,
        quantity=record.quantity,
        cost_basis=record.cost_basis,
        proceeds=record.proceeds,
        realized_gain=record.realized_gain,
        realized_gain_percent=record.realized_gain_percent,
        holding_period=record.holding_period,
        is_long_term=record.is_long_term,
        method=record.method.value,
        tax_lot_ids=json.dumps(list(record.tax_lot_ids)),
    )


def row_to_record(row: RealizedGainRow) -> RealizedGainRecord:
    return RealizedGainRecord(
        id=row.id,
        asset_id=row.asset_id,
        symbol=row.symbol,
        sale_date=row.sale_date,
        sale_price=to_decimal(row.sale_price),
        quantity=to_decimal(row.quantity),
        cost_basis=to_decimal(row.cost_basis),
        proceeds=to_decimal(row.proceeds),
        realized_gain=to_decimal(row.realized_gain),
        realized_gain_percent=to_decimal(row.realized_gain_percent),
        holding_period=row.holding_period,
        is_long_term=row.is_long_term,
        tax_lot_ids=tuple(json.loads(row.tax_lot_ids or "[]")),
        method=CostBasisMethod.parse(row.method),
    )


class SqlLedgerRepository:
    """
    LedgerRepository stored in the configured SQLite database.

    Lots and records are never deleted by the ledger, so save() upserts
    every row by primary key.
    """

    def __init__(self, create_tables: bool = True):
        if create_tables:
            init_db()

    def load(self) -> LedgerState:
        with get_session() as session:
            lots = session.exec(select(TaxLotRow).order_by(TaxLotRow.sequence)).all()
            records = session.exec(
                select(RealizedGainRow).order_by(RealizedGainRow.sale_date)
            ).all()
            state = LedgerState(
                lots=[row_to_lot(row) for row in lots],
                records=[row_to_record(row) for row in records],
            )
        logger.debug(f"Loaded {len(state.lots)} lots and {len(state.records)} sales")
        return state

    def save(self, state: LedgerState) -> None:
        with get_session() as session:
            for lot in state.lots:
                session.merge(lot_to_row(lot))
            for record in state.records:
                session.merge(record_to_row(record))
        logger.debug(f"Saved {len(state.lots)} lots and {len(state.records)} sales")


class SqlAssetRegistry:
    """AssetRegistry stored in the assets table."""

    def __init__(self, create_tables: bool = True):
        if create_tables:
            init_db()

    def add(self, asset_id: str, symbol: str, name: str = "") -> Asset:
        asset = Asset(id=asset_id, symbol=symbol.upper(), name=name)
        with get_session() as session:
            row = session.get(AssetRow, asset_id)
            if row is None:
                session.add(AssetRow(id=asset.id, symbol=asset.symbol, name=asset.name))
                logger.info(f"Registered asset: {asset.id} ({asset.symbol})")
            else:
                row.symbol = asset.symbol
                row.name = asset.name
                session.add(row)
        return asset

    def get(self, asset_id: str) -> Optional[Asset]:
        with get_session() as session:
            row = session.get(AssetRow, asset_id)
            if row is None:
                return None
            return Asset(id=row.id, symbol=row.symbol, name=row.name)

    def all(self) -> list[Asset]:
        with get_session() as session:
            rows = session.exec(select(AssetRow).order_by(AssetRow.id)).all()
            return [Asset(id=row.id, symbol=row.symbol, name=row.name) for row in rows]
