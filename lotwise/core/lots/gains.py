"""
Realized and unrealized gain calculations.

RealizedGainCalculator is the only component that closes lots: it prices a
consumption plan, then closes the lots and stores the record in one ledger
transaction. UnrealizedGainCalculator is read-only over a ledger snapshot.
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional, Sequence

from lotwise.core.lots.ledger import TaxLotLedger
from lotwise.core.lots.models import (
    CostBasisMethod,
    LotConsumption,
    RealizedGainRecord,
    TaxLot,
    UnrealizedGainSnapshot,
    days_between,
    is_long_term_days,
    to_decimal,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _gain_percent(gain: Decimal, cost_basis: Decimal) -> Decimal:
    return gain / cost_basis * 100 if cost_basis > 0 else ZERO


class RealizedGainCalculator:
    """Turns a consumption plan and a sale price into a RealizedGainRecord."""

    def __init__(self, ledger: TaxLotLedger):
        self.ledger = ledger

    def compute_sale(
        self,
        plan: Sequence[LotConsumption],
        sale_price,
        sale_date: datetime,
        asset_id: str,
        symbol: str,
        method: CostBasisMethod = CostBasisMethod.FIFO,
    ) -> RealizedGainRecord:
        """
        Price the plan, close the consumed lots, and store the record.

        cost_basis = sum(purchase_price * consumed quantity)
        proceeds = sale_price * total quantity
        holding_period = quantity-weighted mean days held
        """
        price = to_decimal(sale_price)
        quantity = sum((item.quantity for item in plan), ZERO)
        cost_basis = sum((item.cost_basis for item in plan), ZERO)
        proceeds = price * quantity
        realized_gain = proceeds - cost_basis

        weighted_days = sum(
            (Decimal(days_between(item.purchase_date, sale_date)) * item.quantity for item in plan),
            ZERO,
        )
        holding_period = float(weighted_days / quantity) if quantity > 0 else 0.0

        with self.ledger.transaction():
            closed_ids = self.ledger.close_lots(plan, sale_date, price)
            record = RealizedGainRecord(
                id=str(uuid.uuid4()),
                asset_id=asset_id,
                symbol=symbol,
                sale_date=sale_date,
                sale_price=price,
                quantity=quantity,
                cost_basis=cost_basis,
                proceeds=proceeds,
                realized_gain=realized_gain,
                realized_gain_percent=_gain_percent(realized_gain, cost_basis),
                holding_period=holding_period,
                is_long_term=is_long_term_days(holding_period),
                tax_lot_ids=tuple(closed_ids),
                method=method,
            )
            self.ledger.add_record(record)

        logger.info(
            f"Sale recorded: {quantity} {symbol} @ {price} "
            f"(basis {cost_basis}, gain {realized_gain}, {len(plan)} lots)"
        )
        return record


class UnrealizedGainCalculator:
    """Mark-to-market gain on open lots, one snapshot per priced asset."""

    def calculate(
        self,
        open_lots: Iterable[TaxLot],
        symbols: Mapping[str, str],
        price_for: Callable[[str], Optional[Decimal]],
        as_of: datetime,
    ) -> list[UnrealizedGainSnapshot]:
        """
        Args:
            open_lots: Open lots across all assets
            symbols: asset_id -> symbol
            price_for: Current price lookup by symbol; None means unavailable
            as_of: "Now" for holding periods

        Returns:
            Snapshots for assets with open lots and a known price. Assets
            without a price are skipped, never valued at zero.
        """
        by_asset: dict[str, list[TaxLot]] = defaultdict(list)
        for lot in open_lots:
            if lot.is_open:
                by_asset[lot.asset_id].append(lot)

        snapshots = []
        for asset_id, lots in by_asset.items():
            symbol = symbols.get(asset_id, asset_id)
            price = price_for(symbol)
            if price is None:
                logger.info(f"No current price for {symbol}; skipping unrealized gain")
                continue
            snapshots.append(self.aggregate(asset_id, symbol, lots, to_decimal(price), as_of))
        return snapshots

    @staticmethod
    def aggregate(
        asset_id: str,
        symbol: str,
        lots: Sequence[TaxLot],
        price: Decimal,
        as_of: datetime,
    ) -> UnrealizedGainSnapshot:
        quantity = sum((lot.quantity for lot in lots), ZERO)
        cost_basis = sum((lot.cost_basis for lot in lots), ZERO)
        current_value = price * quantity
        unrealized_gain = current_value - cost_basis

        weighted_days = sum(
            (Decimal(days_between(lot.purchase_date, as_of)) * lot.quantity for lot in lots),
            ZERO,
        )
        holding_period = float(weighted_days / quantity) if quantity > 0 else 0.0

        return UnrealizedGainSnapshot(
            asset_id=asset_id,
            symbol=symbol,
            quantity=quantity,
            cost_basis=cost_basis,
            current_price=price,
            current_value=current_value,
            unrealized_gain=unrealized_gain,
            unrealized_gain_percent=_gain_percent(unrealized_gain, cost_basis),
            holding_period=holding_period,
            is_long_term=is_long_term_days(holding_period),
        )
