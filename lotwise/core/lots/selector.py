"""
Cost basis lot selection.

Selection is a pure function of the open lots: it returns a consumption
plan and never touches the ledger. The ledger applies the plan in a single
step (TaxLotLedger.close_lots).
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from lotwise.core.exceptions import (
    InsufficientLotsError,
    InvalidInputError,
    LotNotFoundError,
)
from lotwise.core.lots.models import (
    CostBasisMethod,
    LotConsumption,
    TaxLot,
    to_decimal,
    to_naive_utc,
)

logger = logging.getLogger(__name__)


class CostBasisSelector:
    """
    Chooses which open lots satisfy a sale.

    FIFO consumes the oldest purchases first, LIFO the newest. Lots with
    the same purchase date keep their creation order under both methods.
    Specific identification consumes the named lots in the order given.
    """

    def select(
        self,
        open_lots: Sequence[TaxLot],
        quantity,
        method: CostBasisMethod,
        specific_lot_ids: Optional[Sequence[str]] = None,
        asset_id: Optional[str] = None,
    ) -> list[LotConsumption]:
        """
        Build a consumption plan for `quantity` units.

        Args:
            open_lots: The asset's open lots (any order)
            quantity: Units to sell
            method: FIFO, LIFO or SPECIFIC_ID
            specific_lot_ids: Lot ids, in consumption order (SPECIFIC_ID only)
            asset_id: Used in error messages

        Returns:
            One LotConsumption per lot touched; the last may be a split

        Raises:
            InvalidInputError: Non-positive quantity or missing lot ids
            InsufficientLotsError: Open (or named) quantity is too small
            LotNotFoundError: A named lot is missing or closed
        """
        method = CostBasisMethod.parse(method)
        qty = to_decimal(quantity)
        if qty <= 0:
            raise InvalidInputError("Quantity must be positive for sales")

        lots = [lot for lot in open_lots if lot.is_open]
        asset_label = asset_id or (lots[0].asset_id if lots else "asset")

        available = sum((lot.quantity for lot in lots), Decimal("0"))
        if available < qty:
            raise InsufficientLotsError(asset_label, qty, available)

        if method is CostBasisMethod.SPECIFIC_ID:
            ordered = self._specific_order(lots, specific_lot_ids)
        else:
            ordered = self._ordered(lots, method)

        plan = []
        remaining = qty
        for lot in ordered:
            if remaining <= 0:
                break
            take = min(lot.quantity, remaining)
            plan.append(
                LotConsumption(
                    lot_id=lot.id,
                    quantity=take,
                    purchase_price=lot.purchase_price,
                    purchase_date=lot.purchase_date,
                    lot_quantity=lot.quantity,
                )
            )
            remaining -= take

        if remaining > 0:
            # Only reachable for SPECIFIC_ID: the named lots are too small
            raise InsufficientLotsError(asset_label, qty, qty - remaining)

        logger.debug(
            f"{method.value} plan for {qty} of {asset_label}: "
            f"{[(c.lot_id, str(c.quantity)) for c in plan]}"
        )
        return plan

    @staticmethod
    def _ordered(lots: Sequence[TaxLot], method: CostBasisMethod) -> list[TaxLot]:
        if method is CostBasisMethod.FIFO:
            return sorted(
                lots, key=lambda lot: (to_naive_utc(lot.purchase_date), lot.sequence)
            )
        # LIFO: newest date first; equal dates stay in creation order
        by_creation = sorted(lots, key=lambda lot: lot.sequence)
        return sorted(
            by_creation, key=lambda lot: to_naive_utc(lot.purchase_date), reverse=True
        )

    @staticmethod
    def _specific_order(
        lots: Sequence[TaxLot], specific_lot_ids: Optional[Sequence[str]]
    ) -> list[TaxLot]:
        if not specific_lot_ids:
            raise InvalidInputError("SPECIFIC_ID sales require at least one lot id")
        if len(set(specific_lot_ids)) != len(specific_lot_ids):
            raise InvalidInputError("Duplicate lot ids in specific identification")

        by_id = {lot.id: lot for lot in lots}
        ordered = []
        for lot_id in specific_lot_ids:
            lot = by_id.get(lot_id)
            if lot is None:
                raise LotNotFoundError(lot_id, "not found or already closed")
            ordered.append(lot)
        return ordered
