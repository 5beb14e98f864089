"""
Tax lot ledger: the single in-memory source of truth for lots and sales.

Owns every TaxLot per asset plus the realized-gain records produced by sales.
Writers serialize per asset through asset_lock(); mutations that must appear
atomically to readers (closing lots and appending the sale record) run inside
transaction(). snapshot() copies state under the same lock, so readers never
observe a sale mid-flight.
"""

import itertools
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Optional, Sequence

from lotwise.core.exceptions import (
    InvalidInputError,
    LotAlreadyClosedError,
    LotNotFoundError,
)
from lotwise.core.lots.models import (
    LotConsumption,
    RealizedGainRecord,
    TaxLot,
    days_between,
    to_decimal,
    to_naive_utc,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LedgerState:
    """Plain copy of everything the ledger owns (used for snapshots and storage)."""

    lots: list[TaxLot] = field(default_factory=list)
    records: list[RealizedGainRecord] = field(default_factory=list)

    def lots_for(self, asset_id: str, include_closed: bool = False) -> list[TaxLot]:
        return [
            lot for lot in self.lots
            if lot.asset_id == asset_id and (include_closed or lot.is_open)
        ]

    def open_lots(self) -> list[TaxLot]:
        return [lot for lot in self.lots if lot.is_open]

    def records_for_year(self, year: int) -> list[RealizedGainRecord]:
        return [r for r in self.records if r.tax_year == year]

    def lot(self, lot_id: str) -> Optional[TaxLot]:
        for lot in self.lots:
            if lot.id == lot_id:
                return lot
        return None


class TaxLotLedger:
    """
    Collection of tax lots per asset.

    Pure bookkeeping: it validates and stores, but never decides which lots
    a sale consumes (see CostBasisSelector) or what the gain is.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utc_now
        self._lots: dict[str, list[TaxLot]] = {}
        self._by_id: dict[str, TaxLot] = {}
        self._records: list[RealizedGainRecord] = []
        self._sequence = itertools.count(1)

        self._commit_lock = threading.RLock()
        self._asset_locks: dict[str, threading.Lock] = {}
        self._asset_locks_guard = threading.Lock()

    @classmethod
    def from_state(cls, state: LedgerState, clock: Optional[Clock] = None) -> "TaxLotLedger":
        """Rebuild a ledger from a stored state, preserving lot order."""
        ledger = cls(clock=clock)
        max_sequence = 0
        for lot in sorted(state.lots, key=lambda l: l.sequence):
            stored = replace(lot)
            ledger._lots.setdefault(stored.asset_id, []).append(stored)
            ledger._by_id[stored.id] = stored
            max_sequence = max(max_sequence, stored.sequence)
        ledger._records = list(state.records)
        ledger._sequence = itertools.count(max_sequence + 1)
        return ledger

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def asset_lock(self, asset_id: str) -> Iterator[None]:
        """Exclusive section for all writes to one asset's lots."""
        with self._asset_locks_guard:
            lock = self._asset_locks.setdefault(asset_id, threading.Lock())
        with lock:
            yield

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group mutations so snapshot() sees all of them or none."""
        with self._commit_lock:
            yield

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_lot(
        self,
        asset_id: str,
        quantity,
        purchase_price,
        purchase_date: datetime,
    ) -> TaxLot:
        """
        Create an open lot.

        Raises:
            InvalidInputError: If quantity or price is not positive, or the
                purchase date is in the future.
        """
        qty = to_decimal(quantity)
        price = to_decimal(purchase_price)

        if qty <= 0:
            raise InvalidInputError("Quantity must be positive for purchases")
        if price <= 0:
            raise InvalidInputError("Purchase price must be positive")
        if to_naive_utc(purchase_date) > to_naive_utc(self._clock()):
            raise InvalidInputError(
                f"Purchase date {purchase_date.isoformat()} is in the future"
            )

        with self.asset_lock(asset_id), self._commit_lock:
            lot = TaxLot(
                id=str(uuid.uuid4()),
                asset_id=asset_id,
                quantity=qty,
                purchase_price=price,
                purchase_date=purchase_date,
                sequence=next(self._sequence),
            )
            self._lots.setdefault(asset_id, []).append(lot)
            self._by_id[lot.id] = lot

        logger.debug(f"Lot {lot.id} created: {qty} of {asset_id} @ {price}")
        return replace(lot)

    def close_lots(
        self,
        plan: Sequence[LotConsumption],
        sale_date: datetime,
        sale_price,
    ) -> list[str]:
        """
        Apply a consumption plan to the exact lots it names.

        Fully consumed lots are closed in place. Partially consumed lots are
        shrunk and the consumed part is recorded as a new closed lot.

        The whole plan is checked before anything changes: if any lot is
        already closed, or no longer has the quantity the plan was made
        against, nothing is modified.

        Returns:
            Ids of the closed lots, in plan order.

        Raises:
            LotNotFoundError: If a lot id is unknown.
            LotAlreadyClosedError: If the plan is stale.
        """
        price = to_decimal(sale_price)

        with self._commit_lock:
            targets = []
            for item in plan:
                lot = self._by_id.get(item.lot_id)
                if lot is None:
                    raise LotNotFoundError(item.lot_id)
                if not lot.is_open or lot.quantity != item.lot_quantity:
                    raise LotAlreadyClosedError(item.lot_id)
                if item.quantity <= 0 or item.quantity > lot.quantity:
                    raise LotAlreadyClosedError(item.lot_id)
                targets.append((lot, item))

            if len({lot.id for lot, _ in targets}) != len(targets):
                raise InvalidInputError("Consumption plan names the same lot twice")

            closed_ids = []
            for lot, item in targets:
                if item.quantity == lot.quantity:
                    self._apply_sale(lot, sale_date, price)
                    closed_ids.append(lot.id)
                else:
                    lot.quantity -= item.quantity
                    part = TaxLot(
                        id=str(uuid.uuid4()),
                        asset_id=lot.asset_id,
                        quantity=item.quantity,
                        purchase_price=lot.purchase_price,
                        purchase_date=lot.purchase_date,
                        sequence=lot.sequence,
                        parent_lot_id=lot.id,
                    )
                    self._apply_sale(part, sale_date, price)
                    self._lots[lot.asset_id].append(part)
                    self._by_id[part.id] = part
                    closed_ids.append(part.id)
            return closed_ids

    @staticmethod
    def _apply_sale(lot: TaxLot, sale_date: datetime, sale_price: Decimal) -> None:
        lot.sale_date = sale_date
        lot.sale_price = sale_price
        lot.realized_gain = (sale_price - lot.purchase_price) * lot.quantity
        lot.realized_gain_percent = (
            (sale_price - lot.purchase_price) / lot.purchase_price * 100
            if lot.purchase_price > 0
            else Decimal("0")
        )
        lot.holding_period_days = days_between(lot.purchase_date, sale_date)

    def add_record(self, record: RealizedGainRecord) -> None:
        with self._commit_lock:
            self._records.append(record)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def open_lots(self, asset_id: str) -> list[TaxLot]:
        """Copies of the asset's open lots in creation order."""
        with self._commit_lock:
            return [replace(lot) for lot in self._lots.get(asset_id, []) if lot.is_open]

    def lots(self, asset_id: str, include_closed: bool = False) -> list[TaxLot]:
        with self._commit_lock:
            return [
                replace(lot)
                for lot in self._lots.get(asset_id, [])
                if include_closed or lot.is_open
            ]

    def get_lot(self, lot_id: str) -> Optional[TaxLot]:
        with self._commit_lock:
            lot = self._by_id.get(lot_id)
            return replace(lot) if lot is not None else None

    def open_quantity(self, asset_id: str) -> Decimal:
        return sum((lot.quantity for lot in self.open_lots(asset_id)), Decimal("0"))

    def asset_ids(self) -> list[str]:
        with self._commit_lock:
            return list(self._lots)

    def records(self, year: Optional[int] = None) -> list[RealizedGainRecord]:
        with self._commit_lock:
            if year is None:
                return list(self._records)
            return [r for r in self._records if r.tax_year == year]

    def snapshot(self) -> LedgerState:
        """Consistent copy of all lots and records."""
        with self._commit_lock:
            lots: Iterable[TaxLot] = itertools.chain.from_iterable(self._lots.values())
            return LedgerState(
                lots=[replace(lot) for lot in lots],
                records=list(self._records),
            )

    def now(self) -> datetime:
        return self._clock()
