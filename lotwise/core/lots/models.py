"""
Data model for tax lots and realized gains.

Defines:
- CostBasisMethod: FIFO / LIFO / specific identification
- TaxLot: a discrete purchase of an asset, open until a sale closes it
- LotConsumption: one line of a proposed consumption plan
- RealizedGainRecord: immutable result of a sale
- UnrealizedGainSnapshot: per-asset mark-to-market aggregate
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from lotwise.core.constants import LONG_TERM_THRESHOLD_DAYS


class CostBasisMethod(str, Enum):
    """Lot consumption order on sale."""

    FIFO = "FIFO"              # Oldest purchase first
    LIFO = "LIFO"              # Newest purchase first
    SPECIFIC_ID = "SPECIFIC_ID"  # Caller names the lots

    @classmethod
    def parse(cls, value: Union[str, "CostBasisMethod"]) -> "CostBasisMethod":
        """Accept an enum member or a case-insensitive name."""
        from lotwise.core.exceptions import InvalidInputError

        if isinstance(value, CostBasisMethod):
            return value
        try:
            return cls(str(value).strip().upper().replace("-", "_"))
        except ValueError:
            raise InvalidInputError(
                f"Invalid cost basis method: {value!r}. "
                f"Must be one of {', '.join(m.value for m in cls)}"
            ) from None


def to_decimal(value: Union[int, float, Decimal, str]) -> Decimal:
    """Convert a numeric value to Decimal safely."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to timezone-naive UTC.

    Naive datetimes are taken to already be UTC. Normalizing keeps
    comparisons between aware and naive values consistent.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end (UTC)."""
    return (to_naive_utc(end) - to_naive_utc(start)).days


def is_long_term_days(days: float) -> bool:
    return days > LONG_TERM_THRESHOLD_DAYS


@dataclass
class TaxLot:
    """
    Individual purchase lot.

    A lot is open while sale_date is None. It is closed exactly once by the
    ledger, after which its sale fields are frozen. When a sale consumes only
    part of a lot, the ledger shrinks the open lot and records the consumed
    part as a new closed lot whose parent_lot_id points back at it.
    """

    id: str
    asset_id: str
    quantity: Decimal
    purchase_price: Decimal
    purchase_date: datetime
    sequence: int = 0  # Creation order, used to break purchase-date ties

    sale_date: Optional[datetime] = None
    sale_price: Optional[Decimal] = None
    realized_gain: Optional[Decimal] = None
    realized_gain_percent: Optional[Decimal] = None
    holding_period_days: Optional[int] = None  # Frozen at sale time
    parent_lot_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.sale_date is None

    @property
    def cost_basis(self) -> Decimal:
        return self.purchase_price * self.quantity

    def days_held(self, as_of: datetime) -> int:
        """Holding period in days; frozen at sale for closed lots."""
        if self.holding_period_days is not None:
            return self.holding_period_days
        return days_between(self.purchase_date, as_of)

    def is_long_term(self, as_of: datetime) -> bool:
        return is_long_term_days(self.days_held(as_of))


@dataclass(frozen=True)
class LotConsumption:
    """
    One line of a consumption plan: take `quantity` from lot `lot_id`.

    purchase_price and purchase_date are copied from the lot so gain math
    never needs to reach back into the ledger.
    """

    lot_id: str
    quantity: Decimal
    purchase_price: Decimal
    purchase_date: datetime
    lot_quantity: Decimal  # Lot quantity when the plan was made

    @property
    def is_split(self) -> bool:
        return self.quantity < self.lot_quantity

    @property
    def cost_basis(self) -> Decimal:
        return self.purchase_price * self.quantity


@dataclass(frozen=True)
class RealizedGainRecord:
    """Immutable record of one sale, keyed by tax year (the UTC year of sale_date)."""

    id: str
    asset_id: str
    symbol: str
    sale_date: datetime
    sale_price: Decimal
    quantity: Decimal
    cost_basis: Decimal
    proceeds: Decimal
    realized_gain: Decimal
    realized_gain_percent: Decimal
    holding_period: float  # Quantity-weighted average days
    is_long_term: bool
    tax_lot_ids: tuple[str, ...] = field(default_factory=tuple)
    method: CostBasisMethod = CostBasisMethod.FIFO

    @property
    def tax_year(self) -> int:
        return to_naive_utc(self.sale_date).year


@dataclass(frozen=True)
class UnrealizedGainSnapshot:
    """Mark-to-market aggregate of one asset's open lots."""

    asset_id: str
    symbol: str
    quantity: Decimal
    cost_basis: Decimal
    current_price: Decimal
    current_value: Decimal
    unrealized_gain: Decimal
    unrealized_gain_percent: Decimal
    holding_period: float  # Quantity-weighted average days to now
    is_long_term: bool
