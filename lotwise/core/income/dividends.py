"""
Dividend yield calculations.

Trailing yield and yield-on-cost come from the dividend events of the last
365 days. When that window holds less than a year of history the total is
annualized linearly: total * 12 / months_of_data, where months are counted
in 30-day blocks from the oldest event in the window to now. The
extrapolation ignores payout seasonality; it is kept as-is on purpose.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from lotwise.core.constants import DAYS_PER_MONTH, DIVIDEND_WINDOW_DAYS, MONTHS_PER_YEAR
from lotwise.core.lots.models import TaxLot, to_decimal, to_naive_utc
from lotwise.core.sources import Asset, DividendEvent

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class DividendYield:
    """
    Yields in percent.

    None means the input was unavailable (no price, no open lots), which is
    different from a computed 0.
    """

    annual_dividend: Decimal
    dividend_yield: Optional[Decimal]
    yield_on_cost: Optional[Decimal]
    annualized: bool = False


@dataclass
class AssetDividendIncome:
    symbol: str
    name: str
    qualified_dividends: Decimal = ZERO
    non_qualified_dividends: Decimal = ZERO
    tax_withheld: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.qualified_dividends + self.non_qualified_dividends


@dataclass
class DividendIncomeReport:
    year: int
    qualified_dividends: Decimal = ZERO
    non_qualified_dividends: Decimal = ZERO
    tax_withheld: Decimal = ZERO
    by_asset: list[AssetDividendIncome] = field(default_factory=list)

    @property
    def total_dividends(self) -> Decimal:
        return self.qualified_dividends + self.non_qualified_dividends


def quantity_held_on(lots: Iterable[TaxLot], when: datetime) -> Decimal:
    """Units held at the start of `when` (bought before it, not yet sold)."""
    cutoff = to_naive_utc(when)
    held = ZERO
    for lot in lots:
        if to_naive_utc(lot.purchase_date) >= cutoff:
            continue
        if lot.sale_date is not None and to_naive_utc(lot.sale_date) < cutoff:
            continue
        held += lot.quantity
    return held


class DividendYieldCalculator:
    """Trailing dividend yield, yield on cost, and yearly dividend income."""

    def annual_dividend(
        self, events: Sequence[DividendEvent], as_of: datetime
    ) -> tuple[Decimal, bool]:
        """
        Per-share dividend over the trailing window.

        Returns:
            (amount, annualized) where annualized tells whether the linear
            extrapolation was applied.
        """
        now = to_naive_utc(as_of)
        window_start = now - timedelta(days=DIVIDEND_WINDOW_DAYS)
        recent = [e for e in events if to_naive_utc(e.ex_date) >= window_start]
        total = sum((to_decimal(e.amount) for e in recent), ZERO)
        if not recent:
            return total, False

        oldest = min(to_naive_utc(e.ex_date) for e in recent)
        months_of_data = Decimal(str((now - oldest).total_seconds() / 86400 / DAYS_PER_MONTH))
        if 0 < months_of_data < MONTHS_PER_YEAR:
            return total * MONTHS_PER_YEAR / months_of_data, True
        return total, False

    def calculate(
        self,
        events: Sequence[DividendEvent],
        current_price: Optional[Decimal],
        purchase_price: Optional[Decimal],
        as_of: datetime,
    ) -> DividendYield:
        """
        Args:
            events: Dividend events for the asset
            current_price: Latest price, None if unavailable
            purchase_price: Average purchase price of open lots, None if none held
            as_of: Valuation time
        """
        annual, annualized = self.annual_dividend(events, as_of)
        return DividendYield(
            annual_dividend=annual,
            dividend_yield=self._yield(annual, current_price),
            yield_on_cost=self._yield(annual, purchase_price),
            annualized=annualized,
        )

    @staticmethod
    def _yield(annual: Decimal, price: Optional[Decimal]) -> Optional[Decimal]:
        if price is None:
            return None
        price = to_decimal(price)
        if price <= 0:
            return ZERO
        return annual / price * 100

    def income_report(
        self,
        year: int,
        holdings: Iterable[tuple[Asset, Sequence[TaxLot], Sequence[DividendEvent]]],
    ) -> DividendIncomeReport:
        """
        Dividend income paid during a calendar year (pay date, falling back
        to ex-date when the pay date is unknown).

        Each event pays amount * units held on its ex-date, where units held
        are reconstructed from the asset's lots (open and closed). Assets
        with no income in the year are left out.
        """
        report = DividendIncomeReport(year=year)
        for asset, lots, events in holdings:
            income = AssetDividendIncome(symbol=asset.symbol, name=asset.display_name)
            for event in events:
                paid = event.pay_date or event.ex_date
                if to_naive_utc(paid).year != year:
                    continue
                units = quantity_held_on(lots, event.ex_date)
                if units <= 0:
                    continue
                amount = to_decimal(event.amount) * units
                if event.qualified:
                    income.qualified_dividends += amount
                else:
                    income.non_qualified_dividends += amount
                income.tax_withheld += to_decimal(event.tax_withheld) * units

            if income.total > 0:
                report.by_asset.append(income)
                report.qualified_dividends += income.qualified_dividends
                report.non_qualified_dividends += income.non_qualified_dividends
                report.tax_withheld += income.tax_withheld
        return report
