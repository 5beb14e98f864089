"""
Tax-year aggregation of realized gains.

Produces a TaxReport (totals split by holding period plus a per-asset
rollup) and a 1099-B style listing with one row per sale.

Wash sales are NOT detected. The WashSaleHook seam exists so a rule can be
plugged in later; the default hook disallows nothing, so wash_sales is 0.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from lotwise.core.lots.ledger import LedgerState
from lotwise.core.lots.models import RealizedGainRecord, to_naive_utc
from lotwise.core.sources import AssetRegistry

ZERO = Decimal("0")


class WashSaleHook(Protocol):
    def disallowed_loss(
        self, record: RealizedGainRecord, history: Sequence[RealizedGainRecord]
    ) -> Decimal:
        """Loss amount disallowed for `record` (0 when none)."""
        ...


class NoWashSaleAdjustment:
    """Default hook: never disallows a loss."""

    def disallowed_loss(
        self, record: RealizedGainRecord, history: Sequence[RealizedGainRecord]
    ) -> Decimal:
        return ZERO


@dataclass
class AssetGainSummary:
    """Per-symbol realized totals for one tax year."""

    realized_gains: Decimal = ZERO
    realized_losses: Decimal = ZERO  # Positive magnitude
    net_gains: Decimal = ZERO


@dataclass
class TaxReport:
    """Realized gains for one tax year."""

    year: int
    realized_gains: list[RealizedGainRecord] = field(default_factory=list)
    total_realized_gains: Decimal = ZERO
    total_realized_losses: Decimal = ZERO  # Positive magnitude
    net_realized_gains: Decimal = ZERO
    long_term_gains: Decimal = ZERO
    short_term_gains: Decimal = ZERO
    long_term_losses: Decimal = ZERO
    short_term_losses: Decimal = ZERO
    wash_sales: Decimal = ZERO
    by_asset: dict[str, AssetGainSummary] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "sales": len(self.realized_gains),
            "total_realized_gains": float(self.total_realized_gains),
            "total_realized_losses": float(self.total_realized_losses),
            "net_realized_gains": float(self.net_realized_gains),
            "long_term_gains": float(self.long_term_gains),
            "short_term_gains": float(self.short_term_gains),
            "long_term_losses": float(self.long_term_losses),
            "short_term_losses": float(self.short_term_losses),
            "wash_sales": float(self.wash_sales),
            "by_asset": {
                symbol: {
                    "realized_gains": float(s.realized_gains),
                    "realized_losses": float(s.realized_losses),
                    "net_gains": float(s.net_gains),
                }
                for symbol, s in self.by_asset.items()
            },
        }


@dataclass(frozen=True)
class Form1099BRow:
    """One line of a 1099-B style listing."""

    description: str
    date_acquired: datetime
    date_sold: datetime
    proceeds: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    short_term: bool
    wash_sale_disallowed: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "date_acquired": self.date_acquired.date().isoformat(),
            "date_sold": self.date_sold.date().isoformat(),
            "proceeds": float(self.proceeds),
            "cost_basis": float(self.cost_basis),
            "gain_loss": float(self.gain_loss),
            "short_term": self.short_term,
            "wash_sale_disallowed": float(self.wash_sale_disallowed),
        }


class TaxReportGenerator:
    """Aggregates RealizedGainRecords by tax year and by asset."""

    def __init__(
        self,
        registry: Optional[AssetRegistry] = None,
        wash_sale_hook: Optional[WashSaleHook] = None,
    ):
        self.registry = registry
        self.wash_sale_hook = wash_sale_hook or NoWashSaleAdjustment()

    def generate(self, state: LedgerState, year: int) -> TaxReport:
        """
        Build the report for sales whose sale_date falls in `year`.

        Gains and losses are partitioned by the record's long-term flag.
        net_realized_gains == total gains - total losses, which equals the
        sum of by_asset[*].net_gains.
        """
        records = state.records_for_year(year)
        report = TaxReport(year=year, realized_gains=records)

        for record in records:
            amount = record.realized_gain
            summary = report.by_asset.setdefault(record.symbol, AssetGainSummary())

            if amount > 0:
                report.total_realized_gains += amount
                summary.realized_gains += amount
                if record.is_long_term:
                    report.long_term_gains += amount
                else:
                    report.short_term_gains += amount
            elif amount < 0:
                loss = -amount
                report.total_realized_losses += loss
                summary.realized_losses += loss
                if record.is_long_term:
                    report.long_term_losses += loss
                else:
                    report.short_term_losses += loss
            summary.net_gains += amount

            report.wash_sales += self.wash_sale_hook.disallowed_loss(record, state.records)

        report.net_realized_gains = report.total_realized_gains - report.total_realized_losses
        return report

    def generate_1099b(self, state: LedgerState, year: int) -> list[Form1099BRow]:
        """One row per sale in `year`, sorted by sale date ascending."""
        rows = []
        for record in state.records_for_year(year):
            consumed = [state.lot(lot_id) for lot_id in record.tax_lot_ids]
            acquired = [lot.purchase_date for lot in consumed if lot is not None]
            date_acquired = min(acquired, key=to_naive_utc) if acquired else record.sale_date

            rows.append(
                Form1099BRow(
                    description=self._describe(record),
                    date_acquired=date_acquired,
                    date_sold=record.sale_date,
                    proceeds=record.proceeds,
                    cost_basis=record.cost_basis,
                    gain_loss=record.realized_gain,
                    short_term=not record.is_long_term,
                    wash_sale_disallowed=self.wash_sale_hook.disallowed_loss(
                        record, state.records
                    ),
                )
            )

        rows.sort(key=lambda row: to_naive_utc(row.date_sold))
        return rows

    def _describe(self, record: RealizedGainRecord) -> str:
        asset = self.registry.get(record.asset_id) if self.registry else None
        quantity = record.quantity.normalize()
        if asset is not None and asset.name:
            return f"{quantity:f} shares of {asset.name} ({record.symbol})"
        return f"{quantity:f} shares of {record.symbol}"
