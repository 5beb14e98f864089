"""
Cost basis engine: the facade the CLI and other callers use.

Provides:
- Purchase and sale recording with FIFO/LIFO/specific-ID lot matching
- Realized gain records and tax-year reports (including 1099-B rows)
- Unrealized gains and tax-loss harvesting suggestions
- Dividend yield, yield on cost, and yearly dividend income
- Performance metrics and benchmark comparison

One engine owns one ledger. Sales on the same asset are serialized; sales on
different assets run independently. Reports and analytics work on a ledger
snapshot taken up front.
"""

import logging
import threading
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Sequence, Union

from lotwise.core.constants import DEFAULT_PERIOD, DIVIDEND_WINDOW_DAYS
from lotwise.core.exceptions import AssetNotFoundError, InvalidInputError
from lotwise.core.income.dividends import (
    DividendIncomeReport,
    DividendYield,
    DividendYieldCalculator,
)
from lotwise.core.lots.gains import RealizedGainCalculator, UnrealizedGainCalculator
from lotwise.core.lots.ledger import Clock, TaxLotLedger
from lotwise.core.lots.models import (
    CostBasisMethod,
    RealizedGainRecord,
    TaxLot,
    UnrealizedGainSnapshot,
    to_decimal,
    to_naive_utc,
)
from lotwise.core.lots.selector import CostBasisSelector
from lotwise.core.performance.analyzer import (
    AssetContribution,
    BenchmarkComparison,
    PerformanceMetrics,
    PortfolioPerformanceAnalyzer,
)
from lotwise.core.sources import (
    Asset,
    AssetRegistry,
    DividendEvent,
    DividendSource,
    LedgerRepository,
    PriceSource,
)
from lotwise.core.tax.harvesting import HarvestingRecommendation, TaxLossHarvestingAdvisor
from lotwise.core.tax.report import Form1099BRow, TaxReport, TaxReportGenerator, WashSaleHook

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal, str]


class CostBasisEngine:
    """
    Facade over the ledger and its calculators.

    Args:
        registry: Known assets (symbol and name per asset id)
        price_source: Current prices and return history; optional
        dividend_source: Dividend events; optional
        repository: Loaded at construction and saved after every change; optional
        clock: Returns "now"; defaults to the UTC wall clock
        default_method: Lot matching method when a sale names none
        risk_free_rate: Annual fraction used by Sharpe and Sortino
        periods_per_year: Frequency of return series from the price source
        default_benchmark: Benchmark symbol when a caller names none
        wash_sale_hook: Wash-sale rule for tax reports (default: none)
    """

    def __init__(
        self,
        registry: AssetRegistry,
        price_source: Optional[PriceSource] = None,
        dividend_source: Optional[DividendSource] = None,
        repository: Optional[LedgerRepository] = None,
        clock: Optional[Clock] = None,
        default_method: Union[str, CostBasisMethod] = CostBasisMethod.FIFO,
        risk_free_rate: float = 0.02,
        periods_per_year: int = 252,
        default_benchmark: Optional[str] = "SPY",
        wash_sale_hook: Optional[WashSaleHook] = None,
    ):
        self.registry = registry
        self.price_source = price_source
        self.dividend_source = dividend_source
        self.repository = repository
        self._persist_lock = threading.Lock()
        self._default_method = CostBasisMethod.parse(default_method)
        self.default_benchmark = default_benchmark

        if repository is not None:
            self.ledger = TaxLotLedger.from_state(repository.load(), clock=clock)
        else:
            self.ledger = TaxLotLedger(clock=clock)

        self.selector = CostBasisSelector()
        self.realized = RealizedGainCalculator(self.ledger)
        self.unrealized = UnrealizedGainCalculator()
        self.reports = TaxReportGenerator(registry=registry, wash_sale_hook=wash_sale_hook)
        self.harvester = TaxLossHarvestingAdvisor()
        self.dividends = DividendYieldCalculator()
        self.analyzer = PortfolioPerformanceAnalyzer(
            price_source,
            risk_free_rate=risk_free_rate,
            periods_per_year=periods_per_year,
        )

    @classmethod
    def from_config(cls, cfg, registry: AssetRegistry, **kwargs) -> "CostBasisEngine":
        """Build an engine from a lotwise.config.Config."""
        cfg.validate()
        kwargs.setdefault("default_method", cfg.default_cost_basis_method)
        kwargs.setdefault("risk_free_rate", cfg.risk_free_rate)
        kwargs.setdefault("periods_per_year", cfg.periods_per_year)
        kwargs.setdefault("default_benchmark", cfg.default_benchmark)
        return cls(registry, **kwargs)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def default_method(self) -> CostBasisMethod:
        return self._default_method

    def set_default_method(self, method: Union[str, CostBasisMethod]) -> None:
        self._default_method = CostBasisMethod.parse(method)

    def set_risk_free_rate(self, rate: float) -> None:
        self.analyzer.risk_free_rate = rate

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def record_purchase(
        self,
        asset_id: str,
        quantity: Number,
        price: Number,
        date: Optional[datetime] = None,
    ) -> TaxLot:
        """
        Record a purchase as a new open tax lot.

        Raises:
            AssetNotFoundError: Unknown asset id
            InvalidInputError: Non-positive quantity/price or future date
        """
        asset = self._require_asset(asset_id)
        lot = self.ledger.add_lot(asset_id, quantity, price, date or self.ledger.now())
        logger.info(f"Purchase recorded: {lot.quantity} {asset.symbol} @ {lot.purchase_price}")
        self._persist()
        return lot

    def record_sale(
        self,
        asset_id: str,
        symbol: Optional[str],
        quantity: Number,
        price: Number,
        date: Optional[datetime] = None,
        method: Optional[Union[str, CostBasisMethod]] = None,
        specific_lot_ids: Optional[Sequence[str]] = None,
    ) -> RealizedGainRecord:
        """
        Record a sale: select lots, compute the gain, and close the lots.

        Runs as one exclusive unit per asset. Nothing changes when it fails.

        Args:
            asset_id: Asset being sold
            symbol: Ticker for the record (defaults to the registry symbol)
            quantity: Units sold
            price: Sale price per unit
            date: Sale date (defaults to now)
            method: FIFO, LIFO or SPECIFIC_ID (defaults to default_method)
            specific_lot_ids: Lots to consume, in order (SPECIFIC_ID)

        Raises:
            AssetNotFoundError, InvalidInputError,
            InsufficientLotsError, LotNotFoundError
        """
        asset = self._require_asset(asset_id)
        sale_price = to_decimal(price)
        if sale_price <= 0:
            raise InvalidInputError("Sale price must be positive")
        chosen = CostBasisMethod.parse(method) if method is not None else self._default_method
        sale_date = date or self.ledger.now()

        with self.ledger.asset_lock(asset_id):
            plan = self.selector.select(
                self.ledger.open_lots(asset_id),
                quantity,
                chosen,
                specific_lot_ids=specific_lot_ids,
                asset_id=asset_id,
            )
            for item in plan:
                if to_naive_utc(item.purchase_date) > to_naive_utc(sale_date):
                    raise InvalidInputError(
                        f"Sale date {sale_date.isoformat()} precedes purchase of lot {item.lot_id}"
                    )
            record = self.realized.compute_sale(
                plan,
                sale_price,
                sale_date,
                asset_id=asset_id,
                symbol=(symbol or asset.symbol).upper(),
                method=chosen,
            )

        self._persist()
        return record

    # ------------------------------------------------------------------
    # Lots and gains
    # ------------------------------------------------------------------

    def lots(self, asset_id: str, include_closed: bool = False) -> list[TaxLot]:
        self._require_asset(asset_id)
        return self.ledger.lots(asset_id, include_closed=include_closed)

    def holding_quantity(self, asset_id: str) -> Decimal:
        self._require_asset(asset_id)
        return self.ledger.open_quantity(asset_id)

    def realized_gains(self, year: Optional[int] = None) -> list[RealizedGainRecord]:
        return self.ledger.records(year)

    def calculate_unrealized_gains(self) -> list[UnrealizedGainSnapshot]:
        state = self.ledger.snapshot()
        symbols = {asset.id: asset.symbol for asset in self.registry.all()}
        return self.unrealized.calculate(
            state.open_lots(), symbols, self._current_price, self.ledger.now()
        )

    # ------------------------------------------------------------------
    # Tax reporting
    # ------------------------------------------------------------------

    def generate_tax_report(self, year: int) -> TaxReport:
        return self.reports.generate(self.ledger.snapshot(), year)

    def generate_1099b(self, year: int) -> list[Form1099BRow]:
        return self.reports.generate_1099b(self.ledger.snapshot(), year)

    def suggest_tax_loss_harvesting(self) -> list[HarvestingRecommendation]:
        return self.harvester.suggest(self.calculate_unrealized_gains())

    # ------------------------------------------------------------------
    # Dividends
    # ------------------------------------------------------------------

    def calculate_dividend_yield(self, asset_id: str) -> DividendYield:
        """
        Trailing dividend yield and yield on cost for one asset.

        Yield on cost uses the quantity-weighted purchase price of the open
        lots. A yield is None when its price input is unavailable.
        """
        asset = self._require_asset(asset_id)
        now = self.ledger.now()
        events = self._dividend_events(asset.symbol, now - timedelta(days=DIVIDEND_WINDOW_DAYS))

        open_lots = self.ledger.open_lots(asset_id)
        quantity = sum((lot.quantity for lot in open_lots), Decimal("0"))
        purchase_price = (
            sum((lot.cost_basis for lot in open_lots), Decimal("0")) / quantity
            if quantity > 0
            else None
        )

        if events is None:
            return DividendYield(annual_dividend=Decimal("0"), dividend_yield=None, yield_on_cost=None)
        return self.dividends.calculate(
            events, self._current_price(asset.symbol), purchase_price, now
        )

    def dividend_income_report(self, year: int) -> DividendIncomeReport:
        """Dividend income paid in `year`, scaled by units held on each ex-date."""
        state = self.ledger.snapshot()
        since = datetime(year, 1, 1) - timedelta(days=90)  # Late ex-dates paid in January
        holdings = []
        for asset in self.registry.all():
            lots = state.lots_for(asset.id, include_closed=True)
            if not lots:
                continue
            events = self._dividend_events(asset.symbol, since)
            if events:
                holdings.append((asset, lots, events))
        return self.dividends.income_report(year, holdings)

    # ------------------------------------------------------------------
    # Performance
    # ------------------------------------------------------------------

    def calculate_performance_metrics(
        self,
        period: str = DEFAULT_PERIOD,
        benchmark_symbol: Optional[str] = None,
    ) -> PerformanceMetrics:
        positions = self.calculate_unrealized_gains()
        return self.analyzer.calculate(
            positions, period, benchmark_symbol or self.default_benchmark
        )

    def compare_to_benchmark(
        self,
        period: str = DEFAULT_PERIOD,
        benchmark_symbol: Optional[str] = None,
    ) -> Optional[BenchmarkComparison]:
        symbol = benchmark_symbol or self.default_benchmark
        if not symbol:
            return None
        returns = self.analyzer.portfolio_returns(self.calculate_unrealized_gains(), period)
        if returns is None:
            return None
        return self.analyzer.compare(returns, symbol, period)

    def calculate_performance_attribution(self) -> list[AssetContribution]:
        return self.analyzer.attribution(self.calculate_unrealized_gains())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Write the current ledger state to the repository, if any."""
        self._persist()

    def _persist(self) -> None:
        if self.repository is None:
            return
        try:
            # Saved states never go backwards
            with self._persist_lock:
                self.repository.save(self.ledger.snapshot())
        except Exception as e:
            logger.error("Failed to save ledger state: %s", str(e), exc_info=True)
            raise

    # ------------------------------------------------------------------
    # Collaborator access
    # ------------------------------------------------------------------

    def _require_asset(self, asset_id: str) -> Asset:
        asset = self.registry.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _current_price(self, symbol: str) -> Optional[Decimal]:
        if self.price_source is None:
            return None
        try:
            price = self.price_source.current_price(symbol)
        except Exception as e:
            logger.warning(f"Failed to fetch price for {symbol}: {e}")
            return None
        return to_decimal(price) if price is not None else None

    def _dividend_events(self, symbol: str, since: datetime) -> Optional[list[DividendEvent]]:
        if self.dividend_source is None:
            return None
        try:
            return list(self.dividend_source.events(symbol, since))
        except Exception as e:
            logger.warning(f"Failed to fetch dividends for {symbol}: {e}")
            return None
