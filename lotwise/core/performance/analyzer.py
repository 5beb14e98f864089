"""
Portfolio performance analytics.

Computes return, volatility, Sharpe/Sortino, drawdown, VaR, and
benchmark-relative alpha/beta for the open positions.

The portfolio return series is the current-market-value weighted blend of
each held symbol's return series, trimmed to the most recent common length.
Symbols whose history cannot be fetched are dropped and the remaining
weights renormalized. Every optional metric is None when its inputs are
missing; a failed lookup never aborts the whole calculation.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

import pandas as pd

from lotwise.core.constants import DEFAULT_PERIOD, PERIOD_YEARS, VAR_CONFIDENCE_LEVELS
from lotwise.core.exceptions import InvalidInputError
from lotwise.core.lots.models import UnrealizedGainSnapshot
from lotwise.core.performance import stats
from lotwise.core.sources import PriceSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkComparison:
    """Portfolio vs benchmark over the same periods (returns in percent)."""

    benchmark_symbol: str
    portfolio_return: float
    benchmark_return: float
    excess_return: float
    observations: int
    beta: Optional[float] = None
    tracking_error: Optional[float] = None
    information_ratio: Optional[float] = None


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Performance summary. Optional fields are None for "insufficient data",
    never 0 standing in for unknown.
    """

    total_return: float
    total_return_percent: float
    annualized_return: float
    sharpe_ratio: Optional[float] = None
    sortino_ratio: Optional[float] = None
    alpha: Optional[float] = None
    beta: Optional[float] = None
    volatility: Optional[float] = None
    max_drawdown: Optional[float] = None
    max_drawdown_percent: Optional[float] = None
    var95: Optional[float] = None
    var99: Optional[float] = None
    benchmark: Optional[BenchmarkComparison] = None

    def to_dict(self) -> dict:
        data = {
            key: getattr(self, key)
            for key in (
                "total_return", "total_return_percent", "annualized_return",
                "sharpe_ratio", "sortino_ratio", "alpha", "beta", "volatility",
                "max_drawdown", "max_drawdown_percent", "var95", "var99",
            )
        }
        if self.benchmark is not None:
            data["benchmark"] = {
                "symbol": self.benchmark.benchmark_symbol,
                "portfolio_return": self.benchmark.portfolio_return,
                "benchmark_return": self.benchmark.benchmark_return,
                "excess_return": self.benchmark.excess_return,
                "tracking_error": self.benchmark.tracking_error,
                "information_ratio": self.benchmark.information_ratio,
            }
        return data


@dataclass(frozen=True)
class AssetContribution:
    """One asset's share of the portfolio's unrealized return."""

    asset_id: str
    symbol: str
    weight_percent: float
    return_amount: float
    return_percent: float
    contribution_percent: float  # weight * return_percent


def period_years(period: str) -> float:
    try:
        return PERIOD_YEARS[period.upper()]
    except KeyError:
        raise InvalidInputError(
            f"Unknown period: {period!r}. Must be one of {', '.join(PERIOD_YEARS)}"
        ) from None


class PortfolioPerformanceAnalyzer:
    """
    Risk and return metrics for a set of priced positions.

    Args:
        price_source: Supplies historical return series per symbol
        risk_free_rate: Annual risk-free rate as a fraction (0.02 = 2%)
        periods_per_year: Frequency of the return series (252 for daily)
    """

    def __init__(
        self,
        price_source: Optional[PriceSource],
        risk_free_rate: float = 0.02,
        periods_per_year: int = 252,
    ):
        self.price_source = price_source
        self.risk_free_rate = risk_free_rate
        self.periods_per_year = periods_per_year

    def calculate(
        self,
        positions: Sequence[UnrealizedGainSnapshot],
        period: str = DEFAULT_PERIOD,
        benchmark_symbol: Optional[str] = None,
    ) -> PerformanceMetrics:
        years = period_years(period)
        if not positions:
            return PerformanceMetrics(total_return=0.0, total_return_percent=0.0, annualized_return=0.0)

        cost_basis = float(sum((p.cost_basis for p in positions), Decimal("0")))
        current_value = float(sum((p.current_value for p in positions), Decimal("0")))
        total_return = current_value - cost_basis
        total_return_percent = total_return / cost_basis * 100 if cost_basis > 0 else 0.0
        annual = stats.annualized_return(total_return_percent, years)

        returns = self.portfolio_returns(positions, period)
        if returns is None:
            return PerformanceMetrics(
                total_return=total_return,
                total_return_percent=total_return_percent,
                annualized_return=annual,
            )

        risk_free_percent = self.risk_free_rate * 100
        volatility = stats.annualized_volatility(returns, self.periods_per_year)
        downside = stats.downside_deviation(returns, self.periods_per_year)

        drawdown = stats.max_drawdown(stats.value_series(returns, current_value))

        var95, var99 = (stats.value_at_risk(returns, c) for c in VAR_CONFIDENCE_LEVELS)

        comparison = None
        if benchmark_symbol:
            comparison = self.compare(returns, benchmark_symbol, period)

        return PerformanceMetrics(
            total_return=total_return,
            total_return_percent=total_return_percent,
            annualized_return=annual,
            sharpe_ratio=stats.risk_adjusted_ratio(annual, risk_free_percent, volatility),
            sortino_ratio=stats.risk_adjusted_ratio(annual, risk_free_percent, downside),
            alpha=comparison.excess_return if comparison else None,
            beta=comparison.beta if comparison else None,
            volatility=volatility,
            max_drawdown=drawdown[0] if drawdown else None,
            max_drawdown_percent=drawdown[1] if drawdown else None,
            var95=var95,
            var99=var99,
            benchmark=comparison,
        )

    def portfolio_returns(
        self, positions: Sequence[UnrealizedGainSnapshot], period: str
    ) -> Optional[pd.Series]:
        """Value-weighted blend of the positions' return series, or None."""
        values: dict[str, float] = defaultdict(float)
        for p in positions:
            values[p.symbol] += float(p.current_value)

        series = {}
        for symbol in values:
            history = self._history(symbol, period)
            if history is not None and not history.empty:
                series[symbol] = history

        if not series:
            return None

        included_value = sum(values[s] for s in series)
        if included_value <= 0:
            return None

        length = min(len(s) for s in series.values())
        frame = pd.DataFrame(
            {s: r.tail(length).reset_index(drop=True) for s, r in series.items()}
        )
        weights = pd.Series({s: values[s] / included_value for s in series})
        return frame.mul(weights, axis=1).sum(axis=1)

    def compare(
        self, portfolio: pd.Series, benchmark_symbol: str, period: str
    ) -> Optional[BenchmarkComparison]:
        """
        Single-factor comparison: alpha is simply the excess return.

        Returns None when either series is empty.
        """
        benchmark = self._history(benchmark_symbol, period)
        if benchmark is None or benchmark.empty or portfolio.empty:
            return None

        p, b = stats.align(portfolio, benchmark)
        portfolio_return = stats.cumulative_return(p)
        benchmark_return = stats.cumulative_return(b)
        excess = portfolio_return - benchmark_return

        te = stats.tracking_error(p, b)
        information_ratio = excess / te if te else None

        return BenchmarkComparison(
            benchmark_symbol=benchmark_symbol,
            portfolio_return=portfolio_return,
            benchmark_return=benchmark_return,
            excess_return=excess,
            observations=len(p),
            beta=stats.beta(p, b),
            tracking_error=te,
            information_ratio=information_ratio,
        )

    def attribution(
        self, positions: Iterable[UnrealizedGainSnapshot]
    ) -> list[AssetContribution]:
        """Per-asset contribution to unrealized return, largest magnitude first."""
        positions = list(positions)
        total_value = float(sum((p.current_value for p in positions), Decimal("0")))
        contributions = []
        for p in positions:
            weight = float(p.current_value) / total_value if total_value > 0 else 0.0
            return_percent = float(p.unrealized_gain_percent)
            contributions.append(
                AssetContribution(
                    asset_id=p.asset_id,
                    symbol=p.symbol,
                    weight_percent=weight * 100,
                    return_amount=float(p.unrealized_gain),
                    return_percent=return_percent,
                    contribution_percent=weight * return_percent,
                )
            )
        contributions.sort(key=lambda c: abs(c.contribution_percent), reverse=True)
        return contributions

    def _history(self, symbol: str, period: str) -> Optional[pd.Series]:
        if self.price_source is None:
            return None
        try:
            raw = self.price_source.historical_returns(symbol, period)
        except Exception as e:
            logger.warning(f"Failed to fetch return history for {symbol}: {e}")
            return None
        return stats.to_series(raw or [])
