"""
Return-series statistics.

All functions take periodic fractional returns (0.01 = 1%) and report
percentages. A function returns None when there are too few observations
for the statistic to mean anything; it never substitutes 0 for unknown.
"""

import math
from typing import Optional, Sequence

import pandas as pd

from lotwise.core.constants import MIN_OBSERVATIONS

# Dispersion below this is treated as exactly zero (float noise from the mean)
EPSILON = 1e-12


def to_series(returns: Sequence[float]) -> pd.Series:
    return pd.Series(list(returns), dtype="float64").dropna().reset_index(drop=True)


def align(left: pd.Series, right: pd.Series) -> tuple[pd.Series, pd.Series]:
    """Trim both series to their most recent common length."""
    n = min(len(left), len(right))
    return (
        left.tail(n).reset_index(drop=True),
        right.tail(n).reset_index(drop=True),
    )


def cumulative_return(returns: pd.Series) -> float:
    """Compounded return over the whole series, in percent."""
    if returns.empty:
        return 0.0
    return float(((1 + returns).prod() - 1) * 100)


def annualized_return(total_return_percent: float, years: float) -> float:
    """((1 + R)^(1/years) - 1) * 100. A total loss of 100% or more stays -100."""
    if years <= 0:
        return 0.0
    growth = 1 + total_return_percent / 100
    if growth <= 0:
        return -100.0
    return (growth ** (1 / years) - 1) * 100


def annualized_volatility(returns: pd.Series, periods_per_year: int) -> Optional[float]:
    """Sample standard deviation scaled by sqrt(periods_per_year), in percent."""
    if len(returns) < MIN_OBSERVATIONS:
        return None
    std = float(returns.std(ddof=1))
    if std < EPSILON:
        return 0.0
    return std * math.sqrt(periods_per_year) * 100


def downside_deviation(returns: pd.Series, periods_per_year: int) -> Optional[float]:
    """Standard deviation of the negative-return periods only, annualized, in percent."""
    negative = returns[returns < 0]
    return annualized_volatility(negative.reset_index(drop=True), periods_per_year)


def risk_adjusted_ratio(
    annual_return: float, risk_free_percent: float, dispersion: Optional[float]
) -> Optional[float]:
    """(annual_return - risk_free) / dispersion; None unless dispersion > 0."""
    if dispersion is None or dispersion <= EPSILON:
        return None
    return (annual_return - risk_free_percent) / dispersion


def value_series(returns: pd.Series, end_value: float) -> pd.Series:
    """
    Rebuild a value path from returns so that it ends at end_value.

    The first element is the value before the first return.
    """
    growth = (1 + returns).cumprod()
    final = float(growth.iloc[-1]) if not growth.empty else 1.0
    base = end_value / final if final != 0 else 0.0
    return pd.concat([pd.Series([1.0]), growth], ignore_index=True) * base


def max_drawdown(values: pd.Series) -> Optional[tuple[float, float]]:
    """
    Largest peak-to-trough decline.

    Returns:
        (amount, percent of the peak), both as positive numbers, or None
        with fewer than two values.
    """
    if len(values) < MIN_OBSERVATIONS:
        return None
    running_peak = values.cummax()
    drawdowns = running_peak - values
    worst = drawdowns.idxmax()
    amount = float(drawdowns.iloc[worst])
    peak = float(running_peak.iloc[worst])
    percent = amount / peak * 100 if peak > 0 else 0.0
    return amount, percent


def value_at_risk(returns: pd.Series, confidence: float) -> Optional[float]:
    """
    Historical-simulation VaR as a positive loss percentage.

    The (1 - confidence) quantile of the observed returns, taking the
    observed value at or below it (no interpolation between periods).
    """
    if len(returns) < MIN_OBSERVATIONS:
        return None
    quantile = float(returns.quantile(1 - confidence, interpolation="lower"))
    return -quantile * 100


def beta(portfolio: pd.Series, benchmark: pd.Series) -> Optional[float]:
    """Cov(portfolio, benchmark) / Var(benchmark) on paired observations."""
    if len(portfolio) != len(benchmark) or len(portfolio) < MIN_OBSERVATIONS:
        return None
    benchmark_var = float(benchmark.var(ddof=0))
    if benchmark_var < EPSILON ** 2:
        return None
    covariance = float(((portfolio - portfolio.mean()) * (benchmark - benchmark.mean())).mean())
    return covariance / benchmark_var


def tracking_error(portfolio: pd.Series, benchmark: pd.Series) -> Optional[float]:
    """Standard deviation of the return differences, in percent."""
    if len(portfolio) != len(benchmark) or len(portfolio) < MIN_OBSERVATIONS:
        return None
    std = float((portfolio - benchmark).std(ddof=0))
    return 0.0 if std < EPSILON else std * 100
