"""Dividend yield and dividend income."""

from lotwise.core.income.dividends import (
    AssetDividendIncome,
    DividendIncomeReport,
    DividendYield,
    DividendYieldCalculator,
)

__all__ = [
    "AssetDividendIncome",
    "DividendIncomeReport",
    "DividendYield",
    "DividendYieldCalculator",
]
