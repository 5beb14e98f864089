"""
Input validation utilities for CLI commands.

Provides reusable Click callbacks for:
- Ticker symbol format validation
- Positive numeric amounts
- Transaction dates
- SYMBOL=PRICE quotes
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import click

# Ticker format: 1-10 uppercase alphanumeric chars, dots, hyphens
# Covers standard (AAPL), dot-suffix (BRK.A), hyphenated (BRK-B), and numeric tickers.
TICKER_PATTERN = re.compile(r"^[A-Z0-9.\-]{1,10}$")

DATE_FORMAT = "%Y-%m-%d"


def _validate_ticker_format(value: str) -> str:
    """
    Core ticker validation logic.

    Raises:
        ValueError: If ticker format is invalid
    """
    if not TICKER_PATTERN.match(value):
        raise ValueError(
            f"Invalid ticker format: '{value}'. "
            "Expected 1-10 uppercase characters (e.g., AAPL, BRK.A, BRK-B)"
        )
    return value


def validate_ticker(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """Validate and normalize a ticker symbol (Click callback)."""
    if not value:
        raise click.BadParameter("Ticker symbol is required")

    value = value.upper().strip()

    try:
        return _validate_ticker_format(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _parse_amount(raw: str, name: str) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        raise click.BadParameter(f"{name} must be a number, got '{raw}'")
    if not amount.is_finite() or amount <= 0:
        raise click.BadParameter(f"{name} must be greater than 0")
    return amount


def validate_positive_decimal(name: str):
    """
    Create a validator that parses a positive Decimal amount.

    Args:
        name: Name of the parameter (for error messages)

    Returns:
        Click callback function for validation
    """
    def validator(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[Decimal]:
        if value is None:
            return None
        return _parse_amount(value, name)

    return validator


def validate_date(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[datetime]:
    """Parse a YYYY-MM-DD date (Click callback). None means "now"."""
    if value is None:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}'. Use YYYY-MM-DD")


def parse_price_quote(value: str) -> tuple[str, Decimal]:
    """
    Parse one SYMBOL=PRICE quote.

    Raises:
        click.BadParameter: If the quote is malformed
    """
    symbol, sep, price = value.partition("=")
    if not sep:
        raise click.BadParameter(f"Expected SYMBOL=PRICE, got '{value}'")
    symbol = symbol.upper().strip()
    try:
        _validate_ticker_format(symbol)
    except ValueError as e:
        raise click.BadParameter(str(e))
    return symbol, _parse_amount(price, f"Price for {symbol}")


def validate_price_quotes(
    ctx: click.Context, param: click.Parameter, value: tuple[str, ...]
) -> dict[str, Decimal]:
    """Turn repeated --price SYMBOL=PRICE options into a dict (Click callback)."""
    return dict(parse_price_quote(v) for v in value or ())
