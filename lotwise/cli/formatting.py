"""Centralized formatting utilities for CLI output.

Provides consistent colors and number formatting across all CLI commands.
"""

from decimal import Decimal
from typing import Optional, Union

# Panel/Table padding standards
PANEL_PADDING = (1, 2)
TABLE_PADDING = (0, 2)

# Border style semantics
BORDER_PRIMARY = "blue"      # Main content panels
BORDER_SUCCESS = "green"     # Success/confirmation panels
BORDER_WARNING = "yellow"    # Warning panels

# Missing value indicator
MISSING = "-"

Number = Union[int, float, Decimal]


def get_gain_color(value: Optional[Number]) -> str:
    """Green for gains, red for losses, dim when unknown."""
    if value is None:
        return "dim"
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    else:
        return "white"


def get_term_label(is_long_term: bool) -> tuple[str, str]:
    """
    Holding period label.

    Returns:
        Tuple of (label, color)
    """
    if is_long_term:
        return "Long", "cyan"
    return "Short", "yellow"


def format_money(value: Optional[Number]) -> str:
    if value is None:
        return MISSING
    value = float(value)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_gain(value: Optional[Number]) -> str:
    """Money with color markup and an explicit sign for gains."""
    if value is None:
        return MISSING
    color = get_gain_color(value)
    sign = "+" if value > 0 else ""
    return f"[{color}]{sign}{format_money(value)}[/{color}]"


def format_percent(value: Optional[Number], decimals: int = 2) -> str:
    if value is None:
        return MISSING
    return f"{float(value):.{decimals}f}%"


def format_quantity(value: Decimal) -> str:
    """Quantity without trailing zeros (10, 2.5, 0.125)."""
    return f"{value.normalize():f}"
