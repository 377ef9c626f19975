"""Output formatting utilities for the store backoffice.

Provides reusable functions for:
- Formatting prices and order totals
- Formatting order timestamps
- Building the short labels shown in list tables and detail panels
"""

from typing import Optional, List, Iterable

from utils.validation import parse_iso_datetime

NO_PRODUCTS_LABEL = "No products"


def format_price(value: Optional[float], precision: int = 2,
                 thousands_sep: bool = True) -> str:
    """Format a price for display.

    Args:
        value: Price in dollars (can be None)
        precision: Decimal places (default: 2)
        thousands_sep: Add thousands separator (default: True)

    Returns:
        Formatted string like "$1,234.50"

    Examples:
        format_price(10) -> "$10.00"
        format_price(0) -> "$0.00"
        format_price(None) -> "-"
    """
    if value is None:
        return "-"
    if thousands_sep:
        return f"${value:,.{precision}f}"
    return f"${value:.{precision}f}"


def format_order_date(value: Optional[str], fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Render an ISO-8601 order timestamp for a table cell.

    Unparseable values are shown as-is rather than hidden, so a bad
    timestamp coming from the backend stays visible.

    Examples:
        format_order_date("2024-03-01T10:15:00Z") -> "2024-03-01 10:15"
        format_order_date(None) -> "-"
    """
    if not value:
        return "-"
    try:
        return parse_iso_datetime(value).strftime(fmt)
    except ValueError:
        return value


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    """Join first and last name, skipping missing parts."""
    return " ".join(p for p in (first_name, last_name) if p)


def product_names(names: Iterable[str]) -> str:
    """Comma-joined product names, or the "No products" label."""
    names_list: List[str] = [n for n in names if n]
    if not names_list:
        return NO_PRODUCTS_LABEL
    return ", ".join(names_list)
