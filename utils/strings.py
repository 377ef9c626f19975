"""String processing utilities for the store backoffice.

Form inputs arrive as raw strings from the browser; these helpers turn them
into clean values and implement the case-insensitive matching used by the
list views.
"""

from utils.patterns import CURRENCY_SYMBOLS


def safe_float(val, default: float | None = 0.0) -> float | None:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings -> default
    - Numeric types -> float
    - Strings with currency symbols, whitespace, commas
    - Invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '':
        return default
    if isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        return float(val)

    try:
        s = str(val).strip()
        s = CURRENCY_SYMBOLS.sub('', s)
        s = s.replace(',', '').strip()
        return float(s) if s else default
    except (ValueError, TypeError):
        return default


def contains_casefold(haystack: str | None, needle: str) -> bool:
    """Case-insensitive substring test.

    The empty needle matches everything (including a missing haystack), so an
    empty filter box shows the whole collection.
    """
    if not needle:
        return True
    if haystack is None:
        return False
    return needle.casefold() in haystack.casefold()
