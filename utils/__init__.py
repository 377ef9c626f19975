"""Shared utilities for the store backoffice."""

# Pattern definitions
from utils.patterns import EMAIL, CURRENCY_SYMBOLS

# String utilities
from utils.strings import safe_float, contains_casefold

# Validation utilities
from utils.validation import (
    ValidationIssue,
    ValidationResult,
    is_valid_price,
    is_valid_email,
    is_valid_iso_datetime,
    parse_iso_datetime,
)

# HTTP utilities
from utils.http import (
    RetryStrategy,
    SessionManager,
    TimeoutManager,
)

# Query cache
from utils.cache import QueryCache, FetchTimeoutError

# Output formatting
from utils.formatting import (
    format_price,
    format_order_date,
    full_name,
    product_names,
)

# Configuration
from utils.config import (
    Config,
    ClientConfig,
    AppConfig,
)

__all__ = [
    # Patterns
    "EMAIL",
    "CURRENCY_SYMBOLS",
    # Strings
    "safe_float",
    "contains_casefold",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    "is_valid_price",
    "is_valid_email",
    "is_valid_iso_datetime",
    "parse_iso_datetime",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "TimeoutManager",
    # Cache
    "QueryCache",
    "FetchTimeoutError",
    # Formatting
    "format_price",
    "format_order_date",
    "full_name",
    "product_names",
    # Config
    "Config",
    "ClientConfig",
    "AppConfig",
]
