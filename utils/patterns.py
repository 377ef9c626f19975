"""Pre-compiled regex patterns for the store backoffice.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import EMAIL

    if EMAIL.match(value):
        ...
"""

import re

# Pragmatic e-mail shape check: local@domain.tld, no whitespace.
# The backend runs the authoritative check.
EMAIL = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

# Currency symbols for stripping during numeric conversion
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]')

# ISO-8601 "Z" suffix, which datetime.fromisoformat() rejects before 3.11
ISO_UTC_SUFFIX = re.compile(r'Z$')
