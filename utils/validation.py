"""Data validation utilities for the store backoffice.

Provides reusable pieces for:
- Collecting field-level issues found while checking a form draft
- Formatting validation issues for the browser
- Type checking of prices, e-mail addresses and ISO-8601 timestamps

Form drafts in ``backoffice.forms`` build a ValidationResult before any
network call; a result with errors aborts the submission locally.
"""

import math
from datetime import datetime
from typing import List, Dict, Any, Optional

from utils.patterns import EMAIL, ISO_UTC_SUFFIX


class ValidationIssue:
    """Represents a single validation issue found on a form field."""

    def __init__(self, field: str, severity: str, detail: str,
                 value: Optional[Any] = None):
        """Initialize a validation issue.

        Args:
            field: Wire name of the offending field (e.g. ``firstName``)
            severity: Issue severity ('error', 'warning')
            detail: Human-readable description of the issue
            value: The value that triggered the issue
        """
        self.field = field
        self.severity = severity
        self.detail = detail
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "field": self.field,
            "severity": self.severity,
            "detail": self.detail,
            "value": None if self.value is None else str(self.value),
        }

    def __repr__(self) -> str:
        return (f"ValidationIssue(field={self.field}, severity={self.severity}, "
                f"detail={self.detail!r})")


class ValidationResult:
    """Collects the issues found while validating one draft."""

    def __init__(self, entity: str = ""):
        self.entity = entity
        self.issues: List[ValidationIssue] = []

    def add_issue(self, field: str, detail: str, severity: str = "error",
                  value: Optional[Any] = None) -> None:
        """Add a validation issue.

        Args:
            field: Wire name of the offending field
            detail: Human-readable description
            severity: 'error' blocks submission, 'warning' does not
            value: Example value that triggered the issue
        """
        self.issues.append(ValidationIssue(field, severity, detail, value))

    def require(self, field: str, value: Optional[str], label: str) -> bool:
        """Add an error when *value* is missing or blank.

        Returns:
            True if the value is present.
        """
        if value is None or not str(value).strip():
            self.add_issue(field, f"{label} is required")
            return False
        return True

    def check_max_length(self, field: str, value: Optional[str], limit: int,
                         label: str) -> None:
        if value is not None and len(value) > limit:
            self.add_issue(field, f"{label} must be at most {limit} characters",
                           value=value)

    def get_issues_by_severity(self, severity: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]

    def error_count(self) -> int:
        """Get total number of error-level issues."""
        return len(self.get_issues_by_severity("error"))

    def fields_with_errors(self) -> List[str]:
        seen: List[str] = []
        for issue in self.get_issues_by_severity("error"):
            if issue.field not in seen:
                seen.append(issue.field)
        return seen

    def is_valid(self) -> bool:
        """Check if validation passed (no errors)."""
        return self.error_count() == 0

    def summary_text(self) -> str:
        """One line per error, suitable for an inline form message."""
        return "; ".join(i.detail for i in self.get_issues_by_severity("error"))


def is_valid_price(value: Any) -> bool:
    """Check if value is a usable price: a finite, non-negative, non-bool number.

    Args:
        value: Amount to validate

    Returns:
        True if valid price, False otherwise
    """
    if isinstance(value, bool):  # bool is subclass of int
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def is_valid_email(value: Optional[str]) -> bool:
    if not isinstance(value, str):
        return False
    return bool(EMAIL.match(value.strip()))


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z`` for UTC.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    return datetime.fromisoformat(ISO_UTC_SUFFIX.sub("+00:00", value.strip()))


def is_valid_iso_datetime(value: Optional[str]) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parse_iso_datetime(value)
    except ValueError:
        return False
    return True
