"""Error taxonomy for the store backoffice.

    OperationFailed      transport failure or any non-2xx backend response
    FormValidationError  a draft failed its local field checks
    ReferenceNotFound    a draft points at an entity missing from the cache
    UnknownResource      a request names a resource the backend does not serve

All but OperationFailed are raised before any network call. None is retried.
"""

from typing import Any

from utils.validation import ValidationResult


class StoreError(Exception):
    """Base class for backoffice errors scoped to a single user action."""


class OperationFailed(StoreError):
    """A backend call failed.

    Transport errors and every non-2xx status are collapsed into this one
    error; ``status_code`` is kept for logging only and is ``None`` when no
    response was received.
    """

    def __init__(self, operation: str, resource: str, identity: Any = None,
                 status_code: int | None = None, reason: str = "") -> None:
        self.operation = operation
        self.resource = resource
        self.identity = identity
        self.status_code = status_code
        self.reason = reason
        target = resource if identity is None else f"{resource}/{identity}"
        super().__init__(f"Failed to {operation} {target}")


class FormValidationError(StoreError):
    """A draft failed validation; nothing was sent to the backend."""

    def __init__(self, result: ValidationResult) -> None:
        self.result = result
        entity = result.entity or "form"
        super().__init__(f"Invalid {entity}: {result.summary_text()}")


class ReferenceNotFound(StoreError):
    """A draft refers to an entity that is not in the cached collection."""

    def __init__(self, resource: str, identity: Any) -> None:
        self.resource = resource
        self.identity = identity
        super().__init__(f"{resource}/{identity} is not available; reload and try again")


class UnknownResource(StoreError):
    """A request named a resource outside ``products``/``accounts``/``orders``/``categories``."""

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"Unknown resource: {resource!r}")
