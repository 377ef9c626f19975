"""Store domain: wire models and the backoffice error taxonomy."""

from store.models import WireModel, Product, Account, Order, Category
from store.errors import (
    StoreError,
    OperationFailed,
    FormValidationError,
    ReferenceNotFound,
    UnknownResource,
)

__all__ = [
    "WireModel",
    "Product",
    "Account",
    "Order",
    "Category",
    "StoreError",
    "OperationFailed",
    "FormValidationError",
    "ReferenceNotFound",
    "UnknownResource",
]
