"""
Store REST backend client.

Typed accessors for the backend's resources (products, accounts, orders,
categories) sharing one pooled ``requests`` session::

    from client import StoreClient

    with StoreClient("http://localhost:9090/api") as api:
        tools = api.products.list(category="Tools")
"""

from client.core import ResourceClient, query_value
from client.resources import (
    AccountsClient,
    CategoriesClient,
    OrdersClient,
    ProductsClient,
    StoreClient,
)

__all__ = [
    "ResourceClient",
    "query_value",
    "ProductsClient",
    "AccountsClient",
    "OrdersClient",
    "CategoriesClient",
    "StoreClient",
]
