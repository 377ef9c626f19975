"""
Per-resource clients and the StoreClient bundle.

Besides the five generic operations, the backend offers a few
resource-specific endpoints:

    POST /products/bulk                          create many products
    GET  /orders/filter/by-category-jpql?category=   orders containing a category
    GET  /orders/filter/by-price-native?price=       orders containing a price
"""

from __future__ import annotations

import logging
from typing import Iterable

import requests

from client.core import ResourceClient, query_value
from store.errors import UnknownResource
from store.models import Account, Category, Order, Product
from utils.config import (
    ACCOUNTS,
    CATEGORIES,
    DEFAULT_API_URL,
    ORDERS,
    PRODUCTS,
    ClientConfig,
)
from utils.http import RetryStrategy, SessionManager, TimeoutManager

logger = logging.getLogger(__name__)


class ProductsClient(ResourceClient[Product]):
    resource = PRODUCTS
    model = Product

    def list(self, category: str | None = None,
             price: float | None = None) -> list[Product]:
        """Fetch products, optionally filtered by exact category and/or price."""
        return super().list(category=category, price=price)

    def bulk_create(self, products: Iterable[Product]) -> list[Product]:
        return self._post_many("create", list(products), "bulk")


class AccountsClient(ResourceClient[Account]):
    resource = ACCOUNTS
    model = Account


class OrdersClient(ResourceClient[Order]):
    resource = ORDERS
    model = Order

    def filter_by_category(self, category: str) -> list[Order]:
        """Orders containing at least one product of *category*."""
        data = self._request("GET", "filter", "filter", "by-category-jpql",
                             params={"category": category})
        return self._parse_many(data, "filter")

    def filter_by_price(self, price: float) -> list[Order]:
        """Orders containing at least one product priced exactly *price*."""
        data = self._request("GET", "filter", "filter", "by-price-native",
                             params={"price": query_value(price)})
        return self._parse_many(data, "filter")


class CategoriesClient(ResourceClient[Category]):
    resource = CATEGORIES
    model = Category


class StoreClient:
    """All resource clients sharing one pooled HTTP session.

    Usage::

        with StoreClient("http://localhost:9090/api") as client:
            products = client.products.list(category="Tools")
    """

    def __init__(self, base_url: str = DEFAULT_API_URL,
                 session: requests.Session | None = None,
                 session_manager: SessionManager | None = None,
                 timeouts: TimeoutManager | None = None) -> None:
        """
        Args:
            base_url: Backend base URL, e.g. ``http://localhost:9090/api``.
            session: Ready-made session (tests pass a fake here). When given,
                the caller owns it and ``close()`` leaves it open.
            session_manager: Pooled session factory (default: no retries).
            timeouts: Shared adaptive timeout tracker.
        """
        self.base_url = base_url.rstrip("/")
        self._session_manager: SessionManager | None = None
        if session is None:
            self._session_manager = session_manager or SessionManager()
            session = self._session_manager.session
        self.timeouts = timeouts or TimeoutManager()

        self.products = ProductsClient(session, self.base_url, self.timeouts)
        self.accounts = AccountsClient(session, self.base_url, self.timeouts)
        self.orders = OrdersClient(session, self.base_url, self.timeouts)
        self.categories = CategoriesClient(session, self.base_url, self.timeouts)

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> "StoreClient":
        manager = SessionManager(retry_strategy=RetryStrategy(max_retries=cfg.max_retries))
        timeouts = TimeoutManager(base_timeout=cfg.timeout, min_timeout=cfg.min_timeout,
                                  max_timeout=cfg.max_timeout)
        logger.info("store backend: %s (timeout=%ss retries=%d)",
                    cfg.api_url, cfg.timeout, cfg.max_retries)
        return cls(cfg.api_url, session_manager=manager, timeouts=timeouts)

    def for_resource(self, resource: str) -> ResourceClient:
        """Look up a client by resource name (``"products"`` ...)."""
        clients = {
            PRODUCTS: self.products,
            ACCOUNTS: self.accounts,
            ORDERS: self.orders,
            CATEGORIES: self.categories,
        }
        try:
            return clients[resource]
        except KeyError:
            raise UnknownResource(resource) from None

    def close(self) -> None:
        if self._session_manager is not None:
            self._session_manager.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
