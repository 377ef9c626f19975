"""
Read/mutate service over the store backend and the query cache.

Reads are served from the cache under ``query_key(resource, **params)``;
filtered and unfiltered reads of the same resource get different keys.
Mutations go straight to the backend and, once the backend accepts them,
invalidate the mutated resource plus every resource whose payloads embed it
(see ``INVALIDATES``). A failed mutation invalidates nothing.
"""

import logging
from typing import Any, Iterable

from client.resources import StoreClient
from store.errors import FormValidationError, ReferenceNotFound, UnknownResource
from store.models import Account, Category, Order, Product
from utils.cache import QueryCache
from utils.config import ACCOUNTS, CATEGORIES, ORDERS, PRODUCTS, RESOURCES
from utils.validation import ValidationResult

from backoffice.forms import AccountDraft, CategoryDraft, OrderDraft, ProductDraft

logger = logging.getLogger(__name__)

# Mutated resource -> resources whose cached payloads may now be out of date.
INVALIDATES: dict[str, tuple[str, ...]] = {
    PRODUCTS: (PRODUCTS, ORDERS, ACCOUNTS),
    ACCOUNTS: (ACCOUNTS, ORDERS, PRODUCTS),
    ORDERS: (ORDERS, ACCOUNTS, PRODUCTS),
    CATEGORIES: (CATEGORIES, PRODUCTS),
}


def query_key(resource: str, **params: Any) -> tuple:
    """Cache key for a collection read.

    ``None`` params are dropped and the rest sorted, so
    ``query_key("products", price=None)`` equals ``query_key("products")``.
    """
    items = tuple(sorted((k, v) for k, v in params.items() if v is not None))
    return (resource, items)


class StoreService:
    """Cached reads and invalidating writes for the backoffice views."""

    def __init__(self, client: StoreClient, cache: QueryCache) -> None:
        self.client = client
        self.cache = cache

    # ── Reads ─────────────────────────────────────────────────────────────

    def products(self, category: str | None = None,
                 price: float | None = None) -> list[Product]:
        key = query_key(PRODUCTS, category=category, price=price)
        return self.cache.fetch(
            key, lambda: self.client.products.list(category=category, price=price)
        )

    def accounts(self) -> list[Account]:
        return self.cache.fetch(query_key(ACCOUNTS), self.client.accounts.list)

    def orders(self) -> list[Order]:
        return self.cache.fetch(query_key(ORDERS), self.client.orders.list)

    def categories(self) -> list[Category]:
        return self.cache.fetch(query_key(CATEGORIES), self.client.categories.list)

    def orders_by_category(self, category: str) -> list[Order]:
        key = query_key(ORDERS, containing_category=category)
        return self.cache.fetch(key, lambda: self.client.orders.filter_by_category(category))

    def orders_by_price(self, price: float) -> list[Order]:
        key = query_key(ORDERS, containing_price=price)
        return self.cache.fetch(key, lambda: self.client.orders.filter_by_price(price))

    def collection(self, resource: str) -> list:
        """Unfiltered collection of *resource*."""
        readers = {
            PRODUCTS: self.products,
            ACCOUNTS: self.accounts,
            ORDERS: self.orders,
            CATEGORIES: self.categories,
        }
        if resource not in readers:
            raise UnknownResource(resource)
        return readers[resource]()

    def lookup(self, resource: str, item_id: int):
        """Find one entity in the cached collection of *resource*.

        Raises:
            ReferenceNotFound: No entity with that id in the collection.
        """
        for item in self.collection(resource):
            if item.id == item_id:
                return item
        raise ReferenceNotFound(resource, item_id)

    # ── Writes ────────────────────────────────────────────────────────────

    def invalidate_after(self, resource: str) -> int:
        """Invalidate the caches affected by a mutation of *resource*."""
        count = 0
        for target in INVALIDATES[resource]:
            count += self.cache.invalidate(target)
        return count

    def refresh(self, resource: str) -> int:
        """Force the next read of *resource* to hit the backend."""
        if resource not in RESOURCES:
            raise UnknownResource(resource)
        count = self.cache.invalidate(resource)
        logger.info("refresh %s: %d cached keys marked stale", resource, count)
        return count

    def _save(self, resource: str, item, item_id: int | None):
        api = self.client.for_resource(resource)
        if item_id is None:
            saved = api.create(item)
            logger.info("created %s/%s", resource, saved.id)
        else:
            saved = api.update(item_id, item)
            logger.info("updated %s/%s", resource, item_id)
        self.invalidate_after(resource)
        return saved

    def save_product(self, draft: ProductDraft) -> Product:
        return self._save(PRODUCTS, draft.to_model(), draft.id)

    def save_account(self, draft: AccountDraft) -> Account:
        return self._save(ACCOUNTS, draft.to_model(), draft.id)

    def save_order(self, draft: OrderDraft) -> Order:
        """Validate, resolve references against cached data, then submit.

        The draft's catalog is filled from the product collection when it is
        empty, so ``total_price`` reflects current prices.
        """
        result = draft.validate()
        if not result.is_valid():
            raise FormValidationError(result)
        if not draft.catalog:
            draft.set_catalog(self.products())
        order = draft.build_order(self.accounts())
        return self._save(ORDERS, order, draft.id)

    def save_category(self, draft: CategoryDraft) -> Category:
        return self._save(CATEGORIES, draft.to_model(), draft.id)

    def _delete(self, resource: str, item_id: int) -> None:
        self.client.for_resource(resource).delete(item_id)
        logger.info("deleted %s/%s", resource, item_id)
        self.invalidate_after(resource)

    def delete_product(self, product_id: int) -> None:
        self._delete(PRODUCTS, product_id)

    def delete_account(self, account_id: int) -> None:
        self._delete(ACCOUNTS, account_id)

    def delete_order(self, order_id: int) -> None:
        self._delete(ORDERS, order_id)

    def delete_category(self, category_id: int) -> None:
        self._delete(CATEGORIES, category_id)

    def import_products(self, drafts: Iterable[ProductDraft]) -> list[Product]:
        """Create many products in one bulk request.

        Every draft is validated first; if any fails, nothing is sent and
        the issues are reported with their row index (``[2].price``).
        """
        drafts = list(drafts)
        combined = ValidationResult("products")
        for index, draft in enumerate(drafts):
            for issue in draft.validate().issues:
                combined.add_issue(f"[{index}].{issue.field}", issue.detail,
                                   severity=issue.severity, value=issue.value)
        if not combined.is_valid():
            raise FormValidationError(combined)
        if not drafts:
            return []

        created = self.client.products.bulk_create(d.to_model() for d in drafts)
        logger.info("imported %d products", len(created))
        self.invalidate_after(PRODUCTS)
        return created

