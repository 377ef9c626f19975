"""
List and detail view models for the backoffice pages.

ListView keeps one fetched collection, the load state and the filter text.
Every load gets a generation token; ``resolve()`` / ``fail()`` for any token
other than the latest one are ignored, as is anything arriving after
``close()``. Filtering only recomputes ``displayed`` from ``items``; it never
touches the query cache.

The ``*_detail`` functions project an already fetched entity into the dict
a template renders. They do no I/O.
"""

import enum
import logging
import threading
from typing import Any, Callable, Generic, Iterable, List, Optional, TypeVar

from store.errors import StoreError
from store.models import Account, Order, Product
from utils.cache import FetchTimeoutError
from utils.formatting import (
    format_order_date,
    format_price,
    full_name,
    product_names,
)
from utils.strings import contains_casefold

logger = logging.getLogger(__name__)

T = TypeVar("T")

Matcher = Callable[[Any, str], bool]


class ViewState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


# ── Matchers ─────────────────────────────────────────────────────────────────

def match_product(product: Product, text: str) -> bool:
    """Name or category contains *text*, ignoring case."""
    return contains_casefold(product.name, text) or contains_casefold(product.category, text)


def match_account(account: Account, text: str) -> bool:
    return any(
        contains_casefold(value, text)
        for value in (account.nickname, account.first_name, account.last_name,
                      account.email, account.display_name)
    )


def match_order(order: Order, text: str) -> bool:
    """Account name/nickname or any product name contains *text*."""
    if not text:
        return True
    if order.account is not None and (
        contains_casefold(order.account.display_name, text)
        or contains_casefold(order.account.nickname, text)
    ):
        return True
    return any(contains_casefold(p.name, text) for p in order.products or [])


def filter_products(products: Iterable[Product], text: str) -> List[Product]:
    return [p for p in products if match_product(p, text)]


# ── List view ────────────────────────────────────────────────────────────────

class ListView(Generic[T]):
    """State of one list page: collection, load state and filter.

    Args:
        loader: Zero-argument callable returning the collection (normally a
            ``StoreService`` read, so it is served from the cache).
        matcher: ``matcher(item, text)`` used by ``filter_text``; without
            one every item is shown.
    """

    def __init__(self, loader: Callable[[], List[T]],
                 matcher: Optional[Matcher] = None) -> None:
        self._loader = loader
        self._matcher = matcher
        self._lock = threading.Lock()
        self._generation = 0
        self._closed = False
        self.state = ViewState.IDLE
        self.items: List[T] = []
        self.displayed: List[T] = []
        self.query = ""
        self.error: Optional[Exception] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def begin_load(self) -> int:
        """Enter LOADING and return the token the result must carry."""
        with self._lock:
            if self._closed:
                raise RuntimeError("view is closed")
            self._generation += 1
            self.state = ViewState.LOADING
            self.error = None
            return self._generation

    def resolve(self, token: int, items: Iterable[T]) -> bool:
        """Accept a fetched collection; False if *token* is outdated."""
        with self._lock:
            if self._closed or token != self._generation:
                logger.debug("list view: dropped result for load %d (current %d)",
                             token, self._generation)
                return False
            self.items = list(items)
            self.state = ViewState.LOADED
            self._recompute()
            return True

    def fail(self, token: int, error: Exception) -> bool:
        """Record a failed load; False if *token* is outdated.

        The previously loaded items stay in place.
        """
        with self._lock:
            if self._closed or token != self._generation:
                return False
            self.error = error
            self.state = ViewState.ERROR
            return True

    def load(self) -> ViewState:
        """Run the loader once and settle the state."""
        token = self.begin_load()
        try:
            items = self._loader()
        except (StoreError, FetchTimeoutError) as exc:
            logger.warning("list view load failed: %s", exc)
            self.fail(token, exc)
        else:
            self.resolve(token, items)
        return self.state

    # Both transitions re-enter LOADING the same way.
    refresh = load
    retry = load

    def close(self) -> None:
        """Detach the view; in-flight results are dropped from now on."""
        with self._lock:
            self._closed = True
            self._generation += 1

    def filter_text(self, text: str) -> List[T]:
        with self._lock:
            self.query = text or ""
            self._recompute()
            return list(self.displayed)

    def _recompute(self) -> None:
        if not self.query or self._matcher is None:
            self.displayed = list(self.items)
        else:
            self.displayed = [i for i in self.items if self._matcher(i, self.query)]

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error is not None else ""

    def __len__(self) -> int:
        return len(self.displayed)


# ── Detail projections ───────────────────────────────────────────────────────

def product_detail(product: Product) -> dict:
    owner = product.account
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "price": format_price(product.price),
        "owner": owner.display_name if owner is not None else "-",
        "order_count": len(product.orders or []),
    }


def _order_summary(order: Order) -> dict:
    names = [p.name for p in order.products or []]
    return {
        "id": order.id,
        "date": format_order_date(order.order_date),
        "total": format_price(order.total_price),
        "products": product_names(names),
    }


def account_detail(account: Account) -> dict:
    """Account fields plus its orders, their products and the amount spent."""
    orders = account.orders or []
    return {
        "id": account.id,
        "nickname": account.nickname,
        "name": full_name(account.first_name, account.last_name),
        "email": account.email,
        "orders": [_order_summary(o) for o in orders],
        "order_count": len(orders),
        "total_spent": format_price(sum(o.total_price for o in orders)),
    }


def order_detail(order: Order) -> dict:
    account = order.account
    names = [p.name for p in order.products or []]
    detail = _order_summary(order)
    detail.update({
        "account": account.display_name if account is not None else "-",
        "nickname": account.nickname if account is not None else "",
        "product_list": names,
    })
    return detail
