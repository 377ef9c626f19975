"""
Form state controllers: per-entity drafts with validation.

A draft holds the in-progress, unsaved edits of one entity, independent of
the query cache. ``from_model()`` seeds an edit form from a fetched entity,
``from_form()`` reads the raw values posted by the browser for a new entity,
and ``apply_form()`` overlays posted values on a seeded draft; fields the
browser did not send keep their seeded value. ``validate()`` runs the local
field checks, and ``to_model()`` / ``build_order()`` turn the draft into the
entity to submit, raising before any network call when the draft is invalid.

OrderDraft also owns the derived ``total_price``: the sum of the prices of
the catalog products whose id is selected, recomputed synchronously every
time the selection or the catalog changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from store.errors import FormValidationError, ReferenceNotFound
from store.models import Account, Category, Order, Product
from utils.config import ACCOUNTS, PRODUCTS
from utils.strings import safe_float
from utils.validation import (
    ValidationResult,
    is_valid_email,
    is_valid_iso_datetime,
    is_valid_price,
)

NICKNAME_MAX = 50
NAME_MAX = 100


def utc_now_iso() -> str:
    """Current UTC time as ``2025-03-01T10:15:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _posted(data: Mapping[str, Any], *names: str) -> bool:
    return any(name in data for name in names)


def _value(data: Mapping[str, Any], *names: str) -> Any:
    """First non-None value among *names* (wire and Python spellings)."""
    for name in names:
        value = data.get(name)
        if value is not None:
            return value
    return None


def _text(data: Mapping[str, Any], *names: str) -> str:
    value = _value(data, *names)
    return "" if value is None else str(value)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _product_ids(raw: Any) -> list[int]:
    """Parse the posted product selection.

    Raises:
        FormValidationError: *raw* is not a list of integer ids.
    """
    if raw is None or raw == "":
        return []
    result = ValidationResult("order")
    if not isinstance(raw, (list, tuple)):
        result.add_issue("productIds", "Products must be a list of product ids", value=raw)
        raise FormValidationError(result)
    ids = []
    for value in raw:
        if value is None or value == "":
            continue
        parsed = _optional_int(value)
        if parsed is None or isinstance(value, (bool, float)):
            result.add_issue("productIds", "Product ids must be integers", value=value)
        else:
            ids.append(parsed)
    _raise_if_invalid(result)
    return ids


def _raise_if_invalid(result: ValidationResult) -> None:
    if not result.is_valid():
        raise FormValidationError(result)


# ── Product ──────────────────────────────────────────────────────────────────

@dataclass
class ProductDraft:
    name: str = ""
    category: str = ""
    price: float | None = 0.0
    id: int | None = None

    @classmethod
    def from_model(cls, product: Product) -> ProductDraft:
        return cls(name=product.name, category=product.category,
                   price=product.price, id=product.id)

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> ProductDraft:
        draft = cls(price=None, id=_optional_int(data.get("id")))
        return draft.apply_form(data)

    def apply_form(self, data: Mapping[str, Any]) -> ProductDraft:
        if "name" in data:
            self.name = _text(data, "name")
        if "category" in data:
            self.category = _text(data, "category")
        if "price" in data:
            self.price = safe_float(data["price"], default=None)
        return self

    def validate(self) -> ValidationResult:
        result = ValidationResult("product")
        result.require("name", self.name, "Name")
        result.require("category", self.category, "Category")
        if self.price is None:
            result.add_issue("price", "Price is required")
        elif not is_valid_price(self.price):
            result.add_issue("price", "Price must be a non-negative number", value=self.price)
        return result

    def to_model(self) -> Product:
        _raise_if_invalid(self.validate())
        return Product(id=self.id, name=self.name.strip(),
                       category=self.category.strip(), price=self.price)


# ── Account ──────────────────────────────────────────────────────────────────

@dataclass
class AccountDraft:
    nickname: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    id: int | None = None

    @classmethod
    def from_model(cls, account: Account) -> AccountDraft:
        return cls(nickname=account.nickname, first_name=account.first_name,
                   last_name=account.last_name, email=account.email, id=account.id)

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> AccountDraft:
        return cls(id=_optional_int(data.get("id"))).apply_form(data)

    def apply_form(self, data: Mapping[str, Any]) -> AccountDraft:
        if "nickname" in data:
            self.nickname = _text(data, "nickname")
        if _posted(data, "firstName", "first_name"):
            self.first_name = _text(data, "firstName", "first_name")
        if _posted(data, "lastName", "last_name"):
            self.last_name = _text(data, "lastName", "last_name")
        if "email" in data:
            self.email = _text(data, "email")
        return self

    def validate(self) -> ValidationResult:
        result = ValidationResult("account")
        if result.require("nickname", self.nickname, "Nickname"):
            result.check_max_length("nickname", self.nickname.strip(), NICKNAME_MAX, "Nickname")
        if result.require("firstName", self.first_name, "First name"):
            result.check_max_length("firstName", self.first_name.strip(), NAME_MAX, "First name")
        if result.require("lastName", self.last_name, "Last name"):
            result.check_max_length("lastName", self.last_name.strip(), NAME_MAX, "Last name")
        if result.require("email", self.email, "Email") and not is_valid_email(self.email):
            result.add_issue("email", "Email should be valid", value=self.email)
        return result

    def to_model(self) -> Account:
        _raise_if_invalid(self.validate())
        return Account(
            id=self.id,
            nickname=self.nickname.strip(),
            first_name=self.first_name.strip(),
            last_name=self.last_name.strip(),
            email=self.email.strip(),
        )


# ── Category ─────────────────────────────────────────────────────────────────

@dataclass
class CategoryDraft:
    name: str = ""
    id: int | None = None

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> CategoryDraft:
        return cls(name=_text(data, "name"), id=_optional_int(data.get("id")))

    def validate(self) -> ValidationResult:
        result = ValidationResult("category")
        if result.require("name", self.name, "Name"):
            result.check_max_length("name", self.name.strip(), NAME_MAX, "Name")
        return result

    def to_model(self) -> Category:
        _raise_if_invalid(self.validate())
        return Category(id=self.id, name=self.name.strip())


# ── Order ────────────────────────────────────────────────────────────────────

@dataclass
class OrderDraft:
    """Draft of an order, with the product catalog used for its total.

    ``selected_product_ids`` keeps selection order and never holds
    duplicates. ``total_price`` is derived; assign to the selection through
    ``toggle_product()`` / ``select_products()`` so it stays current.
    """

    account_id: int | None = None
    selected_product_ids: list[int] = field(default_factory=list)
    order_date: str | None = None
    id: int | None = None
    catalog: list[Product] = field(default_factory=list, repr=False)
    total_price: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        self.selected_product_ids = list(dict.fromkeys(self.selected_product_ids))
        self.catalog = list(self.catalog)
        self.recompute_total()

    @classmethod
    def from_model(cls, order: Order, catalog: Iterable[Product] = ()) -> OrderDraft:
        account_id = order.account.id if order.account is not None else None
        return cls(account_id=account_id,
                   selected_product_ids=order.selected_product_ids(),
                   order_date=order.order_date, id=order.id, catalog=list(catalog))

    @classmethod
    def from_form(cls, data: Mapping[str, Any],
                  catalog: Iterable[Product] = ()) -> OrderDraft:
        draft = cls(id=_optional_int(data.get("id")), catalog=list(catalog))
        return draft.apply_form(data)

    def apply_form(self, data: Mapping[str, Any]) -> OrderDraft:
        """Overlay the posted account, selection and date.

        Raises:
            FormValidationError: ``productIds`` is not a list of ids.
        """
        if _posted(data, "accountId", "account_id"):
            self.account_id = _optional_int(_value(data, "accountId", "account_id"))
        if _posted(data, "productIds", "product_ids"):
            self.select_products(_product_ids(_value(data, "productIds", "product_ids")))
        if _posted(data, "orderDate", "order_date"):
            self.order_date = _value(data, "orderDate", "order_date") or None
        return self

    # ── Derived state ─────────────────────────────────────────────────────

    def recompute_total(self) -> float:
        if not self.selected_product_ids:
            self.total_price = 0.0
        else:
            selected = set(self.selected_product_ids)
            self.total_price = float(sum(
                p.price for p in self.catalog if p.id is not None and p.id in selected
            ))
        return self.total_price

    def set_catalog(self, products: Iterable[Product]) -> float:
        self.catalog = list(products)
        return self.recompute_total()

    def toggle_product(self, product_id: int) -> float:
        """Select *product_id* if absent, deselect it if present."""
        if product_id in self.selected_product_ids:
            self.selected_product_ids = [i for i in self.selected_product_ids if i != product_id]
        else:
            self.selected_product_ids = [*self.selected_product_ids, product_id]
        return self.recompute_total()

    def select_products(self, product_ids: Iterable[int]) -> float:
        self.selected_product_ids = list(dict.fromkeys(product_ids))
        return self.recompute_total()

    # ── Submission ────────────────────────────────────────────────────────

    def validate(self) -> ValidationResult:
        result = ValidationResult("order")
        if self.account_id is None:
            result.add_issue("account", "Account is required")
        if self.order_date is not None and not is_valid_iso_datetime(self.order_date):
            result.add_issue("orderDate", "Order date must be an ISO-8601 timestamp",
                             value=self.order_date)
        return result

    def build_order(self, accounts: Iterable[Account]) -> Order:
        """Build the order to submit.

        Args:
            accounts: The cached account collection; the selected account is
                resolved against it.

        Raises:
            FormValidationError: A field check failed.
            ReferenceNotFound: The selected account, or a selected product,
                is not in the cached collections.
        """
        _raise_if_invalid(self.validate())

        account = next((a for a in accounts if a.id == self.account_id), None)
        if account is None:
            raise ReferenceNotFound(ACCOUNTS, self.account_id)

        known = {p.id for p in self.catalog}
        missing = [i for i in self.selected_product_ids if i not in known]
        if missing:
            raise ReferenceNotFound(PRODUCTS, missing[0])

        return Order(
            id=self.id,
            order_date=self.order_date or utc_now_iso(),
            total_price=self.recompute_total(),
            account=account.model_copy(update={"orders": None, "products": None}),
            product_ids=list(self.selected_product_ids),
        )
