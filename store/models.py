"""
Pydantic models for the store REST backend's wire format.

Field names follow Python conventions; the backend's camelCase names are
declared as aliases, and both spellings are accepted on input.

Relations (``Product.orders``, ``Account.orders``, ``Order.products`` ...)
are read-only snapshots populated by the server. They are never sent back:
``to_payload()`` builds the request body for POST/PUT from writable fields
only, and strips every relation that could re-embed the entity being saved.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for every entity exchanged with the backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Full camelCase dump, relations included (for display / JSON views)."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ── Product ──────────────────────────────────────────────────────────────────

class Product(WireModel):
    """A product sold in the store."""
    id: int | None = Field(None, description="Server-assigned identity; absent before creation", examples=[1])
    name: str = Field(..., min_length=1, description="Product name", examples=["Widget"])
    price: float = Field(..., ge=0, description="Unit price in dollars", examples=[10.0])
    category: str = Field(..., description="Free-text category", examples=["Tools"])
    account: Account | None = Field(None, description="Owning account (read-only)")
    orders: list[Order] | None = Field(None, description="Orders containing this product (read-only)")

    def to_payload(self, include_id: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "price": self.price,
            "category": self.category,
        }
        if include_id and self.id is not None:
            data["id"] = self.id
        return data


# ── Account ──────────────────────────────────────────────────────────────────

class Account(WireModel):
    """A customer account. Owns orders (one-to-many)."""
    id: int | None = Field(None, description="Server-assigned identity", examples=[7])
    nickname: str = Field(..., description="Unique nickname", examples=["ivan"])
    first_name: str = Field(..., alias="firstName", description="First name", examples=["Ivan"])
    last_name: str = Field(..., alias="lastName", description="Last name", examples=["Petrov"])
    email: str = Field(..., description="Unique e-mail address", examples=["ivan@example.com"])
    orders: list[Order] | None = Field(None, description="Orders placed by this account (read-only)")
    products: list[Product] | None = Field(None, description="Products owned by this account (read-only)")

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def to_payload(self, include_id: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "nickname": self.nickname,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }
        if include_id and self.id is not None:
            data["id"] = self.id
        return data


# ── Order ────────────────────────────────────────────────────────────────────

class Order(WireModel):
    """An order: one account, many products (many-to-many)."""
    id: int | None = Field(None, description="Server-assigned identity", examples=[5])
    order_date: str = Field(..., alias="orderDate", description="ISO-8601 timestamp", examples=["2025-03-01T10:15:00.000Z"])
    total_price: float = Field(0.0, alias="totalPrice", ge=0, description="Sum of product prices at submission", examples=[30.0])
    account: Account | None = Field(None, description="Ordering account")
    products: list[Product] | None = Field(None, description="Products in the order (read-only view)")
    product_ids: list[int] | None = Field(None, alias="productIds", description="Product identities (write-only payload field)")

    def selected_product_ids(self) -> list[int]:
        """Product ids from the payload field, else from the embedded products."""
        if self.product_ids is not None:
            return list(self.product_ids)
        return [p.id for p in self.products or [] if p.id is not None]

    def to_payload(self, include_id: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "orderDate": self.order_date,
            "totalPrice": self.total_price,
            "productIds": self.selected_product_ids(),
        }
        if self.account is not None:
            # The account travels as a bare reference; its own orders would
            # re-embed this order.
            data["account"] = self.account.to_payload(include_id=True)
        if include_id and self.id is not None:
            data["id"] = self.id
        return data


# ── Category ─────────────────────────────────────────────────────────────────

class Category(WireModel):
    """A product category managed by the backend."""
    id: int | None = Field(None, description="Server-assigned identity", examples=[3])
    name: str = Field(..., min_length=1, description="Category name", examples=["Tools"])
    products: list[Product] | None = Field(None, description="Products in this category (read-only)")

    def to_payload(self, include_id: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if include_id and self.id is not None:
            data["id"] = self.id
        return data


Product.model_rebuild()
Account.model_rebuild()
Order.model_rebuild()
Category.model_rebuild()
