"""
Pydantic request/response models for the backoffice action endpoints.

Entity bodies (products, accounts, orders) are accepted as plain JSON objects
and checked by the form drafts, so a failed check is reported with the
draft's own issue list rather than pydantic's error format.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ── Order total ───────────────────────────────────────────────────────────────

class OrderTotalRequest(BaseModel):
    """Current selection of an order form, plus an optional toggle."""
    model_config = ConfigDict(populate_by_name=True)

    product_ids: list[int] = Field(default_factory=list, alias="productIds",
                                   description="Currently selected product ids", examples=[[1, 2]])
    toggle: int | None = Field(None, description="Product id to select or deselect", examples=[1])


class OrderTotalResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_ids: list[int] = Field(..., alias="productIds", description="Selection after the toggle")
    total_price: float = Field(..., alias="totalPrice", description="Sum of selected product prices", examples=[30.0])
    formatted: str = Field(..., description="Display form of the total", examples=["$30.00"])


# ── Cache ─────────────────────────────────────────────────────────────────────

class RefreshRequest(BaseModel):
    resource: str = Field(..., description="Resource whose cached reads are dropped", examples=["orders"])


class RefreshResponse(BaseModel):
    resource: str = Field(..., description="Resource refreshed", examples=["orders"])
    invalidated: int = Field(..., ge=0, description="Number of cache keys marked stale", examples=[2])


# ── Mutations ─────────────────────────────────────────────────────────────────

class DeleteResponse(BaseModel):
    """Confirmation of a delete action."""
    status: str = Field("deleted", description="Action outcome", examples=["deleted"])
    resource: str = Field(..., description="Resource name", examples=["orders"])
    id: int = Field(..., description="Deleted identity", examples=[5])


# ── Errors ────────────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Operation failed"])
    detail: str | None = Field(None, description="Extended error detail")
    issues: list[dict[str, Any]] | None = Field(None, description="Field issues of a failed validation")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[502])
