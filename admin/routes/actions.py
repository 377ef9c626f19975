"""
Backoffice JSON action routes: form submissions, deletes and cache control.

Routes:
    POST   /actions/products              create a product
    POST   /actions/products/bulk         create many products
    PUT    /actions/products/{id}         edit a product
    DELETE /actions/products/{id}         delete a product
    (same POST/PUT/DELETE for /actions/accounts and /actions/orders)
    POST   /actions/categories            create a category
    DELETE /actions/categories/{id}       delete a category
    POST   /actions/orders/total          total of a selection (optional toggle)
    GET    /actions/orders/containing     orders containing a category or price
    POST   /actions/cache/refresh         mark a resource's cached reads stale

Edits start from the cached entity and overlay the posted fields, so a
field the form does not send (an order's date, say) keeps its value.
Every mutation invalidates the affected cached collections before the
response is sent, so the next page load shows the change. Errors map to
JSON responses in create_app(): 422 validation, 409 unknown reference,
502 backend failure.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from admin.dependencies import get_service
from admin.models import (
    DeleteResponse,
    OrderTotalRequest,
    OrderTotalResponse,
    RefreshRequest,
    RefreshResponse,
)
from backoffice.forms import AccountDraft, CategoryDraft, OrderDraft, ProductDraft
from backoffice.queries import StoreService
from utils.config import ACCOUNTS, CATEGORIES, ORDERS, PRODUCTS
from utils.formatting import format_price
from utils.strings import safe_float
from utils.validation import is_valid_price

router = APIRouter(prefix="/actions", tags=["actions"])


# ── Products ──────────────────────────────────────────────────────────────────

@router.post("/products", status_code=status.HTTP_201_CREATED,
             summary="Create a product")
def create_product(payload: dict[str, Any] = Body(...),
                   service: StoreService = Depends(get_service)) -> dict[str, Any]:
    draft = ProductDraft.from_form(payload)
    draft.id = None
    return service.save_product(draft).to_wire()


@router.post("/products/bulk", status_code=status.HTTP_201_CREATED,
             summary="Create many products")
def import_products(payload: list[dict[str, Any]] = Body(...),
                    service: StoreService = Depends(get_service)) -> list[dict[str, Any]]:
    drafts = [ProductDraft.from_form(row) for row in payload]
    return [p.to_wire() for p in service.import_products(drafts)]


@router.put("/products/{product_id}", summary="Edit a product")
def update_product(product_id: int, payload: dict[str, Any] = Body(...),
                   service: StoreService = Depends(get_service)) -> dict[str, Any]:
    draft = ProductDraft.from_model(service.lookup(PRODUCTS, product_id)).apply_form(payload)
    draft.id = product_id
    return service.save_product(draft).to_wire()


@router.delete("/products/{product_id}", response_model=DeleteResponse,
               summary="Delete a product")
def delete_product(product_id: int,
                   service: StoreService = Depends(get_service)) -> DeleteResponse:
    service.delete_product(product_id)
    return DeleteResponse(resource=PRODUCTS, id=product_id)


# ── Accounts ──────────────────────────────────────────────────────────────────

@router.post("/accounts", status_code=status.HTTP_201_CREATED,
             summary="Create an account")
def create_account(payload: dict[str, Any] = Body(...),
                   service: StoreService = Depends(get_service)) -> dict[str, Any]:
    draft = AccountDraft.from_form(payload)
    draft.id = None
    return service.save_account(draft).to_wire()


@router.put("/accounts/{account_id}", summary="Edit an account")
def update_account(account_id: int, payload: dict[str, Any] = Body(...),
                   service: StoreService = Depends(get_service)) -> dict[str, Any]:
    draft = AccountDraft.from_model(service.lookup(ACCOUNTS, account_id)).apply_form(payload)
    draft.id = account_id
    return service.save_account(draft).to_wire()


@router.delete("/accounts/{account_id}", response_model=DeleteResponse,
               summary="Delete an account")
def delete_account(account_id: int,
                   service: StoreService = Depends(get_service)) -> DeleteResponse:
    service.delete_account(account_id)
    return DeleteResponse(resource=ACCOUNTS, id=account_id)


# ── Orders ────────────────────────────────────────────────────────────────────

@router.post("/orders/total", response_model=OrderTotalResponse, summary="Compute an order total")
def order_total(body: OrderTotalRequest,
                service: StoreService = Depends(get_service)) -> OrderTotalResponse:
    """Recompute the total of a selection against the cached catalog."""
    draft = OrderDraft(selected_product_ids=body.product_ids,
                       catalog=service.products())
    if body.toggle is not None:
        draft.toggle_product(body.toggle)
    return OrderTotalResponse(
        product_ids=draft.selected_product_ids,
        total_price=draft.total_price,
        formatted=format_price(draft.total_price),
    )


@router.get("/orders/containing", summary="Orders containing a category or price")
def orders_containing(category: str | None = None, price: str | None = None,
                      service: StoreService = Depends(get_service)) -> list[dict[str, Any]]:
    if category:
        orders = service.orders_by_category(category)
    elif price not in (None, ""):
        value = safe_float(price, default=None)
        if value is None or not is_valid_price(value):
            raise HTTPException(status_code=400, detail=f"Invalid price {price!r}")
        orders = service.orders_by_price(value)
    else:
        raise HTTPException(status_code=400, detail="Pass either category or price")
    return [o.to_wire() for o in orders]


@router.post("/orders", status_code=status.HTTP_201_CREATED,
             summary="Create an order")
def create_order(payload: dict[str, Any] = Body(...),
                 service: StoreService = Depends(get_service)) -> dict[str, Any]:
    draft = OrderDraft.from_form(payload)
    draft.id = None
    return service.save_order(draft).to_wire()


@router.put("/orders/{order_id}", summary="Edit an order")
def update_order(order_id: int, payload: dict[str, Any] = Body(...),
                 service: StoreService = Depends(get_service)) -> dict[str, Any]:
    order = service.lookup(ORDERS, order_id)
    draft = OrderDraft.from_model(order, service.products()).apply_form(payload)
    draft.id = order_id
    return service.save_order(draft).to_wire()


@router.delete("/orders/{order_id}", response_model=DeleteResponse,
               summary="Delete an order")
def delete_order(order_id: int,
                 service: StoreService = Depends(get_service)) -> DeleteResponse:
    service.delete_order(order_id)
    return DeleteResponse(resource=ORDERS, id=order_id)


# ── Cache ─────────────────────────────────────────────────────────────────────

@router.post("/cache/refresh", response_model=RefreshResponse,
             summary="Mark a resource's cached reads stale")
def refresh_cache(body: RefreshRequest,
                  service: StoreService = Depends(get_service)) -> RefreshResponse:
    count = service.refresh(body.resource)
    return RefreshResponse(resource=body.resource, invalidated=count)


# ── Categories ────────────────────────────────────────────────────────────────

@router.post("/categories", status_code=status.HTTP_201_CREATED,
             summary="Create a category")
def create_category(payload: dict[str, Any] = Body(...),
                    service: StoreService = Depends(get_service)) -> dict[str, Any]:
    draft = CategoryDraft.from_form(payload)
    draft.id = None
    return service.save_category(draft).to_wire()


@router.delete("/categories/{category_id}", response_model=DeleteResponse,
               summary="Delete a category")
def delete_category(category_id: int,
                    service: StoreService = Depends(get_service)) -> DeleteResponse:
    service.delete_category(category_id)
    return DeleteResponse(resource=CATEGORIES, id=category_id)
