"""
Backoffice HTML routes.

Routes:
    GET /                          -> products.html
    GET /products[?q=&category=&price=]
                                   -> products.html (list + filter box)
    GET /accounts[?q=]             -> accounts.html
    GET /orders[?q=]               -> orders.html
    GET /partials/{resource}/{id}  -> partials/detail.html (detail panel)
    GET /partials/{resource}/{id}/edit
                                   -> partials/edit_form.html (pre-filled edit form)

List pages read through the query cache and filter locally; a failed read
renders the page in its error state with a retry link instead of failing
the request; a malformed backend filter renders a 400 with the filter error
and no backend call. Detail and edit partials are projected from the cached
collection and never fetch a single entity.
"""

from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from admin.dependencies import get_service
from backoffice.forms import AccountDraft, OrderDraft, ProductDraft
from backoffice.queries import StoreService
from backoffice.views import (
    ListView,
    ViewState,
    account_detail,
    match_account,
    match_order,
    match_product,
    order_detail,
    product_detail,
)
from store.errors import ReferenceNotFound
from utils.config import ACCOUNTS, ORDERS, PRODUCTS
from utils.strings import safe_float
from utils.validation import is_valid_price

router = APIRouter(tags=["pages"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None

_DETAILS: dict[str, Callable[[Any], dict]] = {
    PRODUCTS: product_detail,
    ACCOUNTS: account_detail,
    ORDERS: order_detail,
}


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised; call set_templates() first")
    return _templates


def _render_list(request: Request, template: str, view: ListView,
                 q: str, filter_error: str | None = None, **extra: Any) -> HTMLResponse:
    if filter_error is None:
        view.load()
        view.filter_text(q)
        status_code = 200 if view.state is ViewState.LOADED else 502
    else:
        status_code = 400
    return _tmpl().TemplateResponse(
        request,
        template,
        {
            "view": view,
            "items": view.displayed,
            "total": len(view.items),
            "q": q,
            "error": view.error_message,
            "filter_error": filter_error,
            **extra,
        },
        status_code=status_code,
    )


def _find(service: StoreService, resource: str, item_id: int):
    if resource not in _DETAILS:
        raise HTTPException(status_code=404, detail=f"Unknown resource {resource!r}")
    try:
        return service.lookup(resource, item_id)
    except ReferenceNotFound:
        raise HTTPException(status_code=404,
                            detail=f"{resource}/{item_id} not found") from None


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
@router.get("/products", response_class=HTMLResponse, include_in_schema=False)
def products_page(
    request: Request,
    q: str = "",
    category: str | None = None,
    price: str | None = None,
    service: StoreService = Depends(get_service),
) -> HTMLResponse:
    """Product list. ``category``/``price`` filter on the backend, ``q`` locally."""
    category = category or None
    price = (price or "").strip()
    price_value = safe_float(price, default=None)
    view = ListView(lambda: service.products(category=category, price=price_value),
                    match_product)
    extra = {"category": category or "", "price": price, "categories": []}
    if price and (price_value is None or not is_valid_price(price_value)):
        return _render_list(request, "products.html", view, q,
                            filter_error=f"Price filter must be a non-negative number, got {price!r}",
                            **extra)

    categories = ListView(service.categories)
    categories.load()
    extra["categories"] = categories.items
    return _render_list(request, "products.html", view, q, **extra)


@router.get("/accounts", response_class=HTMLResponse, include_in_schema=False)
def accounts_page(
    request: Request,
    q: str = "",
    service: StoreService = Depends(get_service),
) -> HTMLResponse:
    view = ListView(service.accounts, match_account)
    return _render_list(request, "accounts.html", view, q)


@router.get("/orders", response_class=HTMLResponse, include_in_schema=False)
def orders_page(
    request: Request,
    q: str = "",
    service: StoreService = Depends(get_service),
) -> HTMLResponse:
    """Order list; the account list and catalog feed the new-order form."""
    view = ListView(service.orders, match_order)
    accounts = ListView(service.accounts)
    catalog = ListView(service.products)
    accounts.load()
    catalog.load()
    return _render_list(request, "orders.html", view, q,
                        accounts=accounts.items, catalog=catalog.items)


@router.get("/partials/{resource}/{item_id}", response_class=HTMLResponse,
            include_in_schema=False)
def detail_partial(
    resource: str,
    item_id: int,
    request: Request,
    service: StoreService = Depends(get_service),
) -> HTMLResponse:
    """Detail panel for one entity, from the cached collection."""
    item = _find(service, resource, item_id)
    return _tmpl().TemplateResponse(
        request,
        "partials/detail.html",
        {"resource": resource, "item": _DETAILS[resource](item)},
    )


@router.get("/partials/{resource}/{item_id}/edit", response_class=HTMLResponse,
            include_in_schema=False)
def edit_partial(
    resource: str,
    item_id: int,
    request: Request,
    service: StoreService = Depends(get_service),
) -> HTMLResponse:
    """Edit form seeded from the cached entity; submits a PUT to /actions."""
    item = _find(service, resource, item_id)
    context: dict[str, Any] = {"resource": resource}
    if resource == PRODUCTS:
        context["draft"] = ProductDraft.from_model(item)
    elif resource == ACCOUNTS:
        context["draft"] = AccountDraft.from_model(item)
    else:
        catalog = service.products()
        context.update(draft=OrderDraft.from_model(item, catalog),
                       accounts=service.accounts(), catalog=catalog)
    return _tmpl().TemplateResponse(request, "partials/edit_form.html", context)
