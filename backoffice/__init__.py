"""Backoffice application layer: cached queries, form drafts and view models."""

from backoffice.forms import AccountDraft, CategoryDraft, OrderDraft, ProductDraft, utc_now_iso
from backoffice.queries import INVALIDATES, StoreService, query_key
from backoffice.views import (
    ListView,
    ViewState,
    account_detail,
    filter_products,
    match_account,
    match_order,
    match_product,
    order_detail,
    product_detail,
)

__all__ = [
    "AccountDraft",
    "CategoryDraft",
    "OrderDraft",
    "ProductDraft",
    "utc_now_iso",
    "INVALIDATES",
    "StoreService",
    "query_key",
    "ListView",
    "ViewState",
    "account_detail",
    "filter_products",
    "match_account",
    "match_order",
    "match_product",
    "order_detail",
    "product_detail",
]
