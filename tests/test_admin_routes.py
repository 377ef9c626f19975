"""
Tests for admin/app.py and admin/routes: pages, partials and JSON actions

Uses FastAPI's TestClient against an app wired to the FakeBackend.
"""
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient

from admin.app import _JsonFormatter, create_app
from utils.config import AppConfig

from conftest import BASE_URL


class TestCreateApp:
    def test_creates_fastapi_instance(self, store_client, cache):
        app = create_app(config=AppConfig(), client=store_client, cache=cache)
        assert app.title == "Store Backoffice"
        assert app.state.service.cache is cache
        assert app.state.owns_client is False

    def test_registers_routes(self, store_client, cache):
        app = create_app(config=AppConfig(), client=store_client, cache=cache)
        paths = {getattr(r, "path", "") for r in app.routes}
        for path in ("/", "/products", "/accounts", "/orders", "/health",
                     "/partials/{resource}/{item_id}", "/actions/orders/total",
                     "/actions/cache/refresh"):
            assert path in paths

    def test_builds_client_from_config(self, monkeypatch):
        monkeypatch.setenv("STORE_API_URL", "http://store.test:9090/api/")
        app = create_app(config=AppConfig())
        assert app.state.service.client.base_url == "http://store.test:9090/api"
        assert app.state.owns_client is True


class TestHealth:
    def test_health_reports_cache_without_backend_calls(self, app_client, backend):
        resp = app_client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["backend"] == BASE_URL
        assert data["cache"]["size"] == 0
        assert backend.calls == []

    def test_request_id_header(self, app_client):
        resp = app_client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 8


class TestPages:
    def test_products_page(self, app_client):
        resp = app_client.get("/products")
        assert resp.status_code == 200
        for name in ("Widget", "Gadget", "Apple"):
            assert name in resp.text
        assert "$10.00" in resp.text

    def test_index_is_products(self, app_client):
        assert "Widget" in app_client.get("/").text

    def test_filter_text(self, app_client):
        resp = app_client.get("/products", params={"q": "tool"})
        assert "Widget" in resp.text
        assert "Gadget" in resp.text
        assert "Apple" not in resp.text
        assert "2 of 3 shown" in resp.text

    def test_filter_served_from_cache(self, app_client, backend):
        app_client.get("/products")
        app_client.get("/products", params={"q": "widget"})
        assert backend.count("GET", "/products") == 1

    def test_backend_category_filter(self, app_client, backend):
        resp = app_client.get("/products", params={"category": "Food"})
        assert "Apple" in resp.text
        assert "Widget" not in resp.text
        assert backend.calls[-1][2] == {"category": "Food"}

    def test_accounts_page(self, app_client):
        resp = app_client.get("/accounts", params={"q": "petrov"})
        assert resp.status_code == 200
        assert "ivan@example.com" in resp.text

    def test_orders_page(self, app_client):
        resp = app_client.get("/orders")
        assert resp.status_code == 200
        assert "Ivan Petrov" in resp.text
        assert "2025-03-01 10:15" in resp.text
        assert "$30.00" in resp.text

    def test_failed_read_renders_error_state(self, app_client, backend):
        backend.fail("GET", "/products", 500)
        resp = app_client.get("/products")
        assert resp.status_code == 502
        assert "Failed to fetch products" in resp.text
        assert "Retry" in resp.text

    def test_malformed_price_filter(self, app_client, backend):
        resp = app_client.get("/products", params={"price": "abc"})
        assert resp.status_code == 400
        assert "Price filter must be a non-negative number" in resp.text
        assert backend.calls == []

    def test_negative_price_filter(self, app_client, backend):
        assert app_client.get("/products", params={"price": "-5"}).status_code == 400
        assert backend.calls == []

    def test_products_page_lists_categories(self, app_client):
        resp = app_client.get("/products")
        assert "removeItem('categories', 2)" in resp.text


class TestDetailPartials:
    def test_order_detail(self, app_client):
        resp = app_client.get("/partials/orders/5")
        assert resp.status_code == 200
        assert "Widget, Gadget" in resp.text

    def test_account_detail(self, app_client):
        resp = app_client.get("/partials/accounts/7")
        assert resp.status_code == 200
        assert "Ivan Petrov" in resp.text

    def test_detail_uses_cached_collection(self, app_client, backend):
        app_client.get("/products")
        app_client.get("/partials/products/2")
        assert backend.count("GET", "/products/2") == 0
        assert backend.count("GET", "/products") == 1

    def test_missing_entity(self, app_client):
        assert app_client.get("/partials/orders/99").status_code == 404

    def test_unknown_resource(self, app_client):
        assert app_client.get("/partials/invoices/1").status_code == 404


class TestProductActions:
    def test_create_then_list(self, app_client):
        resp = app_client.post("/actions/products",
                               json={"name": "Hammer", "category": "Tools", "price": "15.5"})
        assert resp.status_code == 201
        assert resp.json()["name"] == "Hammer"
        assert "Hammer" in app_client.get("/products").text

    def test_update(self, app_client, backend):
        resp = app_client.put("/actions/products/1",
                              json={"name": "Widget Pro", "category": "Tools", "price": 12})
        assert resp.status_code == 200
        assert backend.data["products"][1]["name"] == "Widget Pro"

    def test_delete(self, app_client, backend):
        resp = app_client.delete("/actions/products/3")
        assert resp.json() == {"status": "deleted", "resource": "products", "id": 3}
        assert 3 not in backend.data["products"]

    def test_invalid_product(self, app_client, backend):
        resp = app_client.post("/actions/products",
                               json={"name": "", "category": "Tools", "price": -1})
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "Validation failed"
        assert [i["field"] for i in body["issues"]] == ["name", "price"]
        assert backend.writes == 0

    def test_infinite_price_rejected(self, app_client, backend):
        resp = app_client.post("/actions/products",
                               json={"name": "Hammer", "category": "Tools", "price": "inf"})
        assert resp.status_code == 422
        assert resp.json()["issues"][0]["field"] == "price"
        assert backend.writes == 0

    def test_bulk_import(self, app_client, backend):
        resp = app_client.post("/actions/products/bulk", json=[
            {"name": "Saw", "category": "Tools", "price": 30},
            {"name": "Pear", "category": "Food", "price": 2},
        ])
        assert resp.status_code == 201
        assert [p["name"] for p in resp.json()] == ["Saw", "Pear"]


class TestAccountActions:
    def test_missing_email_rejected_without_network(self, app_client, backend):
        resp = app_client.post("/actions/accounts", json={
            "nickname": "maria", "firstName": "Maria", "lastName": "Ivanova", "email": "",
        })
        assert resp.status_code == 422
        assert resp.json()["issues"][0]["field"] == "email"
        assert backend.calls == []

    def test_create(self, app_client):
        resp = app_client.post("/actions/accounts", json={
            "nickname": "maria", "firstName": "Maria", "lastName": "Ivanova",
            "email": "maria@example.com",
        })
        assert resp.status_code == 201
        assert resp.json()["firstName"] == "Maria"


class TestOrderActions:
    def test_total_with_toggle(self, app_client):
        resp = app_client.post("/actions/orders/total", json={"productIds": [1], "toggle": 2})
        assert resp.status_code == 200
        assert resp.json() == {"productIds": [1, 2], "totalPrice": 30.0, "formatted": "$30.00"}

    def test_total_toggle_off(self, app_client):
        resp = app_client.post("/actions/orders/total", json={"productIds": [1, 2], "toggle": 1})
        assert resp.json()["totalPrice"] == 20.0

    def test_total_of_nothing(self, app_client):
        assert app_client.post("/actions/orders/total", json={}).json()["totalPrice"] == 0

    def test_create_order(self, app_client, backend):
        resp = app_client.post("/actions/orders", json={"accountId": 7, "productIds": [1, 2]})
        assert resp.status_code == 201
        assert resp.json()["totalPrice"] == 30.0
        assert len(backend.data["orders"]) == 2

    def test_unknown_account_conflict(self, app_client, backend):
        resp = app_client.post("/actions/orders", json={"accountId": 99, "productIds": [1]})
        assert resp.status_code == 409
        assert resp.json()["error"] == "Reference not found"
        assert backend.writes == 0

    def test_product_ids_must_be_a_list(self, app_client, backend):
        resp = app_client.post("/actions/orders", json={"accountId": 7, "productIds": "12"})
        assert resp.status_code == 422
        assert resp.json()["issues"][0]["field"] == "productIds"
        assert backend.writes == 0

    def test_delete_then_list(self, app_client, backend):
        assert "showDetail('orders', 5)" in app_client.get("/orders").text
        resp = app_client.delete("/actions/orders/5")
        assert resp.status_code == 200
        assert "showDetail('orders', 5)" not in app_client.get("/orders").text
        assert backend.count("GET", "/orders") == 2

    def test_backend_failure_is_502(self, app_client):
        resp = app_client.delete("/actions/orders/404")
        assert resp.status_code == 502
        body = resp.json()
        assert body["error"] == "Operation failed"
        assert body["detail"] == "Failed to delete orders/404"

    def test_orders_containing(self, app_client):
        resp = app_client.get("/actions/orders/containing", params={"category": "Tools"})
        assert [o["id"] for o in resp.json()] == [5]
        resp = app_client.get("/actions/orders/containing", params={"price": "20"})
        assert [o["id"] for o in resp.json()] == [5]

    def test_orders_containing_needs_a_filter(self, app_client):
        assert app_client.get("/actions/orders/containing").status_code == 400


class TestCacheRefresh:
    def test_refresh_forces_refetch(self, app_client, backend):
        app_client.get("/accounts")
        resp = app_client.post("/actions/cache/refresh", json={"resource": "accounts"})
        assert resp.json() == {"resource": "accounts", "invalidated": 1}
        app_client.get("/accounts")
        assert backend.count("GET", "/accounts") == 2

    def test_unknown_resource(self, app_client):
        resp = app_client.post("/actions/cache/refresh", json={"resource": "invoices"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Unknown resource"


class TestJsonFormatter:
    def test_emits_extra_fields(self):
        record = logging.LogRecord("store_backoffice", logging.INFO, __file__, 1,
                                   "request", None, None)
        record.method = "GET"
        record.status = 200
        data = json.loads(_JsonFormatter().format(record))
        assert data["message"] == "request"
        assert data["method"] == "GET"
        assert data["status"] == 200


class TestEditFlows:
    def test_order_edit_keeps_date(self, app_client, backend):
        resp = app_client.put("/actions/orders/5", json={"accountId": 7, "productIds": [1]})
        assert resp.status_code == 200
        assert resp.json()["orderDate"] == "2025-03-01T10:15:00.000Z"
        assert resp.json()["totalPrice"] == 10.0
        body = next(b for m, p, _q, b in backend.calls if (m, p) == ("PUT", "/orders/5"))
        assert body["orderDate"] == "2025-03-01T10:15:00.000Z"
        assert body["productIds"] == [1]

    def test_partial_product_edit_keeps_other_fields(self, app_client, backend):
        resp = app_client.put("/actions/products/2", json={"price": "25"})
        assert resp.status_code == 200
        stored = backend.data["products"][2]
        assert (stored["name"], stored["category"], stored["price"]) == ("Gadget", "Tools", 25.0)

    def test_partial_account_edit(self, app_client, backend):
        resp = app_client.put("/actions/accounts/7", json={"email": "petrov@example.com"})
        assert resp.status_code == 200
        assert backend.data["accounts"][7]["firstName"] == "Ivan"
        assert backend.data["accounts"][7]["email"] == "petrov@example.com"

    def test_edit_of_missing_entity_sends_nothing(self, app_client, backend):
        resp = app_client.put("/actions/products/99", json={"price": 1})
        assert resp.status_code == 409
        assert backend.writes == 0

    def test_order_edit_form_is_prefilled(self, app_client):
        resp = app_client.get("/partials/orders/5/edit")
        assert resp.status_code == 200
        assert 'value="7" selected' in resp.text
        assert 'value="1" checked' in resp.text
        assert 'value="2" checked' in resp.text
        assert 'value="3">' in resp.text
        assert "$30.00" in resp.text

    def test_product_edit_form_is_prefilled(self, app_client, backend):
        app_client.get("/products")
        resp = app_client.get("/partials/products/2/edit")
        assert 'value="Gadget"' in resp.text
        assert "saveEdit(event, 'products', 2)" in resp.text
        assert backend.count("GET", "/products") == 1

    def test_edit_form_for_missing_entity(self, app_client):
        assert app_client.get("/partials/accounts/99/edit").status_code == 404


class TestCategoryActions:
    def test_create_and_delete(self, app_client, backend):
        resp = app_client.post("/actions/categories", json={"name": "Garden"})
        assert resp.status_code == 201
        created = resp.json()["id"]
        assert "Garden" in app_client.get("/products").text
        resp = app_client.delete(f"/actions/categories/{created}")
        assert resp.json() == {"status": "deleted", "resource": "categories", "id": created}
        assert created not in backend.data["categories"]

    def test_blank_name_rejected(self, app_client, backend):
        resp = app_client.post("/actions/categories", json={"name": ""})
        assert resp.status_code == 422
        assert backend.writes == 0


class TestInternalErrors:
    def test_internal_value_error_is_500(self, store_client, cache, monkeypatch):
        app = create_app(config=AppConfig(), client=store_client, cache=cache)

        def broken(*args, **kwargs):
            raise ValueError("bug")

        monkeypatch.setattr(app.state.service, "products", broken)
        with TestClient(app, raise_server_exceptions=False) as client:
            resp = client.post("/actions/orders/total", json={"productIds": [1]})
        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"
