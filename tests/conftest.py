"""
Pytest fixtures for the store backoffice tests.

Provides an in-memory fake of the store REST backend (FakeBackend) that is
passed to StoreClient as its session, plus ready-made client, cache, service
and web-app fixtures on top of it. The fake records every request so tests
can assert on exactly which network calls were made.

Seed data (the scenarios used throughout the tests):

    products  1 Widget/Tools $10, 2 Gadget/Tools $20, 3 Apple/Food $1
    accounts  7 ivan (Ivan Petrov)
    orders    5 by account 7 with products 1 and 2, total $30
"""

import copy
import json
import sys
import threading
from pathlib import Path
from urllib.parse import urlsplit

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from client.resources import StoreClient  # noqa: E402
from utils.cache import QueryCache  # noqa: E402

BASE_URL = "http://backend.test/api"


# ── Fake backend ──────────────────────────────────────────────────────────────

class FakeResponse:
    """The subset of requests.Response the client reads."""

    def __init__(self, status_code: int = 200, body=None, reason: str = "OK"):
        self.status_code = status_code
        self.reason = reason
        self.content = b"" if body is None else json.dumps(body).encode()

    def json(self):
        return json.loads(self.content)


class FakeBackend:
    """In-memory store REST API with a request log.

    ``request()`` has the signature of ``requests.Session.request`` as the
    client calls it. Entities are stored as wire-format dicts; orders created
    with ``productIds`` get their products embedded like the real backend.
    """

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.data: dict[str, dict[int, dict]] = {
            "products": {}, "accounts": {}, "orders": {}, "categories": {},
        }
        self.calls: list[tuple] = []
        self.forced: dict[tuple[str, str], FakeResponse] = {}
        self.errors: dict[tuple[str, str], Exception] = {}
        self.gate: threading.Event | None = None
        self._next_id = 100
        self._lock = threading.Lock()

    # ── Test helpers ──────────────────────────────────────────────────────

    def seed(self, resource: str, *items: dict) -> None:
        for item in items:
            self.data[resource][item["id"]] = copy.deepcopy(item)

    def fail(self, method: str, path: str, status: int = 500,
             reason: str = "Internal Server Error") -> None:
        """Answer ``method path`` with *status* until ``heal()``."""
        self.forced[(method, path)] = FakeResponse(status, {"error": reason}, reason)

    def raise_on(self, method: str, path: str, exc: Exception) -> None:
        self.errors[(method, path)] = exc

    def heal(self) -> None:
        self.forced.clear()
        self.errors.clear()

    def count(self, method: str | None = None, path: str | None = None) -> int:
        return sum(
            1 for m, p, _params, _body in self.calls
            if (method is None or m == method) and (path is None or p == path)
        )

    @property
    def writes(self) -> int:
        return sum(1 for m, *_ in self.calls if m != "GET")

    # ── Session interface ─────────────────────────────────────────────────

    def request(self, method, url, params=None, json=None, timeout=None):
        path = urlsplit(url).path[len(urlsplit(self.base_url).path):]
        with self._lock:
            self.calls.append((method, path, params, copy.deepcopy(json)))
        if method == "GET" and self.gate is not None:
            self.gate.wait(timeout=5)
        if (method, path) in self.errors:
            raise self.errors[(method, path)]
        if (method, path) in self.forced:
            return self.forced[(method, path)]
        with self._lock:
            return self._dispatch(method, path, params or {}, json)

    def _dispatch(self, method, path, params, body):
        parts = path.strip("/").split("/")
        resource = parts[0]
        if resource not in self.data:
            return FakeResponse(404, {"error": "Not Found"}, "Not Found")
        table = self.data[resource]

        if len(parts) == 1:
            if method == "GET":
                return FakeResponse(200, self._filtered(resource, params))
            if method == "POST":
                return FakeResponse(201, self._store(resource, body))
        elif parts[1] == "bulk" and method == "POST":
            return FakeResponse(201, [self._store(resource, item) for item in body])
        elif parts[1] == "filter" and method == "GET":
            return FakeResponse(200, self._orders_containing(parts[2], params))
        else:
            item_id = int(parts[1])
            if item_id not in table:
                return FakeResponse(404, {"error": "Not Found"}, "Not Found")
            if method == "GET":
                return FakeResponse(200, copy.deepcopy(table[item_id]))
            if method == "PUT":
                return FakeResponse(200, self._store(resource, body, item_id))
            if method == "DELETE":
                del table[item_id]
                return FakeResponse(204, None, "No Content")
        return FakeResponse(405, {"error": "Method Not Allowed"}, "Method Not Allowed")

    def _filtered(self, resource, params):
        items = list(self.data[resource].values())
        if "category" in params:
            items = [i for i in items if i.get("category") == params["category"]]
        if "price" in params:
            items = [i for i in items if i.get("price") == float(params["price"])]
        return copy.deepcopy(items)

    def _orders_containing(self, kind, params):
        def matches(product):
            if kind == "by-category-jpql":
                return product.get("category") == params.get("category")
            return product.get("price") == float(params.get("price"))
        return copy.deepcopy([
            o for o in self.data["orders"].values()
            if any(matches(p) for p in o.get("products") or [])
        ])

    def _store(self, resource, body, item_id=None):
        item = copy.deepcopy(body)
        if item_id is None:
            self._next_id += 1
            item_id = self._next_id
        item["id"] = item_id
        if resource == "orders":
            ids = item.pop("productIds", None) or []
            item["products"] = [copy.deepcopy(self.data["products"][i])
                                for i in ids if i in self.data["products"]]
        self.data[resource][item_id] = item
        return copy.deepcopy(item)


# ── Seed data ─────────────────────────────────────────────────────────────────

WIDGET = {"id": 1, "name": "Widget", "price": 10.0, "category": "Tools"}
GADGET = {"id": 2, "name": "Gadget", "price": 20.0, "category": "Tools"}
APPLE = {"id": 3, "name": "Apple", "price": 1.0, "category": "Food"}
IVAN = {"id": 7, "nickname": "ivan", "firstName": "Ivan", "lastName": "Petrov",
        "email": "ivan@example.com"}
ORDER_5 = {"id": 5, "orderDate": "2025-03-01T10:15:00.000Z", "totalPrice": 30.0,
           "account": IVAN, "products": [WIDGET, GADGET]}


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def backend():
    """FakeBackend seeded with three products, one account and one order."""
    fake = FakeBackend()
    fake.seed("products", WIDGET, GADGET, APPLE)
    fake.seed("accounts", IVAN)
    fake.seed("orders", ORDER_5)
    fake.seed("categories", {"id": 1, "name": "Tools"}, {"id": 2, "name": "Food"})
    return fake


@pytest.fixture()
def store_client(backend):
    return StoreClient(BASE_URL, session=backend)


@pytest.fixture()
def cache():
    return QueryCache(fetch_timeout=5)


@pytest.fixture()
def service(store_client, cache):
    from backoffice.queries import StoreService
    return StoreService(store_client, cache)


@pytest.fixture()
def app_client(store_client, cache):
    """FastAPI TestClient for an app wired to the fake backend."""
    from fastapi.testclient import TestClient

    from admin.app import create_app
    from utils.config import AppConfig

    app = create_app(config=AppConfig(), client=store_client, cache=cache)
    with TestClient(app) as client:
        yield client
