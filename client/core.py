"""
Generic REST resource accessor.

A ResourceClient is bound to one collection path (``/products``,
``/accounts`` ...) and one wire model. It offers the five operations every
backend resource supports:

    list(**filters)      GET    /{resource}[?k=v]     -> list[Model]
    get(id)              GET    /{resource}/{id}      -> Model
    create(item)         POST   /{resource}           -> Model
    update(id, item)     PUT    /{resource}/{id}      -> Model
    delete(id)           DELETE /{resource}/{id}      -> None

Any transport error, any status outside 200-299, and any body that does
not parse into the model raise OperationFailed. The client never retries on
its own (the session's retry policy is off unless configured) and never
touches the query cache; callers invalidate after mutations.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Generic, Iterable, TypeVar

import requests
from pydantic import ValidationError

from store.errors import OperationFailed
from store.models import WireModel
from utils.http import TimeoutManager

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=WireModel)


def query_value(value: Any) -> Any:
    """Render a filter value for the query string.

    Whole floats are sent as integers because the backend declares numeric
    filters as integers (``price=10``, not ``price=10.0``).
    """
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class ResourceClient(Generic[ModelT]):
    """Typed accessor for one REST collection."""

    resource: str = ""
    model: type[WireModel] = WireModel

    def __init__(self, session: requests.Session, base_url: str,
                 timeouts: TimeoutManager | None = None) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeouts = timeouts or TimeoutManager()

    def url(self, *parts: Any) -> str:
        return "/".join([self._base_url, self.resource, *(str(p) for p in parts)])

    # ── Transport ─────────────────────────────────────────────────────────

    def _request(self, method: str, operation: str, *path: Any,
                 identity: Any = None, params: dict | None = None,
                 payload: Any = None) -> Any:
        """Send one request and return the decoded JSON body (or None)."""
        url = self.url(*path)
        timeout = self._timeouts.get_timeout(url)
        logger.debug("backend %s %s params=%s timeout=%ss", method, url, params, timeout)
        start = time.monotonic()
        try:
            resp = self._session.request(
                method, url, params=params or None, json=payload, timeout=timeout,
            )
        except requests.RequestException as exc:
            logger.warning("backend %s %s failed: %s", method, url, exc)
            raise OperationFailed(operation, self.resource, identity,
                                  reason=str(exc)) from exc
        self._timeouts.record_time(url, time.monotonic() - start)

        if not 200 <= resp.status_code < 300:
            logger.warning("backend %s %s -> %d", method, url, resp.status_code)
            raise OperationFailed(operation, self.resource, identity,
                                  status_code=resp.status_code,
                                  reason=getattr(resp, "reason", "") or "")

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("backend %s %s returned invalid JSON", method, url)
            raise OperationFailed(operation, self.resource, identity,
                                  status_code=resp.status_code,
                                  reason="invalid JSON body") from exc

    def _parse_one(self, data: Any, operation: str, identity: Any = None) -> ModelT:
        try:
            return self.model.model_validate(data)
        except ValidationError as exc:
            logger.warning("backend %s %s: unexpected body: %s", operation,
                           self.resource, exc.errors()[:3])
            raise OperationFailed(operation, self.resource, identity,
                                  reason="unexpected response body") from exc

    def _parse_many(self, data: Any, operation: str) -> list[ModelT]:
        if not isinstance(data, list):
            raise OperationFailed(operation, self.resource,
                                  reason="expected a JSON array")
        return [self._parse_one(item, operation) for item in data]

    # ── Operations ────────────────────────────────────────────────────────

    def list(self, **filters: Any) -> list[ModelT]:
        """Fetch the collection; ``None`` filters are not sent."""
        params = {k: query_value(v) for k, v in filters.items() if v is not None}
        data = self._request("GET", "fetch", params=params)
        return self._parse_many(data, "fetch")

    def get(self, item_id: int) -> ModelT:
        data = self._request("GET", "fetch", item_id, identity=item_id)
        return self._parse_one(data, "fetch", item_id)

    def create(self, item: ModelT) -> ModelT:
        data = self._request("POST", "create", payload=item.to_payload(include_id=False))
        return self._parse_one(data, "create")

    def update(self, item_id: int, item: ModelT) -> ModelT:
        """Replace the entity (PUT carries the full object, id included)."""
        payload = item.to_payload(include_id=True)
        payload["id"] = item_id
        data = self._request("PUT", "update", item_id, identity=item_id, payload=payload)
        return self._parse_one(data, "update", item_id)

    def delete(self, item_id: int) -> None:
        self._request("DELETE", "delete", item_id, identity=item_id)

    def _post_many(self, operation: str, items: Iterable[ModelT],
                   *path: Any) -> list[ModelT]:
        payload = [item.to_payload(include_id=False) for item in items]
        data = self._request("POST", operation, *path, payload=payload)
        return self._parse_many(data, operation)
