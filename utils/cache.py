"""In-memory query cache for resource collections fetched from the backend.

Entries are addressed by a hashable key, normally built by
``backoffice.queries.query_key(resource, **params)``, whose first element is
the resource name. An entry is either fresh or stale; nothing expires on a
timer. Mutations mark entries stale through ``invalidate()`` and the next
read re-fetches.

Reads go through ``fetch(key, fetcher)``:

- a fresh entry is returned without calling ``fetcher``;
- otherwise at most one fetch per key is in flight. Concurrent readers of
  the same key wait on that fetch and receive its value or its exception;
- a fetch result is stored only if the key was not invalidated while the
  fetch was running (its generation is unchanged);
- a failed fetch leaves the previous (stale) snapshot in place.

Usage::

    cache = QueryCache(fetch_timeout=30)
    products = cache.fetch(("products", ()), client.products.list)
    cache.invalidate("products")
"""

import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)


class FetchTimeoutError(TimeoutError):
    """A coalesced reader gave up waiting for the in-flight fetch."""

    def __init__(self, key: Hashable, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for {key!r}")
        self.key = key
        self.timeout = timeout


@dataclass
class _Entry:
    value: Any
    stale: bool = False


def _resource_of(key: Hashable) -> Hashable:
    if isinstance(key, tuple) and key:
        return key[0]
    return key


class QueryCache:
    """Thread-safe collection cache with invalidation and request coalescing."""

    def __init__(self, fetch_timeout: float | None = None) -> None:
        """Initialise the cache.

        Args:
            fetch_timeout: Seconds a coalesced reader waits for another
                reader's in-flight fetch (None waits indefinitely).
        """
        self._fetch_timeout = fetch_timeout
        self._store: dict[Hashable, _Entry] = {}
        self._inflight: dict[Hashable, Future] = {}
        self._generations: dict[Hashable, int] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._fetches = 0
        self._coalesced = 0
        self._discarded = 0

    # ── Plain key/value access ────────────────────────────────────────────

    def get(self, key: Hashable) -> Any | None:
        """Return the fresh value for *key*, or ``None`` if absent or stale."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None or entry.stale:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def peek(self, key: Hashable) -> Any | None:
        """Return the last known value for *key*, even if stale."""
        with self._lock:
            entry = self._store.get(key)
            return None if entry is None else entry.value

    def set(self, key: Hashable, value: Any) -> None:
        """Store *value* under *key* as fresh."""
        with self._lock:
            self._store[key] = _Entry(value)

    def is_stale(self, key: Hashable) -> bool:
        """True when *key* has a snapshot that was invalidated."""
        with self._lock:
            entry = self._store.get(key)
            return entry is not None and entry.stale

    def generation(self, key: Hashable) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def invalidate(self, target: Hashable) -> int:
        """Mark entries stale.

        Args:
            target: An exact cache key, or a resource name, which
                invalidates every key of that resource.

        Returns:
            Number of keys invalidated (cached or in flight).
        """
        with self._lock:
            known = set(self._store) | set(self._inflight)
            if target in known:
                keys = [target]
            else:
                keys = [k for k in known if _resource_of(k) == target]
            for key in keys:
                entry = self._store.get(key)
                if entry is not None:
                    entry.stale = True
                self._generations[key] = self._generations.get(key, 0) + 1
                # Readers arriving after the mutation must not join a fetch
                # that may have started before it.
                self._inflight.pop(key, None)
        if keys:
            logger.debug("cache invalidate target=%r keys=%d", target, len(keys))
        return len(keys)

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._store.clear()
            self._inflight.clear()
            self._generations.clear()
            self._hits = 0
            self._misses = 0
            self._fetches = 0
            self._coalesced = 0
            self._discarded = 0

    def stats(self) -> dict[str, int]:
        """Return cache statistics.

        Returns:
            Dict with keys ``hits``, ``misses``, ``fetches``, ``coalesced``,
            ``discarded``, ``size``, ``stale`` and ``inflight``.
        """
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "fetches": self._fetches,
                "coalesced": self._coalesced,
                "discarded": self._discarded,
                "size": len(self._store),
                "stale": sum(1 for e in self._store.values() if e.stale),
                "inflight": len(self._inflight),
            }

    # ── Read path ─────────────────────────────────────────────────────────

    def fetch(self, key: Hashable, fetcher: Callable[[], Any]) -> Any:
        """Return the fresh value for *key*, fetching it at most once.

        Args:
            key: Cache key.
            fetcher: Zero-argument callable performing the network read.

        Raises:
            FetchTimeoutError: A coalesced reader waited longer than
                ``fetch_timeout``.
            Exception: Whatever ``fetcher`` raised, for the owner and every
                waiter of that fetch.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is not None and not entry.stale:
                self._hits += 1
                return entry.value
            self._misses += 1
            pending = self._inflight.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._inflight[key] = pending
                self._fetches += 1
                generation = self._generations.get(key, 0)
            else:
                self._coalesced += 1

        if not owner:
            logger.debug("cache join in-flight fetch key=%r", key)
            try:
                return pending.result(timeout=self._fetch_timeout)
            except FutureTimeoutError:
                raise FetchTimeoutError(key, self._fetch_timeout) from None

        try:
            value = fetcher()
        except BaseException as exc:
            with self._lock:
                if self._inflight.get(key) is pending:
                    del self._inflight[key]
            pending.set_exception(exc)
            raise

        with self._lock:
            if self._inflight.get(key) is pending:
                del self._inflight[key]
            if self._generations.get(key, 0) == generation:
                self._store[key] = _Entry(value)
            else:
                self._discarded += 1
                logger.debug("cache discard stale response key=%r", key)
        pending.set_result(value)
        return value
