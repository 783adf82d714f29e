"""Short-lived response cache keyed by request signature."""
from __future__ import annotations

import time
from typing import Any, Callable, MutableMapping
from urllib.parse import urlencode

from nejobs.log import get_logger

log = get_logger(__name__)


def request_signature(endpoint: str, params: dict[str, Any]) -> str:
    """Endpoint plus sorted, URL-encoded query parameters."""
    query = urlencode(sorted((str(k), str(v)) for k, v in params.items()))
    return f"{endpoint.strip('/')}?{query}"


class ResponseCache:
    """Best-effort TTL cache; entries are stored as ``{"data", "timestamp"}``.

    *store* defaults to a plain dict; any mapping works, and a mapping that
    raises on write only costs the cache entry.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        store: MutableMapping[str, dict[str, Any]] | None = None,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._store: MutableMapping[str, dict[str, Any]] = store if store is not None else {}

    def get(self, key: str) -> Any | None:
        try:
            entry = self._store.get(key)
        except Exception as exc:
            log.debug("Cache read failed for %s: %s", key, exc)
            return None
        if not entry:
            return None
        if self._clock() - entry["timestamp"] > self.ttl:
            self._store.pop(key, None)
            return None
        return entry["data"]

    def set(self, key: str, value: Any) -> bool:
        try:
            self._store[key] = {"data": value, "timestamp": self._clock()}
        except Exception as exc:
            log.debug("Cache write failed for %s: %s", key, exc)
            return False
        return True

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
