"""In-process TTL cache for restaurant list/search results.

One instance per application, created in ``create_app`` and kept in
``app.extensions["search_cache"]``. Entries are keyed by the canonical form
of ``SearchFilters`` and expire ``ttl`` seconds after they were stored.
"""
from __future__ import annotations
import hashlib
import json
import logging
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache
from flask import current_app

from .schemas import SearchFilters, SearchResult

log = logging.getLogger(__name__)

KEY_PREFIX = "search:"


def make_key(filters: SearchFilters) -> str:
    """Deterministic key over every filter field, defaults included."""
    normalized = json.dumps(filters.model_dump(mode="json"), sort_keys=True, ensure_ascii=False)
    return KEY_PREFIX + hashlib.sha256(normalized.encode()).hexdigest()


class SearchCache:
    """Thread-safe TTL map from filters to immutable search results."""

    def __init__(self, ttl: int = 300, maxsize: int = 1024,
                 timer: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def get(self, filters: SearchFilters) -> Optional[SearchResult]:
        key = make_key(filters)
        with self._lock:
            # drop stale entries before the lookup
            self._entries.expire()
            result = self._entries.get(key)
            if result is None:
                self.misses += 1
            else:
                self.hits += 1
        log.debug("search cache %s", "hit" if result is not None else "miss", extra={"key": key[:20]})
        return result

    def put(self, filters: SearchFilters, result: SearchResult) -> None:
        if not isinstance(result, SearchResult):
            raise TypeError("only SearchResult values can be cached")
        key = make_key(filters)
        with self._lock:
            self._entries[key] = result
        log.debug("search cache set", extra={"key": key[:20], "ttl": self.ttl})

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        log.info("search cache cleared")

    def stats(self) -> dict:
        with self._lock:
            self._entries.expire()
            return {
                "entries": len(self._entries),
                "ttl_seconds": self.ttl,
                "maxsize": self.maxsize,
                "hits": self.hits,
                "misses": self.misses,
            }

    def __len__(self) -> int:
        return self.stats()["entries"]


def get_search_cache() -> SearchCache:
    return current_app.extensions["search_cache"]
