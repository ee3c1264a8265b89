"""Keyed cache for API reads with prefix invalidation."""
from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Hashable, TypeVar

T = TypeVar("T")

QueryKey = tuple[Hashable, ...]


class QueryCache:
    """Stores the last fetched snapshot per query key.

    Keys are tuples such as ``("monitoring-entries", 12, "2025-04")``.
    Invalidating ``("monitoring-entries",)`` drops every key starting with that
    prefix, so the next read re-fetches from the API.
    """

    def __init__(self) -> None:
        self._entries: dict[QueryKey, Any] = {}
        self._lock = RLock()

    def fetch(self, key: QueryKey, loader: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        value = loader()
        with self._lock:
            self._entries[key] = value
        return value

    def peek(self, key: QueryKey) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with ``prefix``; return how many."""

        size = len(prefix)
        with self._lock:
            stale = [key for key in self._entries if key[:size] == prefix]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def keys(self) -> list[QueryKey]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
