# =============================================================================
# control_room/offline/query_cache.py
# In-Memory Query Results Cache
# =============================================================================
"""
QueryCache - memoizes repository reads for the current process.

Keys are tuples such as ``("deals",)`` or ``("deal_tasks", deal_id)``.
Invalidating a prefix drops every key that starts with it and notifies the
listeners, which lets derived views (the priority report) recompute after
any mutation without a manual refresh. The empty prefix ``()`` matches
every key.

A load that overlaps an invalidation of its key is returned to the caller
but not stored. A loader can also return ``Transient(value)`` to hand the
value back without memoizing it.
"""

from __future__ import annotations
import logging
import threading
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]


class Transient:
    """Loader result that is returned but never memoized."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value


def _under(key: QueryKey, prefix: QueryKey) -> bool:
    return key[:len(prefix)] == prefix


class QueryCache:
    """Thread-safe memo table with prefix invalidation."""

    def __init__(self):
        self._entries: Dict[QueryKey, Any] = {}
        # Bumped for a key whenever it is invalidated
        self._generations: Dict[QueryKey, int] = {}
        self._lock = threading.RLock()
        self._listeners: List[Callable[[QueryKey], None]] = []

    def get_or_load(self, key: QueryKey, loader: Callable[[], Any]) -> Any:
        """Return the cached value for ``key`` or compute and store it."""
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            generation = self._generations.setdefault(key, 0)

        value = loader()
        if isinstance(value, Transient):
            return value.value

        with self._lock:
            if self._generations.get(key) == generation:
                self._entries[key] = value
            else:
                logger.debug(f"Not caching {key}: invalidated while loading")
        return value

    def get(self, key: QueryKey, default: Any = None) -> Any:
        with self._lock:
            return self._entries.get(key, default)

    def __contains__(self, key: QueryKey) -> bool:
        with self._lock:
            return key in self._entries

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every key starting with ``prefix``; returns how many."""
        with self._lock:
            for key in self._generations:
                if _under(key, prefix):
                    self._generations[key] += 1
            stale = [k for k in self._entries if _under(k, prefix)]
            for key in stale:
                del self._entries[key]
        logger.debug(f"Invalidated {len(stale)} queries under {prefix}")
        for listener in list(self._listeners):
            try:
                listener(prefix)
            except Exception as e:
                logger.error(f"Error in query cache listener: {e}", exc_info=True)
        return len(stale)

    def clear(self) -> None:
        """Drop everything without notifying listeners."""
        with self._lock:
            for key in self._generations:
                self._generations[key] += 1
            self._entries.clear()

    def subscribe(self, listener: Callable[[QueryKey], None]) -> None:
        """Call ``listener(prefix)`` after every invalidation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[QueryKey], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
