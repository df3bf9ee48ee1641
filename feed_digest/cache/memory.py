from __future__ import annotations

import copy
import threading
import time
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from ..models import CacheEntry
from .base import SharedCache

T = TypeVar("T")


class BoundedStore(Generic[T]):
    """Process-local map with a capacity bound.

    Eviction is a full clear once the map grows past ``capacity``; this backs
    best-effort fallbacks, not a primary cache, so no LRU bookkeeping.
    """

    def __init__(self, capacity: int = 50, *, clock: Callable[[], float] = time.time) -> None:
        self.capacity = capacity
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: T, ttl_seconds: float | None = None) -> None:
        expires_at = float("inf") if ttl_seconds is None else self._clock() + ttl_seconds
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                self._entries.clear()
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class MemoryCache(SharedCache):
    """In-process stand-in for the shared cache (local runs and tests)."""

    def __init__(self, capacity: int = 1000, *, clock: Callable[[], float] = time.time) -> None:
        self._store: BoundedStore[Any] = BoundedStore(capacity, clock=clock)

    def get(self, key: str) -> Optional[Any]:
        value = self._store.get(key)
        # Copy so callers can't mutate what other readers see
        return copy.deepcopy(value) if value is not None else None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._store.put(key, copy.deepcopy(value), ttl_seconds)
