from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TypeVar

from ..utils.logging import get_logger

T = TypeVar("T")

logger = get_logger("fd.cache")


class CacheError(Exception):
    """Raised when the shared cache service cannot be reached or rejects a call."""


class SharedCache(ABC):
    """Key-value store shared across processes. Values must be JSON-compatible."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when the key is absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""


def feed_cache_key(url: str) -> str:
    return f"rss:feed:v1:{url}"


def digest_cache_key(variant: str, lang: str) -> str:
    return f"news:digest:v1:{variant}:{lang}"


def cached_fetch_json(
    cache: SharedCache | None,
    key: str,
    ttl_seconds: int,
    fetcher: Callable[[], Optional[T]],
) -> Optional[T]:
    """Read-through helper around the shared cache.

    Cache failures are logged and treated as a miss so an outage only costs
    latency. A ``None`` result from ``fetcher`` is returned but not stored.
    Exceptions raised by ``fetcher`` propagate.
    """
    if cache is not None:
        try:
            hit = cache.get(key)
        except Exception as exc:  # noqa: BLE001 - any client failure is a miss
            logger.warning("Cache read failed for %s: %s", key, exc)
            hit = None
        if hit is not None:
            logger.debug("Cache hit: %s", key)
            return hit

    value = fetcher()
    if value is None or cache is None:
        return value

    try:
        cache.set(key, value, ttl_seconds)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Cache write failed for %s: %s", key, exc)
    return value
