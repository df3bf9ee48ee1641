"""Shared cache service clients and the read-through helper."""

from .base import CacheError, SharedCache, cached_fetch_json, digest_cache_key, feed_cache_key
from .factory import create_shared_cache
from .memory import BoundedStore, MemoryCache

__all__ = [
    "CacheError",
    "SharedCache",
    "cached_fetch_json",
    "digest_cache_key",
    "feed_cache_key",
    "create_shared_cache",
    "BoundedStore",
    "MemoryCache",
]
