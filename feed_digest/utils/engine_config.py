from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass(slots=True)
class EngineConfig:
    """Tunables for one digest engine instance.

    Defaults are read from the environment when the instance is created, so a
    test or host can override them either way.
    """

    items_per_feed: int = field(default_factory=lambda: _env_int("DIGEST_ITEMS_PER_FEED", 5))
    max_items_per_category: int = field(default_factory=lambda: _env_int("DIGEST_MAX_ITEMS_PER_CATEGORY", 20))
    feed_timeout: float = field(default_factory=lambda: _env_float("DIGEST_FEED_TIMEOUT", 8.0))
    deadline: float = field(default_factory=lambda: _env_float("DIGEST_DEADLINE", 25.0))
    batch_concurrency: int = field(default_factory=lambda: _env_int("DIGEST_BATCH_CONCURRENCY", 20))
    feed_cache_ttl: int = field(default_factory=lambda: _env_int("DIGEST_FEED_CACHE_TTL", 600))
    digest_cache_ttl: int = field(default_factory=lambda: _env_int("DIGEST_CACHE_TTL", 900))
    fallback_capacity: int = field(default_factory=lambda: _env_int("DIGEST_FALLBACK_CAPACITY", 50))
