from __future__ import annotations

import os
from typing import Optional

from ..utils.logging import get_logger
from .base import SharedCache

logger = get_logger("fd.cache")


def create_shared_cache(*, backend: Optional[str] = None) -> Optional[SharedCache]:
    """Create the shared cache from CACHE_BACKEND env or an explicit value.

    Supported values: "upstash", "memory" and "none". Without an explicit
    backend, Upstash is used when its credentials are present and otherwise
    no cache at all (every lookup is a miss).
    """
    selected = (backend or os.environ.get("CACHE_BACKEND") or "").lower()
    if not selected:
        has_upstash = os.environ.get("UPSTASH_REDIS_REST_URL") and os.environ.get("UPSTASH_REDIS_REST_TOKEN")
        selected = "upstash" if has_upstash else "none"

    if selected == "upstash":
        from .upstash import UpstashCache  # lazy import

        return UpstashCache()
    if selected == "memory":
        from .memory import MemoryCache  # lazy import

        return MemoryCache()
    if selected == "none":
        logger.info("No shared cache configured; every digest build fetches live")
        return None

    raise ValueError(f"Unsupported CACHE_BACKEND '{selected}'. Use 'upstash', 'memory' or 'none'.")
