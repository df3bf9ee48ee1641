from __future__ import annotations

import json
import os
from typing import Any, Optional

from upstash_redis import Redis

from ..utils.logging import get_logger
from .base import CacheError, SharedCache

logger = get_logger("fd.cache.upstash")


class UpstashCache(SharedCache):
    """Shared cache on Upstash Redis, reached over its REST API.

    Values are stored as JSON strings with a Redis ``EX`` expiry. Every client
    failure surfaces as ``CacheError``.
    """

    def __init__(
        self,
        *,
        url: Optional[str] = None,
        token: Optional[str] = None,
        client: Optional[Redis] = None,
    ) -> None:
        if client is None:
            url = url or os.environ.get("UPSTASH_REDIS_REST_URL")
            token = token or os.environ.get("UPSTASH_REDIS_REST_TOKEN")
            if not url or not token:
                raise CacheError("UPSTASH_REDIS_REST_URL/UPSTASH_REDIS_REST_TOKEN not set")
            # No client-side retries: a failed lookup is a cache miss, not a stall
            client = Redis(url=url, token=token, rest_retries=0)
        self._client = client

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(key)
        except Exception as exc:  # noqa: BLE001 - transport and server errors alike
            raise CacheError(f"Cache GET failed for {key}: {exc}") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache value for %s", key)
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._client.set(key, json.dumps(value, ensure_ascii=False), ex=int(ttl_seconds))
        except Exception as exc:  # noqa: BLE001
            raise CacheError(f"Cache SET failed for {key}: {exc}") from exc
