"""Digest-level caching with an in-process last-known-good fallback.

``get_digest`` is the single entry point request handlers call. It always
returns a ``Digest``: a cached one, a freshly built one, the last good digest
this process produced for the same variant and language, or an empty skeleton.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from .cache import BoundedStore, SharedCache, cached_fetch_json, create_shared_cache, digest_cache_key
from .digest_builder import DigestBuilder
from .models import Digest
from .utils.config_loader import load_feed_registry
from .utils.engine_config import EngineConfig
from .utils.logging import get_logger

logger = get_logger("fd.service")

VALID_VARIANTS = ("full", "tech", "finance", "happy")
DEFAULT_VARIANT = "full"
DEFAULT_LANG = "en"


def normalize_variant(variant: Optional[str]) -> str:
    return variant if variant in VALID_VARIANTS else DEFAULT_VARIANT


class DigestService:
    def __init__(
        self,
        builder: DigestBuilder,
        *,
        cache: Optional[SharedCache] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.builder = builder
        self.cache = cache
        self.config = config or builder.config
        self._last_good: BoundedStore[Digest] = BoundedStore(self.config.fallback_capacity)

    def get_digest(self, variant: Optional[str] = None, lang: Optional[str] = None) -> Digest:
        variant = normalize_variant(variant)
        lang = lang or DEFAULT_LANG
        fallback_key = f"{variant}:{lang}"

        try:
            data = cached_fetch_json(
                self.cache,
                digest_cache_key(variant, lang),
                self.config.digest_cache_ttl,
                lambda: self.builder.build(variant, lang).to_dict(),
            )
            digest = Digest.from_dict(data or {})
        except Exception as exc:  # noqa: BLE001 - callers always get a digest
            logger.exception("Digest build failed for %s: %s", fallback_key, exc)
            stale = self._last_good.get(fallback_key)
            if stale is not None:
                logger.warning("Serving last known good digest for %s from %s", fallback_key, stale.generated_at.isoformat())
                return stale
            return Digest.empty()

        self._last_good.put(fallback_key, digest)
        return digest


def create_digest_service(
    *,
    registry_path: Path | str | None = None,
    cache: Optional[SharedCache] = None,
    use_cache: bool = True,
    config: Optional[EngineConfig] = None,
) -> DigestService:
    """Wire a service from the environment: registry file, shared cache, tunables."""
    if cache is None and use_cache:
        cache = create_shared_cache()
    config = config or EngineConfig()
    builder = DigestBuilder(load_feed_registry(registry_path), cache=cache, config=config)
    return DigestService(builder, cache=cache, config=config)


_default_service: Optional[DigestService] = None
_default_lock = threading.Lock()


def get_digest(variant: Optional[str] = None, lang: Optional[str] = None) -> Digest:
    """Digest for ``variant``/``lang`` from a process-wide default service."""
    global _default_service
    try:
        with _default_lock:
            if _default_service is None:
                _default_service = create_digest_service()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Could not initialise digest service: %s", exc)
        return Digest.empty()
    return _default_service.get_digest(variant, lang)
