from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from .cache import SharedCache
from .fetchers import fetch_feed
from .models import CategoryBucket, Digest, FeedDescriptor, ParsedItem
from .processors import Classifier
from .scheduler import FeedScheduler, FeedTask
from .utils.config_loader import INTEL_CATEGORY, FeedRegistry, load_feed_registry
from .utils.engine_config import EngineConfig
from .utils.logging import get_logger

logger = get_logger("fd.digest_builder")

# (feed, variant, cancel_event) -> items
FeedFetcher = Callable[[FeedDescriptor, str, threading.Event], List[ParsedItem]]


def rank_items(items: List[ParsedItem], limit: int) -> CategoryBucket:
    """Newest first, capped at ``limit``. Threat level plays no part in ordering."""
    ordered = sorted(items, key=lambda it: it.published_at_ms, reverse=True)
    return CategoryBucket(items=tuple(ordered[: max(limit, 0)]))


class DigestBuilder:
    """Select feeds for a variant, fetch them and rank the results.

    The builder only orchestrates: network access and per-feed caching live
    in the fetcher it is given (``fetch_feed`` by default).
    """

    def __init__(
        self,
        registry: Optional[FeedRegistry] = None,
        *,
        cache: Optional[SharedCache] = None,
        config: Optional[EngineConfig] = None,
        classifier: Classifier | None = None,
        fetcher: Optional[FeedFetcher] = None,
    ) -> None:
        self.registry = registry or load_feed_registry()
        self.cache = cache
        self.config = config or EngineConfig()
        self.classifier = classifier
        self._fetcher = fetcher

    def tasks_for(self, variant: str, lang: str) -> List[FeedTask]:
        tasks: List[FeedTask] = []
        for category, feeds in self.registry.feeds_for(variant).items():
            tasks.extend(FeedTask(category, feed) for feed in feeds if feed.matches_lang(lang))
        if variant == "full":
            tasks.extend(FeedTask(INTEL_CATEGORY, feed) for feed in self.registry.intel if feed.matches_lang(lang))
        return tasks

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=self.config.batch_concurrency, pool_maxsize=self.config.batch_concurrency)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _default_fetcher(self, session: requests.Session) -> FeedFetcher:
        def _fetch(feed: FeedDescriptor, variant: str, cancel_event: threading.Event) -> List[ParsedItem]:
            return fetch_feed(
                feed,
                variant,
                cancel_event,
                cache=self.cache,
                session=session,
                timeout=self.config.feed_timeout,
                ttl_seconds=self.config.feed_cache_ttl,
                items_per_feed=self.config.items_per_feed,
                classifier=self.classifier,
            )

        return _fetch

    def build(self, variant: str, lang: str) -> Digest:
        tasks = self.tasks_for(variant, lang)
        logger.info("Building %s/%s digest from %d feed(s)", variant, lang, len(tasks))

        with self._new_session() as session:
            fetcher = self._fetcher or self._default_fetcher(session)
            scheduler = FeedScheduler(
                lambda feed, cancel_event: fetcher(feed, variant, cancel_event),
                batch_size=self.config.batch_concurrency,
                deadline=self.config.deadline,
            )
            outcome = scheduler.run_all(tasks)

        categories: Dict[str, CategoryBucket] = {}
        for task in tasks:
            if task.category not in categories:
                items = outcome.results_by_category.get(task.category, [])
                categories[task.category] = rank_items(items, self.config.max_items_per_category)

        return Digest(
            categories=categories,
            feed_statuses=dict(outcome.feed_statuses),
            generated_at=datetime.now(timezone.utc),
        )
