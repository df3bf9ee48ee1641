"""Feed fetching layer."""

from .rss import FeedFetchError, download_feed, fetch_feed

__all__ = ["FeedFetchError", "download_feed", "fetch_feed"]
