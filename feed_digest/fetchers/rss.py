from __future__ import annotations

import re
import threading
import time
from typing import Dict, List, Optional

import requests

from ..cache import SharedCache, cached_fetch_json, feed_cache_key
from ..models import FeedDescriptor, ParsedItem
from ..processors import Classifier, parse_feed
from ..utils.logging import get_logger

logger = get_logger("fd.fetchers.rss")

FEED_TIMEOUT_SECONDS = 8.0
FEED_CACHE_TTL_SECONDS = 600
_CHUNK_SIZE = 16 * 1024
_WATCH_INTERVAL = 0.05

CHROME_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/127.0.0.0 Safari/537.36"
)

_DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": CHROME_UA,
    "Accept": "application/rss+xml, application/xml, text/xml, */*",
    "Accept-Language": "en-US,en;q=0.9",
}

_CHARSET_RE = re.compile(r"charset=([\w.:-]+)", re.IGNORECASE)
_XML_DECL_ENCODING_RE = re.compile(rb"""<\?xml[^>]*encoding=["']([\w.:-]+)["']""", re.IGNORECASE)


class FeedFetchError(Exception):
    """A single feed could not be downloaded; the feed counts as empty."""


def _decode_body(raw: bytes, content_type: str) -> str:
    # requests guesses ISO-8859-1 for text/* without a charset, which mangles
    # most feeds; trust only an explicit header charset or the XML prolog.
    match = _CHARSET_RE.search(content_type or "")
    encoding = match.group(1) if match else None
    if encoding is None:
        decl = _XML_DECL_ENCODING_RE.search(raw[:200])
        encoding = decl.group(1).decode("ascii") if decl else "utf-8"
    try:
        return raw.decode(encoding, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


class _Download:
    """One streamed GET, run on a daemon thread the caller can walk away from.

    ``requests`` timeouts bound each socket read, not the whole exchange, so a
    server that trickles bytes or sits on its headers would otherwise hold the
    calling worker. The caller abandons the download instead; the live
    response is closed and the thread winds down on its own.
    """

    def __init__(self, feed: FeedDescriptor, session: requests.Session, cancel_event: threading.Event, timeout: float) -> None:
        self.feed = feed
        self.session = session
        self.cancel_event = cancel_event
        self.timeout = timeout
        self.done = threading.Event()
        self.body: Optional[str] = None
        self.error: Optional[Exception] = None
        self._abandoned = threading.Event()
        self._response: Optional[requests.Response] = None
        self._lock = threading.Lock()

    def run(self) -> None:
        try:
            with self.session.get(self.feed.url, headers=_DEFAULT_HEADERS, timeout=self.timeout, stream=True) as resp:
                with self._lock:
                    self._response = resp
                if self._abandoned.is_set():
                    raise FeedFetchError("abandoned before body")
                if not 200 <= resp.status_code < 300:
                    raise FeedFetchError(f"HTTP {resp.status_code}")
                chunks: List[bytes] = []
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    if self.cancel_event.is_set() or self._abandoned.is_set():
                        raise FeedFetchError("cancelled by digest deadline")
                    chunks.append(chunk)
                self.body = _decode_body(b"".join(chunks), resp.headers.get("Content-Type", ""))
        except Exception as exc:  # noqa: BLE001 - re-raised on the calling thread
            self.error = exc
        finally:
            self.done.set()

    def abandon(self) -> None:
        self._abandoned.set()
        with self._lock:
            resp = self._response
        if resp is not None:
            resp.close()


def download_feed(
    feed: FeedDescriptor,
    session: requests.Session,
    cancel_event: threading.Event,
    *,
    timeout: float = FEED_TIMEOUT_SECONDS,
) -> str:
    """GET one feed body, bounded by its own wall-clock timeout.

    The transfer runs on a helper thread while this one watches the shared
    cancellation event and the per-feed deadline, so either aborts the fetch
    promptly even when the socket is blocked waiting for headers or data.
    """
    if cancel_event.is_set():
        raise FeedFetchError("cancelled before request")

    deadline = time.monotonic() + timeout
    logger.debug("Fetching feed %s", feed.url)
    download = _Download(feed, session, cancel_event, timeout)
    threading.Thread(target=download.run, name=f"{threading.current_thread().name}-get", daemon=True).start()

    while not download.done.wait(_WATCH_INTERVAL):
        if cancel_event.is_set():
            download.abandon()
            raise FeedFetchError("cancelled by digest deadline")
        if time.monotonic() >= deadline:
            download.abandon()
            raise FeedFetchError(f"timed out after {timeout:g}s")

    if isinstance(download.error, requests.RequestException):
        raise FeedFetchError(str(download.error)) from download.error
    if download.error is not None:
        raise download.error
    return download.body or ""


def fetch_feed(
    feed: FeedDescriptor,
    variant: str,
    cancel_event: threading.Event,
    *,
    cache: Optional[SharedCache] = None,
    session: Optional[requests.Session] = None,
    timeout: float = FEED_TIMEOUT_SECONDS,
    ttl_seconds: int = FEED_CACHE_TTL_SECONDS,
    items_per_feed: int = 5,
    classifier: Classifier | None = None,
) -> List[ParsedItem]:
    """Cached, parsed items of one feed. Never raises; failures yield ``[]``.

    Only successful downloads are cached, including ones that parsed to zero
    items, so a quiet feed is not refetched until its entry expires. Failed
    downloads are not retried within a build.
    """
    http = session or requests.Session()

    def _fetch() -> List[dict]:
        body = download_feed(feed, http, cancel_event, timeout=timeout)
        items = parse_feed(body, feed, variant, classifier=classifier, limit=items_per_feed)
        return [item.to_dict() for item in items or []]

    try:
        cached = cached_fetch_json(cache, feed_cache_key(feed.url), ttl_seconds, _fetch)
        return [ParsedItem.from_dict(row) for row in cached or []]
    except FeedFetchError as exc:
        logger.warning("Feed %s unavailable: %s", feed.name, exc)
        return []
    except Exception as exc:  # noqa: BLE001 - one bad feed must not sink the digest
        logger.exception("Unexpected failure fetching %s: %s", feed.name, exc)
        return []
    finally:
        if session is None:
            http.close()
