from __future__ import annotations

import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional

from ..models import FeedDescriptor, ParsedItem
from ..utils.logging import get_logger
from .classify import Classifier, classify_by_keyword
from .extract import ITEMS_PER_FEED, extract_field, extract_fragments, extract_link_href
from .normalize import normalize_plain_text

logger = get_logger("fd.processors.parse")


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_timestamp_ms(value: str) -> Optional[int]:
    """Parse an RFC 822 (RSS) or ISO 8601 (Atom) date to epoch milliseconds."""
    value = (value or "").strip()
    if not value:
        return None
    dt: Optional[datetime] = None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        dt = None
    if dt is None:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return int(dt.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        return None


def parse_feed(
    xml: str,
    feed: FeedDescriptor,
    variant: str,
    *,
    classifier: Classifier | None = None,
    limit: int = ITEMS_PER_FEED,
    now_ms: int | None = None,
) -> Optional[List[ParsedItem]]:
    """Turn a raw feed document into classified items.

    Returns ``None`` when nothing usable was found (no fragments, or none with
    a title) so callers can tell it apart from a populated list.
    """
    classify = classifier or classify_by_keyword
    dialect, fragments = extract_fragments(xml, limit)
    items: List[ParsedItem] = []

    for fragment in fragments:
        title = normalize_plain_text(extract_field(fragment, "title"))
        if not title:
            continue

        if dialect == "atom":
            link = normalize_plain_text(extract_link_href(fragment))
            date_str = extract_field(fragment, "published") or extract_field(fragment, "updated")
        else:
            link = normalize_plain_text(extract_field(fragment, "link"))
            date_str = extract_field(fragment, "pubDate")

        published_at = parse_timestamp_ms(date_str)
        if published_at is None:
            published_at = now_ms if now_ms is not None else _now_ms()

        items.append(
            ParsedItem.from_threat(
                source=feed.name,
                title=title,
                link=link,
                published_at_ms=published_at,
                threat=classify(title, variant),
            )
        )

    if not items:
        logger.debug("No usable %s items in %s", dialect, feed.url)
        return None
    return items
