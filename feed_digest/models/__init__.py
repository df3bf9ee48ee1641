"""Typed models used across the digest engine."""

from .feed import FeedDescriptor
from .item import ParsedItem, Threat, ThreatLevel, is_alert_level
from .digest import CacheEntry, CategoryBucket, Digest, FeedStatus

__all__ = [
    "FeedDescriptor",
    "ParsedItem",
    "Threat",
    "ThreatLevel",
    "is_alert_level",
    "CacheEntry",
    "CategoryBucket",
    "Digest",
    "FeedStatus",
]
