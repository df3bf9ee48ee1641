"""Feed digest aggregation engine.

Fetches tens of RSS/Atom feeds per audience variant under a wall-clock
budget, classifies every headline, ranks the items per category and reports
per-feed health, with per-feed and per-digest caching in front of it all.
"""

from .models import Digest, FeedStatus, ParsedItem, ThreatLevel
from .service import DigestService, create_digest_service, get_digest

__all__ = [
    "Digest",
    "FeedStatus",
    "ParsedItem",
    "ThreatLevel",
    "DigestService",
    "create_digest_service",
    "get_digest",
]
