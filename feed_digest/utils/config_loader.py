from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple
from urllib.parse import quote, urlparse

import yaml

from ..models import FeedDescriptor


class ConfigError(Exception):
    """Raised when the feed registry file is invalid or missing required fields."""


DEFAULT_REGISTRY_PATH = Path(__file__).resolve().parent.parent / "registry" / "feeds.yaml"

GOOGLE_NEWS_SEARCH = "https://news.google.com/rss/search?q={q}&hl=en-US&gl=US&ceid=US:en"

# Reserved category the "full" variant appends its intel sources under.
INTEL_CATEGORY = "intel"


def google_news_url(query: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent
    return GOOGLE_NEWS_SEARCH.format(q=quote(query, safe="-_.!~*'()"))


@dataclass(slots=True)
class FeedRegistry:
    """Read-only lookup table of variant -> category -> feeds."""

    variants: Dict[str, Dict[str, Tuple[FeedDescriptor, ...]]] = field(default_factory=dict)
    intel: Tuple[FeedDescriptor, ...] = ()

    def feeds_for(self, variant: str) -> Dict[str, Tuple[FeedDescriptor, ...]]:
        return self.variants.get(variant, {})


def _validate_feed_dict(entry: object, where: str) -> None:
    """Validate a single feed mapping from YAML.

    Required: name (str) and exactly one of url (http/https) or query (str).
    Optional: lang (str).
    """
    if not isinstance(entry, dict):
        raise ConfigError(f"Each feed must be a mapping, got: {type(entry)} in {where}")
    if not entry.get("name"):
        raise ConfigError(f"Missing required field 'name' in {where}: {entry}")

    has_url = bool(entry.get("url"))
    has_query = bool(entry.get("query"))
    if has_url == has_query:
        raise ConfigError(f"Feed '{entry['name']}' in {where} needs exactly one of 'url' or 'query'")

    if has_url:
        url_str = str(entry["url"]).strip()
        parsed = urlparse(url_str)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid URL '{url_str}' for feed '{entry['name']}'. Must be absolute http(s) URL.")

    if entry.get("lang") is not None and not isinstance(entry["lang"], str):
        raise ConfigError(f"'lang' must be a string for feed '{entry['name']}'")


def _coerce_feed(entry: dict) -> FeedDescriptor:
    url = str(entry["url"]).strip() if entry.get("url") else google_news_url(str(entry["query"]))
    lang = entry.get("lang")
    return FeedDescriptor(
        name=str(entry["name"]).strip(),
        url=url,
        lang=str(lang).strip() if lang else None,
    )


def _load_feed_list(raw: object, where: str) -> Tuple[FeedDescriptor, ...]:
    if not isinstance(raw, list):
        raise ConfigError(f"{where} must be a list of feeds")
    feeds: List[FeedDescriptor] = []
    for item in raw:
        _validate_feed_dict(item, where)
        feeds.append(_coerce_feed(item))
    return tuple(feeds)


def parse_feed_registry(data: dict) -> FeedRegistry:
    """Build a registry from an already-decoded YAML mapping.

    Structure:
      - ``variants``: mapping of variant name -> mapping of category -> feed list
      - ``intel``: feed list (optional)

    Unknown top-level keys are ignored for forward compatibility.
    """
    variants_raw = data.get("variants")
    if variants_raw is None:
        variants_raw = {}
    if not isinstance(variants_raw, dict):
        raise ConfigError("'variants' must be a mapping in the feed registry")

    variants: Dict[str, Dict[str, Tuple[FeedDescriptor, ...]]] = {}
    for variant, categories in variants_raw.items():
        if not isinstance(categories, dict):
            raise ConfigError(f"Variant '{variant}' must map category names to feed lists")
        variants[str(variant)] = {
            str(category): _load_feed_list(feeds, f"{variant}.{category}")
            for category, feeds in categories.items()
        }

    intel = _load_feed_list(data.get("intel") or [], "intel")
    return FeedRegistry(variants=variants, intel=intel)


def load_feed_registry(path: Path | str | None = None) -> FeedRegistry:
    """Load ``feeds.yaml`` into a typed ``FeedRegistry``."""
    config_path = Path(path) if path is not None else DEFAULT_REGISTRY_PATH
    if not config_path.exists():
        raise ConfigError(f"Feed registry not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("Feed registry must be a YAML mapping")
    return parse_feed_registry(data)
