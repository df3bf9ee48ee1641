"""Processing pipeline: item extraction, parsing and classification."""

from .extract import (
    decode_xml_entities,
    detect_dialect,
    extract_field,
    extract_fragments,
    extract_items,
    extract_link_href,
)
from .classify import Classifier, classify_by_keyword
from .normalize import normalize_plain_text
from .parse import parse_feed, parse_timestamp_ms

__all__ = [
    "decode_xml_entities",
    "detect_dialect",
    "extract_field",
    "extract_fragments",
    "extract_items",
    "extract_link_href",
    "Classifier",
    "classify_by_keyword",
    "normalize_plain_text",
    "parse_feed",
    "parse_timestamp_ms",
]
