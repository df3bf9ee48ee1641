"""Best-effort item and field extraction from raw RSS/Atom documents.

Feeds in the wild are frequently truncated, double-encoded or carry bare
ampersands, so this module matches substrings with regular expressions instead
of running a validating XML parser. Nothing here raises on malformed input.
"""

from __future__ import annotations

import re
from itertools import islice
from typing import Dict, List, Literal, Pattern, Tuple

Dialect = Literal["rss", "atom"]

ITEMS_PER_FEED = 5

_ITEM_RE = re.compile(r"<item[\s>]([\s\S]*?)</item>", re.IGNORECASE)
_ENTRY_RE = re.compile(r"<entry[\s>]([\s\S]*?)</entry>", re.IGNORECASE)
_LINK_TAG_RE = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_HREF_RE = re.compile(r"""\bhref\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_REL_RE = re.compile(r"""\brel\s*=\s*["']([^"']+)["']""", re.IGNORECASE)

_NAMED_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&apos;", "'"),
)
_DEC_REF_RE = re.compile(r"&#(\d+);")
_HEX_REF_RE = re.compile(r"&#x([0-9a-fA-F]+);")


def _tag_patterns(tag: str) -> Tuple[Pattern[str], Pattern[str]]:
    name = re.escape(tag)
    cdata = re.compile(
        rf"<{name}(?:\s[^>]*)?>\s*<!\[CDATA\[([\s\S]*?)\]\]>\s*</{name}>",
        re.IGNORECASE,
    )
    plain = re.compile(rf"<{name}(?:\s[^>]*)?>([^<]*)</{name}>", re.IGNORECASE)
    return cdata, plain


_TAG_PATTERNS: Dict[str, Tuple[Pattern[str], Pattern[str]]] = {
    tag: _tag_patterns(tag) for tag in ("title", "link", "pubDate", "published", "updated")
}


def _patterns_for(tag: str) -> Tuple[Pattern[str], Pattern[str]]:
    patterns = _TAG_PATTERNS.get(tag)
    if patterns is None:
        patterns = _TAG_PATTERNS.setdefault(tag, _tag_patterns(tag))
    return patterns


def _code_point(value: int, original: str) -> str:
    try:
        return chr(value)
    except (ValueError, OverflowError):
        return original


def decode_xml_entities(text: str) -> str:
    """Decode the five XML entities and numeric character references.

    ``&amp;`` is decoded first, so double-encoded text such as ``&amp;lt;``
    collapses all the way to ``<``.
    """
    for entity, char in _NAMED_ENTITIES:
        text = text.replace(entity, char)
    text = _DEC_REF_RE.sub(lambda m: _code_point(int(m.group(1)), m.group(0)), text)
    text = _HEX_REF_RE.sub(lambda m: _code_point(int(m.group(1), 16), m.group(0)), text)
    return text


def detect_dialect(xml: str) -> Dialect:
    return "rss" if _ITEM_RE.search(xml or "") else "atom"


def extract_fragments(xml: str, limit: int = ITEMS_PER_FEED) -> Tuple[Dialect, List[str]]:
    """Return the document dialect and up to ``limit`` raw item fragments.

    Dialect is decided once: any ``<item>`` makes the document RSS, otherwise
    ``<entry>`` elements are collected as Atom.
    """
    xml = xml or ""
    dialect = detect_dialect(xml)
    pattern = _ITEM_RE if dialect == "rss" else _ENTRY_RE
    return dialect, [m.group(1) for m in islice(pattern.finditer(xml), max(limit, 0))]


def extract_items(xml: str, limit: int = ITEMS_PER_FEED) -> List[str]:
    return extract_fragments(xml, limit)[1]


def extract_field(fragment: str, tag: str) -> str:
    """Text of the first ``<tag>`` in the fragment, or ``""`` if absent.

    CDATA content wins over plain content and is returned as-is; plain
    content is entity-decoded.
    """
    if not fragment:
        return ""
    cdata_re, plain_re = _patterns_for(tag)
    match = cdata_re.search(fragment)
    if match:
        return match.group(1).strip()
    match = plain_re.search(fragment)
    return decode_xml_entities(match.group(1).strip()) if match else ""


def extract_link_href(fragment: str) -> str:
    """Atom link: the ``href`` of the alternate ``<link>``, else the first one."""
    first = ""
    for tag in _LINK_TAG_RE.findall(fragment or ""):
        href = _HREF_RE.search(tag)
        if not href:
            continue
        value = decode_xml_entities(href.group(1).strip())
        rel = _REL_RE.search(tag)
        if rel is None or rel.group(1).lower() == "alternate":
            return value
        first = first or value
    return first
