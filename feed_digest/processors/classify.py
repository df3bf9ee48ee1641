"""Keyword threat classifier.

The digest engine treats classification as a pure function of the headline
and the variant. This module ships the default keyword rule table; hosts may
pass any callable with the same signature instead.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Pattern, Tuple

from ..models import Threat, ThreatLevel

Classifier = Callable[[str, str], Threat]

_CONFIDENCE = {
    ThreatLevel.CRITICAL: 0.9,
    ThreatLevel.HIGH: 0.8,
    ThreatLevel.MEDIUM: 0.7,
    ThreatLevel.LOW: 0.6,
}

# (level, category, keywords); first matching rule wins, so order is severity.
_RULES: Tuple[Tuple[ThreatLevel, str, Tuple[str, ...]], ...] = (
    (ThreatLevel.CRITICAL, "military", ("nuclear strike", "nuclear attack", "declaration of war", "invasion", "invades")),
    (ThreatLevel.CRITICAL, "terrorism", ("mass casualty", "terror attack", "terrorist attack")),
    (ThreatLevel.CRITICAL, "health", ("pandemic declared",)),
    (ThreatLevel.HIGH, "security", ("mobilizes", "mobilises", "mobilization", "troops massing", "border clash")),
    (ThreatLevel.HIGH, "military", ("airstrike", "air strike", "missile", "drone strike", "shelling", "offensive")),
    (ThreatLevel.HIGH, "cyber", ("ransomware", "cyberattack", "cyber attack", "zero-day", "data breach")),
    (ThreatLevel.HIGH, "terrorism", ("bombing", "hostage", "gunman")),
    (ThreatLevel.HIGH, "disaster", ("earthquake", "tsunami", "hurricane", "wildfire")),
    (ThreatLevel.MEDIUM, "conflict", ("protest", "clashes", "unrest", "coup", "ceasefire")),
    (ThreatLevel.MEDIUM, "economic", ("sanctions", "tariff", "recession", "default", "market crash")),
    (ThreatLevel.MEDIUM, "health", ("outbreak", "epidemic")),
    (ThreatLevel.LOW, "diplomacy", ("summit", "election", "treaty", "talks")),
    (ThreatLevel.LOW, "economic", ("inflation", "interest rate", "layoffs")),
)

_UNMATCHED = Threat(level=ThreatLevel.UNSPECIFIED, category="general", confidence=0.3)


def _compile(keywords: Iterable[str]) -> Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_COMPILED: List[Tuple[ThreatLevel, str, Pattern[str]]] = [
    (level, category, _compile(keywords)) for level, category, keywords in _RULES
]


def classify_by_keyword(title: str, variant: str) -> Threat:
    """Return (level, category, confidence) for a headline.

    The ``happy`` variant never raises alerts; its feeds are curated for
    positive news and keyword hits there are almost always false positives.
    """
    if variant == "happy" or not title:
        return _UNMATCHED
    for level, category, pattern in _COMPILED:
        if pattern.search(title):
            return Threat(level=level, category=category, confidence=_CONFIDENCE[level])
    return _UNMATCHED
