from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ThreatLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNSPECIFIED = "unspecified"


_ALERT_LEVELS = {ThreatLevel.CRITICAL, ThreatLevel.HIGH}


def is_alert_level(level: ThreatLevel | str) -> bool:
    return ThreatLevel(level) in _ALERT_LEVELS


@dataclass(frozen=True, slots=True)
class Threat:
    """Classifier output for a single headline."""

    level: ThreatLevel
    category: str
    confidence: float


@dataclass(frozen=True, slots=True)
class ParsedItem:
    source: str
    title: str
    link: str
    published_at_ms: int
    is_alert: bool
    level: ThreatLevel
    category: str
    confidence: float
    classification_source: str = "keyword"

    @classmethod
    def from_threat(
        cls,
        *,
        source: str,
        title: str,
        link: str,
        published_at_ms: int,
        threat: Threat,
    ) -> "ParsedItem":
        level = ThreatLevel(threat.level)
        return cls(
            source=source,
            title=title,
            link=link,
            published_at_ms=published_at_ms,
            is_alert=is_alert_level(level),
            level=level,
            category=threat.category,
            confidence=float(threat.confidence),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "title": self.title,
            "link": self.link,
            "publishedAt": self.published_at_ms,
            "isAlert": self.is_alert,
            "level": self.level.value,
            "category": self.category,
            "confidence": self.confidence,
            "classificationSource": self.classification_source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedItem":
        level = ThreatLevel(data.get("level") or ThreatLevel.UNSPECIFIED)
        return cls(
            source=str(data.get("source") or ""),
            title=str(data.get("title") or ""),
            link=str(data.get("link") or ""),
            published_at_ms=int(data.get("publishedAt") or 0),
            # recomputed so a hand-edited cache entry can't break the invariant
            is_alert=is_alert_level(level),
            level=level,
            category=str(data.get("category") or "general"),
            confidence=float(data.get("confidence") or 0.0),
            classification_source=str(data.get("classificationSource") or "keyword"),
        )
