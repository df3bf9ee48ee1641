from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Tuple, TypeVar

from .item import ParsedItem

T = TypeVar("T")


class FeedStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class CategoryBucket:
    """Items of one category, newest first."""

    items: Tuple[ParsedItem, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"items": [it.to_dict() for it in self.items]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CategoryBucket":
        return cls(items=tuple(ParsedItem.from_dict(it) for it in data.get("items") or []))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Digest:
    categories: Dict[str, CategoryBucket] = field(default_factory=dict)
    feed_statuses: Dict[str, FeedStatus] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def empty(cls) -> "Digest":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": {name: bucket.to_dict() for name, bucket in self.categories.items()},
            "feedStatuses": {name: status.value for name, status in self.feed_statuses.items()},
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Digest":
        raw_ts = str(data.get("generatedAt") or "")
        try:
            generated_at = datetime.fromisoformat(raw_ts.replace("Z", "+00:00"))
        except ValueError:
            generated_at = _utcnow()
        return cls(
            categories={
                name: CategoryBucket.from_dict(bucket)
                for name, bucket in (data.get("categories") or {}).items()
            },
            feed_statuses={
                name: FeedStatus(status) for name, status in (data.get("feedStatuses") or {}).items()
            },
            generated_at=generated_at,
        )


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float
