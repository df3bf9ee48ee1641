from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class FeedDescriptor:
    """A named feed endpoint from the registry. Identity is the URL."""

    name: str
    url: str
    lang: Optional[str] = None

    def matches_lang(self, lang: str) -> bool:
        # Feeds without a declared language are shown for every language
        return not self.lang or self.lang == lang
