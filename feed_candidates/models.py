from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .parser import to_iso


@dataclass(frozen=True)
class FeedSource:
    name: str
    feed_url: str


@dataclass(frozen=True)
class Checkpoint:
    """
    Boundary between previously ingested items and new ones.

    `seen_links` holds normalized URLs. A run reads it and never changes it.
    """
    last_run: Optional[datetime] = None
    seen_links: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class CandidateItem:
    """
    Stable public model representing one new feed item.

    WARNING: Do not change fields lightly. This is the output contract.
    """
    category: str
    source: str
    title: str
    link: str
    published: datetime
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "source": self.source,
            "title": self.title,
            "link": self.link,
            "published": to_iso(self.published),
            "summary": self.summary,
        }


@dataclass(frozen=True)
class FeedError:
    """One source whose fetch-and-parse attempt failed or timed out."""
    category: str
    source: str
    feed_url: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "source": self.source,
            "feedUrl": self.feed_url,
            "message": self.message,
        }


@dataclass(frozen=True)
class RunReport:
    generated_at: datetime
    cutoff: datetime
    items: Tuple[CandidateItem, ...] = ()
    errors: Tuple[FeedError, ...] = ()

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": to_iso(self.generated_at),
            "cutoff": to_iso(self.cutoff),
            "count": self.count,
            "items": [it.to_dict() for it in self.items],
            "errors": [e.to_dict() for e in self.errors],
        }

    def summary(self) -> Dict[str, Any]:
        """Short operator-facing digest of the run."""
        return {
            "count": self.count,
            "errors": len(self.errors),
            "cutoff": to_iso(self.cutoff),
        }
