from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from feed_candidates.models import Checkpoint, FeedSource

NOW = datetime(2024, 5, 2, 12, 0, 0, tzinfo=timezone.utc)
CUTOFF = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def entry(link: str, published: str, title: str = "Title", summary: str = "") -> Dict[str, Any]:
    """Minimal stand-in for a feedparser entry."""
    return {"title": title, "link": link, "published": published, "summary": summary}


class FakeFetch:
    """Single-feed fetch double: url -> entries, or an exception to raise."""

    def __init__(self, responses: Dict[str, Any]) -> None:
        self.responses = responses
        self.calls: List[str] = []

    def __call__(self, url: str, **kwargs: Any):
        self.calls.append(url)
        res = self.responses[url]
        if isinstance(res, BaseException):
            raise res
        if callable(res):
            return res()
        return res


@pytest.fixture
def checkpoint() -> Checkpoint:
    return Checkpoint(last_run=CUTOFF)


@pytest.fixture
def feeds() -> Dict[str, List[FeedSource]]:
    return {
        "world": [
            FeedSource(name="Alpha", feed_url="https://alpha.example/rss"),
            FeedSource(name="Beta", feed_url="https://beta.example/rss"),
        ],
        "tech": [
            FeedSource(name="Gamma", feed_url="https://gamma.example/atom"),
        ],
    }
