from __future__ import annotations

from typing import Iterable, List, Set

from .models import CandidateItem


def deduplicate(items: Iterable[CandidateItem]) -> List[CandidateItem]:
    """
    Remove items whose normalized link was already seen.
    Keeps the first occurrence and preserves original order.
    """
    seen: Set[str] = set()
    out: List[CandidateItem] = []
    for it in items:
        if it.link in seen:
            continue
        seen.add(it.link)
        out.append(it)
    return out


def sort_newest(items: Iterable[CandidateItem]) -> List[CandidateItem]:
    """Newest first. The sort is stable, so equal timestamps keep arrival order."""
    return sorted(items, key=lambda x: x.published, reverse=True)
