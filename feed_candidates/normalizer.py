from __future__ import annotations

from typing import Any, Dict
from urllib.parse import unquote_plus, urlsplit, urlunsplit

from .models import CandidateItem

TRACKING_PARAMS = frozenset({
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "ref", "s", "cmpid",
})


def normalize_url(raw: str) -> str:
    """
    Canonicalize a link into a stable deduplication key.

    The host is lowercased and an empty path becomes "/". Known tracking parameters
    are removed from the query (matched by exact name); everything else is kept
    verbatim and in order. If no parameters remain the "?" is dropped. Strings that
    are not absolute URLs are returned unchanged.
    """
    try:
        parts = urlsplit(raw)
    except (TypeError, ValueError):
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    kept = [
        p for p in parts.query.split("&")
        if p and unquote_plus(p.split("=", 1)[0]) not in TRACKING_PARAMS
    ]
    userinfo, at, host = parts.netloc.rpartition("@")
    netloc = userinfo + at + host.lower()
    path = parts.path or "/"
    return urlunsplit((parts.scheme, netloc, path, "&".join(kept), parts.fragment))


def to_candidate_item(entry: Dict[str, Any], *, category: str, source: str) -> CandidateItem:
    """
    Convert a parsed entry dict into a CandidateItem.
    The caller has already checked that `link` is normalized and non-empty and
    that `published` is a datetime past the cutoff.
    """
    return CandidateItem(
        category=category,
        source=source,
        title=entry.get("title") or "",
        link=entry["link"],
        published=entry["published"],
        summary=entry.get("summary") or "",
    )
