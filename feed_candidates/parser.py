from __future__ import annotations

import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from bs4 import BeautifulSoup
from feedparser.datetimes import _parse_date

from .exceptions import DateUnresolvable

logger = logging.getLogger(__name__)

SUMMARY_MAX_CHARS = 500

# Priority order for the publish timestamp. "struct" fields were already parsed
# by feedparser; "text" fields hold the raw value as it appeared in the feed.
DATE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("published_parsed", "struct"),
    ("updated_parsed", "struct"),
    ("published", "text"),
    ("updated", "text"),
    ("created", "text"),
    ("date", "text"),
)


def to_iso(dt: datetime) -> str:
    """Render a datetime in the canonical UTC form, e.g. 2024-05-01T08:30:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return f"{dt:%Y-%m-%dT%H:%M:%S}.{dt.microsecond // 1000:03d}Z"


def _from_struct(val: time.struct_time) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(calendar.timegm(val), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp (trailing "Z" accepted) into an aware UTC datetime.

    Naive values are taken as UTC. Anything feedparser understands (RFC-822,
    W3DTF, ...) is accepted as a fallback.
    """
    s = (text or "").strip()
    if not s:
        raise DateUnresolvable("Empty timestamp")
    try:
        iso = s[:-1] + "+00:00" if s[-1] in "Zz" else s
        dt = datetime.fromisoformat(iso)
    except ValueError:
        parsed = _parse_date(s)
        dt = _from_struct(parsed) if parsed else None
        if dt is None:
            raise DateUnresolvable(f"Unparsable timestamp: {s!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def extract_date_field(entry: Dict[str, Any]) -> Optional[Tuple[str, Any]]:
    """
    Return (field_name, value) for the first non-empty date field in DATE_FIELDS.
    """
    for key, kind in DATE_FIELDS:
        val = entry.get(key)
        if kind == "struct" and isinstance(val, time.struct_time):
            return key, val
        if kind == "text" and isinstance(val, str) and val.strip():
            return key, val.strip()
    return None


def resolve_published(entry: Dict[str, Any]) -> Optional[datetime]:
    """
    Resolve the single authoritative publish timestamp of a feed entry.

    Only the value chosen by `extract_date_field` is parsed; an unparsable
    choice yields None rather than falling through to lower-priority fields.
    """
    found = extract_date_field(entry)
    if found is None:
        return None
    key, val = found
    if isinstance(val, time.struct_time):
        return _from_struct(val)
    try:
        return parse_timestamp(val)
    except DateUnresolvable:
        logger.debug("Unparsable %s value: %r", key, val)
        return None


def clean_text(raw: Any, limit: int = SUMMARY_MAX_CHARS) -> str:
    """Strip markup, collapse whitespace and cut to `limit` characters."""
    if not raw:
        return ""
    text = str(raw)
    if "<" in text or "&" in text:
        text = BeautifulSoup(text, "html.parser").get_text(" ")
    text = " ".join(text.split())
    if limit > 0:
        text = text[:limit]
    return text


def _get_summary(entry: Dict[str, Any]) -> str:
    for key in ("summary", "description"):
        val = entry.get(key)
        if isinstance(val, str) and val.strip():
            return val
    content = entry.get("content")
    if isinstance(content, list):
        for part in content:
            if isinstance(part, dict):
                val = part.get("value")
                if isinstance(val, str) and val.strip():
                    return val
    return ""


def parse_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a raw feed entry (from feedparser) to a dict with common fields.
    Fields: title, link (raw, not normalized), summary, published (datetime|None)
    """
    title = entry.get("title") or ""
    link = entry.get("link") or entry.get("id") or entry.get("guid") or ""

    return {
        "title": str(title).strip(),
        "link": str(link).strip(),
        "summary": clean_text(_get_summary(entry)),
        "published": resolve_published(entry),
    }
