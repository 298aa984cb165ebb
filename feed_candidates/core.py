from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from .dedup import deduplicate, sort_newest
from .exceptions import FetchError
from .fetcher import (
    DEFAULT_TIMEOUT_SEC,
    DEFAULT_TRANSPORT_TIMEOUT_SEC,
    Entries,
    fetch_feed_entries,
    fetch_sources,
)
from .models import CandidateItem, Checkpoint, FeedError, FeedSource, RunReport
from .normalizer import normalize_url, to_candidate_item
from .parser import parse_entry
from .report import build_report

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = timedelta(hours=24)

Feeds = Mapping[str, Sequence[FeedSource]]


def compute_cutoff(checkpoint: Checkpoint, now: datetime) -> datetime:
    """Checkpoint's last run, or 24 hours before `now` when there is none."""
    return checkpoint.last_run or (now - DEFAULT_LOOKBACK)


def advance_checkpoint(checkpoint: Checkpoint, report: RunReport) -> Checkpoint:
    """
    Checkpoint a caller may persist after consuming `report`.

    Nothing here writes it anywhere; the input checkpoint is left as it was.
    """
    return Checkpoint(
        last_run=report.generated_at,
        seen_links=checkpoint.seen_links | {it.link for it in report.items},
    )


@dataclass
class RunOptions:
    timeout: float = DEFAULT_TIMEOUT_SEC
    transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT_SEC
    max_workers: int = 8


class CandidateFetcher:
    """
    High-level API: fetch configured feeds and build a RunReport of new items.

    Pipeline: fetch (concurrent, per-source budget) → parse → date/seen filter →
    normalize → deduplicate → sort (newest first) → report
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT_SEC,
        max_workers: int = 8,
        fetch: Optional[Callable[[str], Entries]] = None,
    ) -> None:
        self.options = RunOptions(
            timeout=timeout,
            transport_timeout=transport_timeout,
            max_workers=max_workers,
        )
        self._fetch = fetch or functools.partial(
            fetch_feed_entries, transport_timeout=transport_timeout
        )

    def collect(
        self,
        feeds: Feeds,
        checkpoint: Checkpoint,
        cutoff: datetime,
    ) -> Tuple[List[CandidateItem], List[FeedError]]:
        """
        Fetch every source and keep the entries that are new since `cutoff`.

        Items and errors come back in configuration order, whatever order the
        fetches actually completed in. Duplicates across sources are still present.
        """
        pairs = [(cat, src) for cat, sources in feeds.items() for src in sources]
        results = fetch_sources(
            [src.feed_url for _, src in pairs],
            fetch=self._fetch,
            timeout=self.options.timeout,
            max_workers=self.options.max_workers,
        )

        items: List[CandidateItem] = []
        errors: List[FeedError] = []
        for (cat, src), result in zip(pairs, results):
            if isinstance(result, FetchError):
                errors.append(FeedError(
                    category=cat,
                    source=src.name,
                    feed_url=src.feed_url,
                    message=str(result),
                ))
                continue
            found = self._select(result, cat, src, checkpoint, cutoff)
            logger.debug("Feed %s: %d new of %d entries", src.name, len(found), len(result))
            items.extend(found)

        logger.info("Feeds fetched | items=%d sources=%d errors=%d", len(items), len(pairs), len(errors))
        return items, errors

    def _select(
        self,
        entries: Entries,
        category: str,
        source: FeedSource,
        checkpoint: Checkpoint,
        cutoff: datetime,
    ) -> List[CandidateItem]:
        out: List[CandidateItem] = []
        for raw in entries:
            e = parse_entry(raw)
            published = e["published"]
            if published is None or published <= cutoff:
                continue
            link = normalize_url(e["link"])
            if not link or link in checkpoint.seen_links:
                continue
            e["link"] = link
            out.append(to_candidate_item(e, category=category, source=source.name))
        return out

    def run(
        self,
        feeds: Feeds,
        checkpoint: Checkpoint,
        now: Optional[datetime] = None,
    ) -> RunReport:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = compute_cutoff(checkpoint, now)
        items, errors = self.collect(feeds, checkpoint, cutoff)

        # Deduplicate and sort (newest first)
        items = sort_newest(deduplicate(items))
        return build_report(items, errors, generated_at=now, cutoff=cutoff)

