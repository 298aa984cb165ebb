"""
feed_candidates

Collects the items a set of RSS/Atom feeds published since the last run.

Core ideas:
- Input: feed configuration (category -> feeds) and a checkpoint (last run, seen links)
- Process: fetch (concurrent, time-boxed per feed) → date filter → normalize link →
  drop seen links → deduplicate → sort (newest first)
- Output: RunReport with the candidate items and one error per failed feed

Example
-------
from feed_candidates import CandidateFetcher, load_checkpoint, load_feeds

fetcher = CandidateFetcher(timeout=25, max_workers=8)
report = fetcher.run(load_feeds("data/feeds.json"), load_checkpoint("data/state.json"))

for item in report.items:
    print(item.published, item.source, item.title)
"""
from .config import load_checkpoint, load_feeds
from .core import CandidateFetcher, advance_checkpoint
from .exceptions import ConfigError, DateUnresolvable, FetchError, FetchTimeout
from .models import CandidateItem, Checkpoint, FeedError, FeedSource, RunReport
from .normalizer import normalize_url
from .report import write_report

__all__ = [
    "CandidateFetcher",
    "CandidateItem",
    "Checkpoint",
    "ConfigError",
    "DateUnresolvable",
    "FeedError",
    "FeedSource",
    "FetchError",
    "FetchTimeout",
    "RunReport",
    "advance_checkpoint",
    "load_checkpoint",
    "load_feeds",
    "normalize_url",
    "write_report",
]
