"""
Run configuration and the read-only inputs of a run.

Settings come from environment variables (a `.env` file in the working directory is
loaded first); command-line arguments override them.

Environment Variables:
    FEEDS_PATH: Feed configuration JSON (default: data/feeds.json)
    STATE_PATH: Checkpoint JSON (default: data/state.json)
    CANDIDATES_PATH: Output report JSON (default: data/_candidates.json)
    FEED_TIMEOUT: Per-feed time budget in seconds (default: 25)
    HTTP_TIMEOUT: Connect/read timeout in seconds (default: 20)
    MAX_WORKERS: Concurrent feed fetches (default: 8)
    LOG_LEVEL: Logging verbosity (default: INFO)
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Union

from dotenv import load_dotenv

from .exceptions import ConfigError, DateUnresolvable
from .fetcher import DEFAULT_TIMEOUT_SEC, DEFAULT_TRANSPORT_TIMEOUT_SEC
from .models import Checkpoint, FeedSource
from .normalizer import normalize_url
from .parser import parse_timestamp

PathLike = Union[str, Path]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_float(key: str, default: float) -> float:
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return float(val)
    except ValueError:
        raise ConfigError(f"Invalid number for {key}: '{val}'")


def _env_int(key: str, default: int) -> int:
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise ConfigError(f"Invalid integer for {key}: '{val}'")


def _env_log_level(key: str, default: str) -> str:
    val = (os.environ.get(key) or default).strip().upper()
    if val not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level for {key}: '{val}' (expected one of {', '.join(LOG_LEVELS)})")
    return val


@dataclass
class Settings:
    feeds_path: str = "data/feeds.json"
    state_path: str = "data/state.json"
    candidates_path: str = "data/_candidates.json"
    timeout: float = DEFAULT_TIMEOUT_SEC
    transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT_SEC
    max_workers: int = 8
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            feeds_path=os.environ.get("FEEDS_PATH") or cls.feeds_path,
            state_path=os.environ.get("STATE_PATH") or cls.state_path,
            candidates_path=os.environ.get("CANDIDATES_PATH") or cls.candidates_path,
            timeout=_env_float("FEED_TIMEOUT", cls.timeout),
            transport_timeout=_env_float("HTTP_TIMEOUT", cls.transport_timeout),
            max_workers=_env_int("MAX_WORKERS", cls.max_workers),
            log_level=_env_log_level("LOG_LEVEL", cls.log_level),
        )


def read_json(path: PathLike) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"Malformed JSON in {path}: {e}") from e


def parse_feeds(data: Any) -> Dict[str, List[FeedSource]]:
    """
    Validate a feed configuration mapping: {category: [{name, feedUrl}, ...]}.

    Declaration order is kept; it decides which source wins a duplicate link.
    The key "rss" is accepted in place of "feedUrl".
    """
    if not isinstance(data, dict):
        raise ConfigError("Feed configuration must be an object of category -> list of feeds")
    feeds: Dict[str, List[FeedSource]] = {}
    for category, entries in data.items():
        if not isinstance(entries, list):
            raise ConfigError(f"Category {category!r} must hold a list of feeds")
        sources: List[FeedSource] = []
        for i, e in enumerate(entries):
            if not isinstance(e, dict):
                raise ConfigError(f"Feed #{i} in {category!r} must be an object")
            name = e.get("name")
            url = e.get("feedUrl") or e.get("rss")
            if not isinstance(name, str) or not name.strip():
                raise ConfigError(f"Feed #{i} in {category!r} has no name")
            if not isinstance(url, str) or not url.strip():
                raise ConfigError(f"Feed {name!r} in {category!r} has no feedUrl")
            sources.append(FeedSource(name=name.strip(), feed_url=url.strip()))
        feeds[str(category)] = sources
    return feeds


def parse_checkpoint(data: Any) -> Checkpoint:
    """
    Validate checkpoint state: {lastRun?: ISO-8601, seenLinks?: [url, ...]}.

    Seen links are normalized here so they compare equal to candidate links.
    The key "seenUrls" is accepted in place of "seenLinks".
    """
    if not isinstance(data, dict):
        raise ConfigError("Checkpoint must be an object")

    last_run = None
    raw_last = data.get("lastRun")
    if raw_last:
        if not isinstance(raw_last, str):
            raise ConfigError(f"lastRun must be an ISO-8601 string, got {raw_last!r}")
        try:
            last_run = parse_timestamp(raw_last)
        except DateUnresolvable as e:
            raise ConfigError(f"Invalid lastRun: {e}") from e

    seen = data.get("seenLinks")
    if seen is None:
        seen = data.get("seenUrls")
    if seen is None:
        seen = []
    if not isinstance(seen, list) or not all(isinstance(u, str) for u in seen):
        raise ConfigError("seenLinks must be a list of URL strings")

    return Checkpoint(last_run=last_run, seen_links=frozenset(normalize_url(u) for u in seen))


def load_feeds(path: PathLike) -> Dict[str, List[FeedSource]]:
    return parse_feeds(read_json(path))


def load_checkpoint(path: PathLike) -> Checkpoint:
    return parse_checkpoint(read_json(path))
