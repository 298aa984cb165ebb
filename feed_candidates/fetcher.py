from __future__ import annotations

import concurrent.futures as _fut
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import feedparser
import requests

from .exceptions import FetchError, FetchTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 25.0
DEFAULT_TRANSPORT_TIMEOUT_SEC = 20.0

USER_AGENT = "feed-candidates/0.1 (+https://pypi.org/project/feedparser/)"
REQUEST_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8",
}

Entries = List[Dict[str, Any]]
FetchFn = Callable[[str], Entries]


def fetch_feed_entries(
    url: str,
    *,
    transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT_SEC,
    session: Optional[requests.Session] = None,
) -> Entries:
    """
    Fetch a single feed URL and return its entries.

    Raises FetchTimeout when the connection or read stalls past `transport_timeout`,
    FetchError on other network/HTTP issues or when the document is malformed and
    yields no entries.
    """
    http = session or requests
    try:
        resp = http.get(url, timeout=(transport_timeout, transport_timeout), headers=REQUEST_HEADERS)
        resp.raise_for_status()
    except requests.Timeout as e:
        raise FetchTimeout(f"Timeout fetching feed: {url} ({e})") from e
    except requests.RequestException as e:
        raise FetchError(f"Failed to fetch feed: {url} ({e})") from e

    feed = feedparser.parse(resp.content)
    entries = getattr(feed, "entries", None)
    if not isinstance(entries, list):
        raise FetchError(f"Feed has no entries: {url}")

    if getattr(feed, "bozo", 0):
        exc = getattr(feed, "bozo_exception", None)
        if not entries:
            msg = f"Invalid RSS/Atom feed: {url}"
            if exc:
                msg += f" ({exc})"
            raise FetchError(msg)
        # Recoverable (encoding override, stray markup); entries are usable
        logger.debug("Feed %s: tolerated parse issue: %s", url, exc)
    return entries


def fetch_with_budget(fetch: FetchFn, url: str, budget: float = DEFAULT_TIMEOUT_SEC) -> Entries:
    """
    Run `fetch(url)` against a timer and return whichever finishes first.

    The fetch runs on a daemon thread. If the budget expires first, FetchTimeout is
    raised and the thread is abandoned: its eventual result is discarded and nothing
    is sent to the transport to stop it, so a permanently hung connection keeps its
    thread until the process exits.
    """
    future: _fut.Future = _fut.Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():  # pragma: no cover
            return
        try:
            future.set_result(fetch(url))
        except BaseException as e:
            future.set_exception(e)

    threading.Thread(target=_run, name=f"fetch:{url}", daemon=True).start()
    try:
        return future.result(timeout=budget)
    except _fut.TimeoutError:
        raise FetchTimeout(f"Timeout after {int(budget * 1000)}ms") from None


FetchResult = Union[Entries, FetchError]


def fetch_sources(
    urls: Sequence[str],
    *,
    fetch: FetchFn,
    timeout: float = DEFAULT_TIMEOUT_SEC,
    max_workers: int = 8,
) -> List[FetchResult]:
    """
    Fetch many feeds concurrently.

    Returns one result per URL, positioned as in `urls`: the entry list on success
    or a FetchError on failure. A failure on one URL never affects the others;
    unexpected exceptions from `fetch` are wrapped in FetchError as well.
    """
    def _one(u: str) -> FetchResult:
        try:
            return fetch_with_budget(fetch, u, timeout)
        except FetchError as e:
            logger.warning("Feed %s: %s", u, e)
            return e
        except Exception as e:
            logger.warning("Feed %s: %s: %s", u, type(e).__name__, e)
            err = FetchError(f"{type(e).__name__}: {e}")
            err.__cause__ = e
            return err

    if not urls:
        return []
    max_workers = max(1, min(int(max_workers or 1), len(urls)))
    if max_workers == 1:
        return [_one(u) for u in urls]

    with _fut.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="feed") as ex:
        futures = [ex.submit(_one, u) for u in urls]
        return [fu.result() for fu in futures]
