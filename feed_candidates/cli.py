from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import LOG_LEVELS, Settings, load_checkpoint, load_feeds
from .core import CandidateFetcher
from .exceptions import ConfigError
from .report import write_report

logger = logging.getLogger("feed_candidates")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="feed-candidates",
        description="Collect new RSS/Atom items since the last checkpoint into a candidates report.",
    )
    ap.add_argument("feeds", nargs="?", default=settings.feeds_path,
                    help=f"feed configuration JSON (default: {settings.feeds_path})")
    ap.add_argument("state", nargs="?", default=settings.state_path,
                    help=f"checkpoint JSON (default: {settings.state_path})")
    ap.add_argument("output", nargs="?", default=settings.candidates_path,
                    help=f"report output path (default: {settings.candidates_path})")
    ap.add_argument("--timeout", type=float, default=settings.timeout,
                    help="per-feed time budget in seconds")
    ap.add_argument("--http-timeout", type=float, default=settings.transport_timeout,
                    help="connect/read timeout in seconds")
    ap.add_argument("--workers", type=int, default=settings.max_workers,
                    help="concurrent feed fetches")
    ap.add_argument("--log-level", default=settings.log_level,
                    type=str.upper, choices=LOG_LEVELS)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        feeds = load_feeds(args.feeds)
        checkpoint = load_checkpoint(args.state)
    except ConfigError as e:
        logger.error("Cannot start run: %s", e)
        return 1

    try:
        fetcher = CandidateFetcher(
            timeout=args.timeout,
            transport_timeout=args.http_timeout,
            max_workers=args.workers,
        )
        report = fetcher.run(feeds, checkpoint)
        write_report(report, args.output)
    except Exception:
        logger.exception("Run failed")
        return 1

    print(json.dumps(report.summary(), indent=2))
    return 0
