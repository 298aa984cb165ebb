from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, Union

from .models import CandidateItem, FeedError, RunReport

logger = logging.getLogger(__name__)


def _default_file_mode() -> int:
    """Mode a plainly created file would get under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def build_report(
    items: Iterable[CandidateItem],
    errors: Iterable[FeedError],
    *,
    generated_at: datetime,
    cutoff: datetime,
) -> RunReport:
    """Assemble the run record. `items` must already be deduplicated and sorted."""
    return RunReport(
        generated_at=generated_at,
        cutoff=cutoff,
        items=tuple(items),
        errors=tuple(errors),
    )


def write_report(report: RunReport, path: Union[str, Path]) -> Path:
    """
    Write the report as JSON, atomically.

    The data goes to a temporary file next to `path` that then replaces it, so
    readers see either the previous file or the complete new one.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
        # mkstemp creates the file as 0600
        os.chmod(tmp, _default_file_mode())
        os.replace(tmp, target)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise
    logger.info("Report written | path=%s count=%d errors=%d", target, report.count, len(report.errors))
    return target
