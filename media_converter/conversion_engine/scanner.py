# media_converter/conversion_engine/scanner.py
"""
Contains functions to walk a directory tree and yield the files that need conversion.
"""

import logging
import os
import threading
from typing import Iterable, Iterator

from media_converter.config import SKIP_LOG_INTERVAL
from media_converter.events import EventLog
from media_converter.models import CandidateFile, RunMetrics, Verdict

from .decision import DecisionEngine

logger = logging.getLogger(__name__)


def find_media_files(folder_path: str, extensions: Iterable[str]) -> Iterator[str]:
    """Lazily yield files below a folder whose extension is in the given set.

    Single-pass os.walk() with case-insensitive extension matching. Directories
    and file names are visited in sorted order so runs are reproducible.

    Args:
        folder_path: Path to folder to scan
        extensions: Extensions to match without dot (e.g., ["mp4", "mkv"])

    Yields:
        Absolute file paths
    """
    ext_set = {ext.lower() for ext in extensions}
    for dirpath, dirnames, filenames in os.walk(os.path.abspath(folder_path)):
        dirnames.sort()
        for filename in sorted(filenames):
            ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
            if ext in ext_set:
                yield os.path.join(dirpath, filename)


def iter_conversion_candidates(
    folder_path: str,
    extensions: Iterable[str],
    decision_engine: DecisionEngine,
    metrics: RunMetrics,
    events: EventLog,
    stop_event: threading.Event | None = None,
    skip_log_interval: int = SKIP_LOG_INTERVAL,
) -> Iterator[CandidateFile]:
    """Yield the files under folder_path that the decision engine wants converted.

    The sequence is lazy, keeps walk order and cannot be resumed once
    exhausted; call again for a fresh walk. Skipped files and unreadable
    (probe-failed) files are counted in metrics.

    Args:
        folder_path: Root of the tree to search.
        extensions: Input extensions of the target's media category.
        decision_engine: Engine used for the skip/convert verdict.
        metrics: Run counters updated with skips and errors.
        events: Event log for progress and error events.
        stop_event: Checked before every file; when set the walk ends.
        skip_log_interval: Emit "Skipped N files" every this many skips.
    """
    found = 0
    for path in find_media_files(folder_path, extensions):
        if stop_event is not None and stop_event.is_set():
            logger.info("File search interrupted by stop request.")
            return

        try:
            candidate = CandidateFile.from_path(path)
        except OSError as e:
            metrics.errors += 1
            events.error(f"Cannot read file - {os.path.basename(path)}", e)
            continue

        decision = decision_engine.decide(candidate)
        if not decision.skip:
            found += 1
            yield candidate
            continue

        metrics.skipped += 1
        if decision.verdict == Verdict.SKIP_BAD:
            metrics.errors += 1
            events.error(f"Bad file - {candidate.name}", decision.error)
        else:
            logger.debug(f"Skipping {candidate.name}: {decision.reason}")
        if skip_log_interval > 0 and metrics.skipped % skip_log_interval == 0:
            events.info(f"Skipped {metrics.skipped} files")

    events.info(f"Search complete: {found} file(s) to convert, {metrics.skipped} skipped")
