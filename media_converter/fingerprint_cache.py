# media_converter/fingerprint_cache.py
"""
Persistent set of fingerprints for files known to be converted (or known bad).

A fingerprint is a SHA-256 digest over file identity metadata, never over
content. Two granularities are kept:

- strict: name + length + mtime, detects a converted file that has not changed since
- loose:  name + length, still recognizes a converted file whose mtime was touched
          by a copy or by the filesystem

The backing store is a text file with one fingerprint per line inside the
per-application data directory. It is append-only; only reset() removes entries.
"""

import datetime
import hashlib
import logging
import os
import shutil
import sys
import threading
import uuid
from typing import Iterable

from media_converter.config import APP_NAME, CACHE_FILE_NAME, DATA_DIR_ENV, EXPORT_FILE_PREFIX
from media_converter.models import CandidateFile

logger = logging.getLogger(__name__)


def get_data_directory(data_dir: str | None = None) -> str:
    """Resolve the per-application data directory.

    Args:
        data_dir: Explicit directory. Takes precedence over everything else.

    Returns:
        Absolute path of the data directory (not created here).
    """
    if data_dir:
        return os.path.abspath(data_dir)
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return os.path.abspath(env_dir)
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return os.path.join(base, APP_NAME)


def compute_fingerprint(text: str) -> str:
    """Compute an uppercase hex SHA-256 digest of a string.

    Args:
        text: Identity string (name and size, optionally mtime)

    Returns:
        64-character uppercase hex string
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest().upper()


def _format_mtime(mtime: float) -> str:
    # Whole seconds in UTC, so float precision and local timezone never change the key
    return datetime.datetime.fromtimestamp(int(mtime), tz=datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def strict_fingerprint(file: CandidateFile) -> str:
    """Fingerprint over name, byte length and modification time."""
    return compute_fingerprint(f"{file.name}{file.size_bytes}{_format_mtime(file.mtime)}")


def loose_fingerprint(file: CandidateFile) -> str:
    """Fingerprint over name and byte length only."""
    return compute_fingerprint(f"{file.name}{file.size_bytes}")


class FingerprintCache:
    """Thread-safe, lazily loaded fingerprint set backed by an append-only file.

    Provides:
    - Lazy loading from disk on first query (at most once per instance)
    - Dual-key lookup (strict and loose) for candidate files
    - Serialized appends, so a single writer is guaranteed even if discovery
      runs on another thread

    Usage:
        cache = FingerprintCache()
        if not cache.contains_file(candidate):
            ...convert...
            cache.record(CandidateFile.from_path(candidate.path))
    """

    def __init__(self, data_dir: str | None = None):
        self.data_dir = get_data_directory(data_dir)
        self.cache_path = os.path.join(self.data_dir, CACHE_FILE_NAME)
        self._fingerprints: set[str] = set()
        self._lock = threading.RLock()
        self._loaded = False

    def load(self) -> int:
        """Read persisted fingerprints into memory.

        Idempotent: only the first call touches the disk. A missing file is an
        empty cache, and duplicate lines collapse.

        Returns:
            Number of fingerprints in memory.
        """
        with self._lock:
            self._ensure_loaded()
            return len(self._fingerprints)

    def contains(self, fingerprint: str) -> bool:
        """Check a single fingerprint against the in-memory set."""
        with self._lock:
            self._ensure_loaded()
            return fingerprint in self._fingerprints

    def contains_file(self, file: CandidateFile) -> bool:
        """Check both the strict and the loose fingerprint of a file."""
        with self._lock:
            self._ensure_loaded()
            return strict_fingerprint(file) in self._fingerprints or loose_fingerprint(file) in self._fingerprints

    def record(self, file: CandidateFile) -> None:
        """Mark a file as converted.

        Appends the strict fingerprint, and the loose one so a later mtime
        change alone does not cause reconversion. Entries already known are
        not written again.

        Raises:
            OSError: If the cache file cannot be appended to.
        """
        with self._lock:
            self._ensure_loaded()
            keys = (strict_fingerprint(file), loose_fingerprint(file))
            new_entries = [fp for fp in keys if fp not in self._fingerprints]
            if not new_entries:
                return
            self._append(new_entries)
            self._fingerprints.update(new_entries)
            logger.debug(f"Recorded {len(new_entries)} fingerprint(s) for {file.name}")

    def reset(self) -> None:
        """Delete the whole data directory (cache and scratch files) and recreate it empty."""
        with self._lock:
            if os.path.isdir(self.data_dir):
                shutil.rmtree(self.data_dir)
                logger.info(f"Deleted data directory: {self.data_dir}")
            os.makedirs(self.data_dir, exist_ok=True)
            self._fingerprints = set()
            self._loaded = True

    def export(self) -> list[str]:
        """Return a sorted copy of every fingerprint in memory."""
        with self._lock:
            self._ensure_loaded()
            return sorted(self._fingerprints)

    def export_to_file(self, directory: str | None = None) -> str:
        """Write all fingerprints to a uniquely named report file.

        Args:
            directory: Target directory. Defaults to the current working directory.

        Returns:
            Absolute path of the written file.
        """
        target_dir = os.path.abspath(directory or os.getcwd())
        report_path = os.path.join(target_dir, f"{EXPORT_FILE_PREFIX}{uuid.uuid4()}.txt")
        fingerprints = self.export()
        with open(report_path, "w", encoding="utf-8") as f:
            f.writelines(fp + "\n" for fp in fingerprints)
        logger.info(f"Exported {len(fingerprints)} fingerprints to {report_path}")
        return report_path

    def new_temp_path(self, extension: str) -> str:
        """Get a fresh scratch path inside the data directory for an in-progress output."""
        os.makedirs(self.data_dir, exist_ok=True)
        return os.path.join(self.data_dir, f"{uuid.uuid4().hex}.{extension}")

    def __len__(self) -> int:
        return self.load()

    def _ensure_loaded(self) -> None:
        """Load from disk if not already loaded."""
        if not self._loaded:
            self._fingerprints = self._load_from_disk()
            self._loaded = True

    def _load_from_disk(self) -> set[str]:
        if not os.path.exists(self.cache_path):
            logger.info(f"Fingerprint cache not found, starting fresh: {self.cache_path}")
            return set()
        with open(self.cache_path, encoding="utf-8") as f:
            fingerprints = {line.strip() for line in f if line.strip()}
        logger.info(f"Loaded {len(fingerprints)} fingerprints from {self.cache_path}")
        return fingerprints

    def _append(self, entries: Iterable[str]) -> None:
        os.makedirs(self.data_dir, exist_ok=True)
        with open(self.cache_path, "a", encoding="utf-8") as f:
            f.writelines(entry + "\n" for entry in entries)
