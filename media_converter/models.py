# media_converter/models.py
"""
Data models for the Media Converter application.

These dataclasses replace ad-hoc dictionaries for type-safe data passing
between discovery, the decision engine and the conversion worker.
"""

import datetime
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from media_converter.config import DEFAULT_FOOTER_MARKER


class MediaCategory(str, Enum):
    """Media category of a container format.

    Inherits from str so it prints and compares like the ffprobe codec_type.
    """

    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class TargetFormatProfile:
    """Everything derived once per run from the requested output extension."""

    output_format: str  # Normalized extension without dot, e.g. "mp4"
    category: MediaCategory
    target_codec: str  # ffprobe codec_name expected in converted files, e.g. "h264"
    input_formats: tuple[str, ...]  # All extensions of the same category (discovery filter)

    def matches_output(self, file_name: str) -> bool:
        """Check whether a file name already carries the output extension."""
        return file_name.lower().endswith("." + self.output_format)


@dataclass(frozen=True)
class CandidateFile:
    """A file found by discovery, identified by path, size and modification time."""

    path: str
    size_bytes: int
    mtime: float

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def directory(self) -> str:
        """Grouping key used for "current directory changed" events."""
        return os.path.dirname(self.path)

    @classmethod
    def from_path(cls, path: str) -> "CandidateFile":
        """Build a candidate from the file currently on disk.

        Raises:
            OSError: If the file cannot be stat'ed.
        """
        stat_info = os.stat(path)
        return cls(path=path, size_bytes=stat_info.st_size, mtime=stat_info.st_mtime)


@dataclass
class MediaStream:
    """One stream reported by the media-inspection tool."""

    index: int
    codec_type: str  # "video", "audio", "subtitle", "data", ...
    codec_name: str | None = None


@dataclass
class ConverterOptions:
    """Run configuration for a MediaConverter.

    Consolidates all switches needed by the decision engine and the worker.
    """

    ignore_errors: bool = False  # Pass "-err_detect ignore_err" to the engine
    check_codec: bool = False  # Enable the (expensive) codec probe tier
    check_footer: bool = False  # Enable the footer marker tier
    copy_codec: bool = False  # Remux only ("-c copy")
    mark_bad_as_completed: bool = False  # Persist fingerprints of files the probe could not read
    footer_marker: str = DEFAULT_FOOTER_MARKER
    data_dir: str | None = None  # None -> per-application data directory
    ffmpeg_dir: str | None = None  # None -> environment / working directory / PATH


@dataclass(frozen=True)
class ConversionParameters:
    """Parameters handed to the transcoding engine for every item."""

    ignore_errors: bool = False
    copy_codec: bool = False
    metadata_tag: tuple[str, str] | None = None  # (key, value) provenance tag


class Verdict(str, Enum):
    """Outcome of the "is this file already done?" check."""

    CONVERT = "convert"
    SKIP_CACHED = "skip_cached"  # Strict or loose fingerprint present in the cache
    SKIP_FOOTER = "skip_footer"  # Footer marker found
    SKIP_CODEC = "skip_codec"  # Probe found the target codec
    SKIP_BAD = "skip_bad"  # Probe could not read the file


@dataclass
class Decision:
    """Verdict plus the probe error when the file could not be inspected."""

    verdict: Verdict
    reason: str = ""
    error: Optional[Exception] = None

    @property
    def skip(self) -> bool:
        return self.verdict != Verdict.CONVERT


class OrchestratorState(str, Enum):
    """Lifecycle of a conversion run."""

    IDLE = "idle"
    SCANNING = "scanning"
    CONVERTING = "converting"
    COMPLETED = "completed"


class EventLevel(str, Enum):
    INFO = "INFO"
    ERROR = "ERROR"


@dataclass
class LogEvent:
    """A single human-readable event published to observers."""

    level: EventLevel
    message: str
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)
    percent: int | None = None  # Set only on progress events

    def __str__(self) -> str:
        return f"[{self.level.value}] {self.timestamp.strftime('%d %b %H:%M:%S')} - {self.message}"


@dataclass
class RunMetrics:
    """Counters accumulated over one run.

    bytes_reclaimed is the sum of (old size - new size) and goes negative
    when converted files grow.
    """

    processed: int = 0
    errors: int = 0
    skipped: int = 0
    bytes_reclaimed: int = 0
    elapsed_seconds: float = 0.0

    def record_conversion(self, old_size: int, new_size: int, elapsed_seconds: float) -> int:
        """Account for one committed conversion and return the bytes reclaimed by it."""
        reclaimed = old_size - new_size
        self.processed += 1
        self.bytes_reclaimed += reclaimed
        self.elapsed_seconds += elapsed_seconds
        return reclaimed
