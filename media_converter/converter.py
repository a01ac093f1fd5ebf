# media_converter/converter.py
"""
MediaConverter facade: wires profile, cache, decision engine, discovery and
the conversion worker together for one input directory and one output format.
"""

import logging
import os
import threading
from typing import Iterator

from media_converter.config import APP_NAME, DEFAULT_LIMIT, PROVENANCE_VALUE
from media_converter.conversion_engine import ConversionOrchestrator, DecisionEngine, iter_conversion_candidates
from media_converter.conversion_engine.decision import MediaProber
from media_converter.conversion_engine.worker import Transcoder
from media_converter.events import EventLog
from media_converter.exceptions import ConfigurationError
from media_converter.ffmpeg import FFmpegWrapper, FFprobe
from media_converter.fingerprint_cache import FingerprintCache
from media_converter.media_types import resolve_target_profile
from media_converter.models import (
    CandidateFile,
    ConversionParameters,
    ConverterOptions,
    OrchestratorState,
    RunMetrics,
)

logger = logging.getLogger(__name__)


class MediaConverter:
    """Batch converter for every supported file below one directory.

    The output format is resolved before anything touches the filesystem, so
    an unknown extension fails fast. The ffmpeg wrapper is created on the first
    conversion; scanning and cache maintenance work without ffmpeg installed.

    Usage:
        converter = MediaConverter("/media/videos", "mp4", ConverterOptions(check_footer=True))
        converter.events.subscribe(print)
        converter.convert_files(limit=10)
    """

    def __init__(
        self,
        input_directory: str,
        output_format: str,
        options: ConverterOptions | None = None,
        events: EventLog | None = None,
        transcoder: Transcoder | None = None,
        prober: MediaProber | None = None,
    ):
        """
        Args:
            input_directory: Root of the tree to convert.
            output_format: Requested output extension, e.g. "mp4" or ".MP3".
            options: Run switches; defaults to the cache-only fast mode.
            events: Event log to publish to; a new one is created if omitted.
            transcoder: Replaces the ffmpeg wrapper (tests, other engines).
            prober: Replaces ffprobe for the codec tier.

        Raises:
            UnsupportedFormat: If output_format is not a known container.
            ConfigurationError: If the input directory is blank or missing,
                or the codec tier is on and ffprobe cannot be found.
        """
        self.profile = resolve_target_profile(output_format)

        if not input_directory or not input_directory.strip():
            raise ConfigurationError("Input directory is not set", error_type="missing_input_directory")
        if not os.path.isdir(input_directory):
            raise ConfigurationError(
                f"Input directory does not exist: {input_directory}", error_type="missing_input_directory"
            )
        self.input_directory = os.path.abspath(input_directory)

        self.options = options or ConverterOptions()
        self.cache = FingerprintCache(self.options.data_dir)
        self.events = events or EventLog()
        self.metrics = RunMetrics()
        self.stop_event = threading.Event()

        if self.options.check_codec and prober is None:
            prober = FFprobe(self.options.ffmpeg_dir)
        self.decision_engine = DecisionEngine(self.profile, self.cache, self.options, prober=prober)

        self.parameters = ConversionParameters(
            ignore_errors=self.options.ignore_errors,
            copy_codec=self.options.copy_codec,
            metadata_tag=(APP_NAME, PROVENANCE_VALUE),
        )
        self._transcoder = transcoder
        self._input_files: list[CandidateFile] | None = None
        self._orchestrator: ConversionOrchestrator | None = None
        self._state = OrchestratorState.IDLE

        logger.info(
            f"MediaConverter ready: {self.input_directory} -> .{self.profile.output_format} "
            f"({self.profile.category.value}, codec {self.profile.target_codec}), data dir {self.cache.data_dir}"
        )

    @property
    def state(self) -> OrchestratorState:
        if self._orchestrator is not None:
            return self._orchestrator.state
        return self._state

    def stop(self) -> None:
        """Request cooperative cancellation of the scan or conversion in progress."""
        logger.info("Stop requested")
        self.stop_event.set()

    def iter_candidates(self, stop_event: threading.Event | None = None) -> Iterator[CandidateFile]:
        """Start a fresh lazy walk over the input directory."""
        return iter_conversion_candidates(
            self.input_directory,
            self.profile.input_formats,
            self.decision_engine,
            self.metrics,
            self.events,
            stop_event=stop_event or self.stop_event,
        )

    def find_input_files(self, stop_event: threading.Event | None = None) -> list[CandidateFile]:
        """Run discovery to completion and keep the result for the next convert_files() call.

        Knowing the total up front lets the worker show "(i/N)" per file.
        """
        self._orchestrator = None
        self._state = OrchestratorState.SCANNING
        self.events.info(f"Searching {self.profile.category.value} files in {self.input_directory}")
        self._input_files = list(self.iter_candidates(stop_event))
        self.events.info(f"Found supported input files: {len(self._input_files)}")
        self._state = OrchestratorState.IDLE
        return list(self._input_files)

    def convert_files(self, limit: int = DEFAULT_LIMIT, stop_event: threading.Event | None = None) -> RunMetrics:
        """Convert every candidate, or the ones found by find_input_files() if it ran.

        Args:
            limit: Stop after this many converted files (<= 0 means no limit).
            stop_event: Cancellation signal; defaults to the converter's own (see stop()).

        Returns:
            Metrics accumulated over the lifetime of this converter.

        Raises:
            ConfigurationError: If ffmpeg cannot be found. Raised before the loop starts.
        """
        stop_event = stop_event or self.stop_event
        transcoder = self._get_transcoder()

        if self._input_files is not None:
            candidates = self._input_files
            total = len(candidates)
            self._input_files = None
        else:
            candidates = self.iter_candidates(stop_event)
            total = None

        self._orchestrator = ConversionOrchestrator(
            self.profile,
            self.cache,
            transcoder,
            self.parameters,
            self.events,
            self.metrics,
            stop_event=stop_event,
            root_directory=self.input_directory,
        )
        return self._orchestrator.run(candidates, limit=limit, total=total)

    def reset_cache(self) -> None:
        """Forget every fingerprint and wipe the scratch area. Destructive."""
        self.cache.reset()
        self.events.info(f"Fingerprint cache reset: {self.cache.data_dir}")

    def export_fingerprints(self) -> list[str]:
        return self.cache.export()

    def export_to_file(self, directory: str | None = None) -> str:
        """Write all fingerprints to export_<uuid>.txt (working directory by default)."""
        path = self.cache.export_to_file(directory)
        self.events.info(f"Exported: {path}")
        return path

    def _get_transcoder(self) -> Transcoder:
        if self._transcoder is None:
            self._transcoder = FFmpegWrapper(self.options.ffmpeg_dir)
        return self._transcoder
