# media_converter/conversion_engine/worker.py
"""
Contains the sequential conversion worker.

One candidate at a time: transcode into the scratch area, swap the result
into place, record its fingerprint and update the run metrics. A failing
file is logged and counted; it never stops the run. A stop request ends the
loop without committing the in-flight file.
"""

import contextlib
import logging
import os
import shutil
import threading
import time
import uuid
from typing import Callable, Iterable, Protocol

from media_converter.config import STAGING_PREFIX
from media_converter.events import EventLog
from media_converter.exceptions import CancellationRequested, ConversionFailure, ConverterError
from media_converter.fingerprint_cache import FingerprintCache
from media_converter.models import (
    CandidateFile,
    ConversionParameters,
    OrchestratorState,
    RunMetrics,
    TargetFormatProfile,
)
from media_converter.utils import format_file_size, format_time, percent_of

from .cleanup import purge_scratch_area

logger = logging.getLogger(__name__)


class Transcoder(Protocol):
    def convert(
        self,
        source: str,
        destination: str,
        parameters: ConversionParameters,
        progress_callback: Callable[[int], None] | None = None,
        stop_event: threading.Event | None = None,
    ) -> None: ...


def format_summary(metrics: RunMetrics) -> str:
    """Build the end-of-run summary line."""
    return (
        f"Done. Processed {metrics.processed} files. Compressed {format_file_size(metrics.bytes_reclaimed)}. "
        f"Errors: {metrics.errors}. Skipped: {metrics.skipped}. Elapsed: {format_time(metrics.elapsed_seconds)}"
    )


class ConversionOrchestrator:
    """Drives the per-file conversion loop: Idle -> Converting -> Completed."""

    def __init__(
        self,
        profile: TargetFormatProfile,
        cache: FingerprintCache,
        transcoder: Transcoder,
        parameters: ConversionParameters,
        events: EventLog,
        metrics: RunMetrics,
        stop_event: threading.Event | None = None,
        root_directory: str | None = None,
    ):
        self.profile = profile
        self.cache = cache
        self.transcoder = transcoder
        self.parameters = parameters
        self.events = events
        self.metrics = metrics
        self.stop_event = stop_event or threading.Event()
        self.root_directory = root_directory
        self.state = OrchestratorState.IDLE
        self._last_percent: int | None = None

    def run(self, candidates: Iterable[CandidateFile], limit: int = -1, total: int | None = None) -> RunMetrics:
        """Convert candidates in order until exhausted, limit reached or stopped.

        Args:
            candidates: Files to convert, typically a lazy discovery sequence.
            limit: Stop after this many successful conversions (<= 0 means no limit).
            total: Known number of candidates, shown as "(i/N)" per file.

        Returns:
            The run metrics, also summarized in the final event.
        """
        purge_scratch_area(self.cache.data_dir)
        self.state = OrchestratorState.CONVERTING
        self.events.info(f"Supported input media types: {', '.join(self.profile.input_formats)}")

        try:
            self._process_candidates(candidates, limit, total)
        finally:
            if self.stop_event.is_set():
                logger.info("Conversion interrupted by user stop request.")
            self.state = OrchestratorState.COMPLETED
            self.events.info(format_summary(self.metrics))
        return self.metrics

    def _process_candidates(self, candidates: Iterable[CandidateFile], limit: int, total: int | None) -> None:
        processed_before = self.metrics.processed
        current_directory = None
        index = 0
        for candidate in candidates:
            if self.stop_event.is_set():
                break
            index += 1

            if candidate.directory != current_directory:
                current_directory = candidate.directory
                self.events.info(f"Current directory: {self._display_directory(current_directory)}")

            try:
                self._convert_item(candidate, index, total)
            except CancellationRequested:
                self.events.info(f"Conversion cancelled, {candidate.name} left unchanged")
                break
            except (ConverterError, OSError) as e:
                self.metrics.errors += 1
                self.events.error(f"Error when file converting - {candidate.name}", e)
            except Exception as e:
                logger.exception(f"Unexpected error converting {candidate.name}")
                self.metrics.errors += 1
                self.events.error(f"Error when file converting - {candidate.name}", e)

            if 0 < limit <= self.metrics.processed - processed_before:
                logger.info(f"Limit of {limit} converted files reached")
                break
            if self.stop_event.is_set():
                break

    def _convert_item(self, candidate: CandidateFile, index: int, total: int | None) -> None:
        start_time = time.monotonic()
        counter = f" ({index}/{total})" if total else ""
        self.events.info(f"File: {candidate.name}{counter}")

        destination = self._destination_for(candidate)
        self._ensure_destination_free(candidate, destination)

        temp_path = self.cache.new_temp_path(self.profile.output_format)
        self._last_percent = None
        try:
            self.transcoder.convert(
                candidate.path,
                temp_path,
                self.parameters,
                progress_callback=self._on_progress,
                stop_event=self.stop_event,
            )
            # The engine may have finished just as the stop arrived; never commit then
            if self.stop_event.is_set():
                raise CancellationRequested(f"Conversion of {candidate.path} cancelled")
            self._replace_original(candidate, temp_path, destination)
        finally:
            with contextlib.suppress(OSError):
                os.remove(temp_path)

        converted = CandidateFile.from_path(destination)
        elapsed = time.monotonic() - start_time
        reclaimed = self.metrics.record_conversion(candidate.size_bytes, converted.size_bytes, elapsed)
        self.events.info(
            f"Compressed file: {converted.name}, {candidate.size_bytes // 1024 // 1024}Mb => "
            f"{converted.size_bytes // 1024 // 1024}Mb ({percent_of(reclaimed, candidate.size_bytes)}%), "
            f"elapsed: {format_time(elapsed)}"
        )
        try:
            self.cache.record(converted)
        except OSError as e:
            self.metrics.errors += 1
            self.events.error(f"Converted, but fingerprint not saved - {converted.name}", e)

    def _destination_for(self, candidate: CandidateFile) -> str:
        """Output path: the source's stem with the target extension, in the source's directory."""
        stem = os.path.splitext(candidate.name)[0]
        return os.path.join(candidate.directory, f"{stem}.{self.profile.output_format}")

    @staticmethod
    def _ensure_destination_free(candidate: CandidateFile, destination: str) -> None:
        """Refuse to overwrite a file that is not the source itself.

        Raises:
            ConversionFailure: If another file already occupies the output name.
        """
        if os.path.exists(destination) and not os.path.samefile(candidate.path, destination):
            raise ConversionFailure(
                f"Output file exists: {os.path.basename(destination)}", error_type="output_exists"
            )

    def _replace_original(self, candidate: CandidateFile, temp_path: str, destination: str) -> None:
        """Swap the converted output in for the original file.

        The output is staged next to the destination first, so the final
        os.replace is a same-directory rename.

        Raises:
            ConversionFailure: If the output name was taken meanwhile or the
                output cannot be moved into place.
        """
        self._ensure_destination_free(candidate, destination)
        staging = os.path.join(candidate.directory, f"{STAGING_PREFIX}{uuid.uuid4().hex}.{self.profile.output_format}")
        try:
            shutil.move(temp_path, staging)
            os.replace(staging, destination)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.remove(staging)
            raise ConversionFailure(f"Cannot replace {candidate.name}: {e}", error_type="replace_failed") from e

        if os.path.exists(candidate.path) and not os.path.samefile(candidate.path, destination):
            try:
                os.remove(candidate.path)
            except OSError as e:
                self.metrics.errors += 1
                self.events.error(f"Converted, but original could not be removed - {candidate.name}", e)

    def _on_progress(self, percent: int) -> None:
        if percent == self._last_percent:
            return
        self._last_percent = percent
        self.events.progress(percent)

    def _display_directory(self, directory: str) -> str:
        if not self.root_directory:
            return directory
        relative = os.path.relpath(directory, self.root_directory)
        return "" if relative == os.curdir else relative
