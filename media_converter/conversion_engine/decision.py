# media_converter/conversion_engine/decision.py
"""
Decides whether a candidate file is already converted (skip) or must be converted.

Checks escalate from cheapest to most expensive and stop at the first
one that settles the question:

1. extension gate: only files already carrying the output extension can be "done"
2. fingerprint cache: strict or loose fingerprint present
3. footer marker (optional): muxer signature + provenance tag near the end of the file
4. codec probe (optional): a stream of the target category uses the target codec

Files confirmed by tiers 3 and 4 are recorded in the cache so later runs stop at tier 2.
"""

import logging
from typing import Callable, Protocol

from media_converter.config import APP_NAME
from media_converter.exceptions import ProbeFailure
from media_converter.ffmpeg.footer import has_valid_footer
from media_converter.fingerprint_cache import FingerprintCache
from media_converter.models import CandidateFile, ConverterOptions, Decision, MediaStream, TargetFormatProfile, Verdict

logger = logging.getLogger(__name__)


class MediaProber(Protocol):
    def probe(self, path: str) -> list[MediaStream]: ...


class DecisionEngine:
    """Answers "is this file already converted?" for one target profile."""

    def __init__(
        self,
        profile: TargetFormatProfile,
        cache: FingerprintCache,
        options: ConverterOptions,
        prober: MediaProber | None = None,
        footer_check: Callable[[str, str, str], bool] = has_valid_footer,
    ):
        if options.check_codec and prober is None:
            raise ValueError("check_codec requires a prober")
        self.profile = profile
        self.cache = cache
        self.options = options
        self.prober = prober
        self.footer_check = footer_check

    def decide(self, file: CandidateFile) -> Decision:
        """Run the tiers for one file.

        Args:
            file: The candidate to check.

        Returns:
            Decision with Verdict.CONVERT, or one of the SKIP_* verdicts. For
            SKIP_BAD the probe error is attached.
        """
        if not self.profile.matches_output(file.name):
            return Decision(Verdict.CONVERT, "Source format differs from target")

        if self.cache.contains_file(file):
            return Decision(Verdict.SKIP_CACHED, "Fingerprint found in cache")

        if self.options.check_footer and self.footer_check(file.path, self.options.footer_marker, APP_NAME):
            self._mark_converted(file)
            return Decision(Verdict.SKIP_FOOTER, "Footer marker found")

        if not self.options.check_codec:
            return Decision(Verdict.CONVERT, "Not in cache")

        try:
            streams = self.prober.probe(file.path)
        except ProbeFailure as e:
            logger.warning(f"Probe failed for {file.name}: {e}")
            if self.options.mark_bad_as_completed:
                self._mark_converted(file)
            return Decision(Verdict.SKIP_BAD, "Probe failed", error=e)

        category = self.profile.category.value
        if any(s.codec_type == category and s.codec_name == self.profile.target_codec for s in streams):
            self._mark_converted(file)
            return Decision(Verdict.SKIP_CODEC, f"Already {self.profile.target_codec}")
        return Decision(Verdict.CONVERT, f"No {category} stream with codec {self.profile.target_codec}")

    def _mark_converted(self, file: CandidateFile) -> None:
        """Promote a file to the fast path; a failed append only costs a re-check next run."""
        try:
            self.cache.record(file)
        except OSError:
            logger.exception(f"Failed to record fingerprint for {file.name}")
