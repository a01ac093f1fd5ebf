# media_converter/ffmpeg/parser.py
"""
Parses the merged stdout/stderr stream of an ffmpeg run started with
"-progress pipe:1" into whole-percent progress values.
"""

import logging
import re

logger = logging.getLogger(__name__)


class FFmpegProgressParser:
    """Tracks input duration and output time to compute conversion progress.

    The input duration comes from the banner line "Duration: HH:MM:SS.xx";
    the position comes from the "out_time_us=" (or legacy "out_time_ms=", also
    in microseconds) keys of the progress block. "progress=end" means 100%.
    """

    def __init__(self):
        self._re_duration = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
        self._re_out_time = re.compile(r"^out_time_(?:us|ms)=(\d+)$")
        self._re_progress_end = re.compile(r"^progress=end$")
        self.duration_seconds: float | None = None
        self.percent: int | None = None

    def parse_line(self, line: str) -> int | None:
        """Feed one output line.

        Args:
            line: A single stripped output line.

        Returns:
            The current percentage (0-100) if this line changed it, otherwise None.
        """
        match = self._re_duration.search(line)
        if match and self.duration_seconds is None:
            hours, minutes, seconds = match.groups()
            self.duration_seconds = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
            logger.debug(f"Input duration: {self.duration_seconds:.2f}s")
            return None

        if self._re_progress_end.match(line):
            return self._update(100)

        match = self._re_out_time.match(line)
        if match and self.duration_seconds:
            position_seconds = int(match.group(1)) / 1_000_000
            return self._update(min(100, int(position_seconds * 100 / self.duration_seconds)))
        return None

    def _update(self, percent: int) -> int | None:
        if percent == self.percent:
            return None
        self.percent = percent
        return percent
