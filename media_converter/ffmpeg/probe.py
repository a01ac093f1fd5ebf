# media_converter/ffmpeg/probe.py
"""
Media inspection through ffprobe.
"""

import json
import logging
import os
import subprocess

from media_converter.config import PROBE_TIMEOUT_SECONDS
from media_converter.exceptions import ConfigurationError, ProbeFailure
from media_converter.models import MediaStream
from media_converter.utils import get_windows_subprocess_startupinfo

from .locator import get_ffprobe_path

logger = logging.getLogger(__name__)


def parse_streams(probe_output: dict) -> list[MediaStream]:
    """Turn ffprobe JSON ("-show_streams") into MediaStream objects."""
    streams = []
    for position, stream in enumerate(probe_output.get("streams", [])):
        streams.append(
            MediaStream(
                index=stream.get("index", position),
                codec_type=stream.get("codec_type", "unknown"),
                codec_name=stream.get("codec_name"),
            )
        )
    return streams


class FFprobe:
    """Media-inspection collaborator backed by ffprobe."""

    def __init__(self, ffmpeg_dir: str | None = None, timeout: int = PROBE_TIMEOUT_SECONDS):
        """Find the executable.

        Raises:
            ConfigurationError: If ffprobe cannot be found.
        """
        ffprobe_path = get_ffprobe_path(ffmpeg_dir)
        if ffprobe_path is None:
            raise ConfigurationError(
                "ffprobe executable not found (set --ffmpeg-dir or add it to PATH)", error_type="executable_not_found"
            )
        self.executable_path = str(ffprobe_path)
        self.timeout = timeout

    def probe(self, path: str) -> list[MediaStream]:
        """List the streams of a media file.

        Args:
            path: File to inspect.

        Returns:
            All streams reported by ffprobe.

        Raises:
            ProbeFailure: If ffprobe fails, times out, prints invalid JSON or finds no streams.
        """
        name = os.path.basename(path)
        cmd = [self.executable_path, "-v", "quiet", "-print_format", "json", "-show_streams", path]
        try:
            startupinfo, _ = get_windows_subprocess_startupinfo()
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                startupinfo=startupinfo,
                encoding="utf-8",
                timeout=self.timeout,
            )
            streams = parse_streams(json.loads(result.stdout or "{}"))
        except subprocess.TimeoutExpired as e:
            raise ProbeFailure(f"ffprobe timed out after {self.timeout}s", path=path, error_type="timeout") from e
        except subprocess.CalledProcessError as e:
            raise ProbeFailure(f"ffprobe exited with code {e.returncode}", path=path) from e
        except json.JSONDecodeError as e:
            raise ProbeFailure("ffprobe returned invalid JSON", path=path, error_type="invalid_json") from e
        except OSError as e:
            raise ProbeFailure(f"ffprobe could not be run: {e}", path=path, error_type="process_error") from e

        if not streams:
            raise ProbeFailure("No media streams found", path=path, error_type="no_streams")
        logger.debug(f"Probed {name}: {[(s.codec_type, s.codec_name) for s in streams]}")
        return streams
