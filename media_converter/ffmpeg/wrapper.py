# media_converter/ffmpeg/wrapper.py
"""
Wrapper class for the ffmpeg executable.

Handles building the command line, running ffmpeg, streaming progress to a
callback and cooperative cancellation through a stop event.
Uses a simple blocking read loop over the merged stdout/stderr pipe.
"""

import logging
import os
import subprocess
import threading
from typing import Callable

from media_converter.config import PROCESS_TERMINATE_GRACE_SECONDS
from media_converter.exceptions import CancellationRequested, ConfigurationError, ConversionFailure
from media_converter.models import ConversionParameters
from media_converter.utils import get_windows_subprocess_startupinfo

from .locator import get_ffmpeg_path
from .parser import FFmpegProgressParser

logger = logging.getLogger(__name__)

OUTPUT_TAIL_LINES = 20


def _terminate(process: subprocess.Popen) -> None:
    """Terminate a running process, killing it if it ignores the request."""
    if process.poll() is not None:
        return
    try:
        process.terminate()
        process.wait(timeout=PROCESS_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning(f"ffmpeg process {process.pid} ignored terminate, killing it")
        process.kill()
    except OSError as e:
        logger.debug(f"Error terminating process {process.pid}: {e}")


class FFmpegWrapper:
    """Transcoding collaborator backed by ffmpeg."""

    def __init__(self, ffmpeg_dir: str | None = None):
        """Find the executable and prepare the wrapper.

        Raises:
            ConfigurationError: If ffmpeg cannot be found.
        """
        ffmpeg_path = get_ffmpeg_path(ffmpeg_dir)
        if ffmpeg_path is None:
            raise ConfigurationError(
                "ffmpeg executable not found (set --ffmpeg-dir or add it to PATH)", error_type="executable_not_found"
            )
        self.executable_path = str(ffmpeg_path)
        logger.debug(f"FFmpegWrapper init - using executable at: {self.executable_path}")

    @staticmethod
    def build_command(
        executable: str, source: str, destination: str, parameters: ConversionParameters
    ) -> list[str]:
        """Build the ffmpeg argument list for one conversion."""
        cmd = [executable, "-hide_banner", "-nostdin", "-y"]
        if parameters.ignore_errors:
            cmd.extend(["-err_detect", "ignore_err"])
        cmd.extend(["-i", source])
        if parameters.copy_codec:
            cmd.extend(["-c", "copy"])
        if parameters.metadata_tag:
            key, value = parameters.metadata_tag
            cmd.extend(["-metadata", f"{key}={value}"])
        cmd.extend(["-progress", "pipe:1", "-nostats", destination])
        return cmd

    def convert(
        self,
        source: str,
        destination: str,
        parameters: ConversionParameters,
        progress_callback: Callable[[int], None] | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Convert source into destination.

        Args:
            source: Input media path.
            destination: Output path; the extension selects the container.
            parameters: Error tolerance, stream copy and provenance tag.
            progress_callback: Called with a whole percentage whenever it changes.
            stop_event: Set by the caller to request cancellation.

        Raises:
            CancellationRequested: If stop_event was set while ffmpeg was running.
            ConversionFailure: On non-zero exit, missing output or process errors.
        """
        cmd = self.build_command(self.executable_path, source, destination, parameters)
        cmd_str = " ".join(cmd)
        logger.debug(f"Running: {cmd_str}")

        parser = FFmpegProgressParser()
        output_lines: list[str] = []
        process = None
        watcher = None
        finished = threading.Event()

        try:
            startupinfo, creationflags = get_windows_subprocess_startupinfo()
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                universal_newlines=True,
                bufsize=1,
                startupinfo=startupinfo,
                creationflags=creationflags,
                encoding="utf-8",
                errors="replace",
            )
            logger.info(f"ffmpeg process {process.pid} started for {os.path.basename(source)}")

            if stop_event is not None:
                watcher = threading.Thread(
                    target=self._watch_for_stop, args=(process, stop_event, finished), daemon=True
                )
                watcher.start()

            assert process.stdout is not None  # Guaranteed by stdout=PIPE  # noqa: S101
            for raw_line in iter(process.stdout.readline, ""):
                line = raw_line.strip()
                if not line:
                    continue
                output_lines.append(line)
                percent = parser.parse_line(line)
                if percent is not None and progress_callback:
                    progress_callback(percent)
            process.stdout.close()
            return_code = process.wait()
        except FileNotFoundError as e:
            raise ConversionFailure(
                f"Executable not found: {self.executable_path}", command=cmd_str, error_type="executable_not_found"
            ) from e
        except OSError as e:
            raise ConversionFailure(
                f"Failed to start or manage ffmpeg: {e}",
                command=cmd_str,
                output="\n".join(output_lines[-OUTPUT_TAIL_LINES:]),
                error_type="process_management_failed",
            ) from e
        finally:
            if process is not None and process.poll() is None:
                logger.warning("Terminating runaway ffmpeg process after error.")
                _terminate(process)
            finished.set()
            if watcher is not None:
                watcher.join(timeout=1)

        if stop_event is not None and stop_event.is_set():
            logger.info(f"ffmpeg run for {os.path.basename(source)} cancelled (rc={return_code})")
            raise CancellationRequested(f"Conversion of {source} cancelled")

        output_tail = "\n".join(output_lines[-OUTPUT_TAIL_LINES:])
        if return_code != 0:
            last_line = output_lines[-1] if output_lines else "no output"
            raise ConversionFailure(
                f"ffmpeg exited with code {return_code}: {last_line}",
                command=cmd_str,
                output=output_tail,
                error_type="nonzero_exit",
            )
        if not os.path.exists(destination):
            raise ConversionFailure(
                "ffmpeg reported success but the output file is missing",
                command=cmd_str,
                output=output_tail,
                error_type="missing_output_on_success",
            )

    @staticmethod
    def _watch_for_stop(process: subprocess.Popen, stop_event: threading.Event, finished: threading.Event) -> None:
        """Terminate the process as soon as a stop is requested."""
        while not finished.is_set():
            if stop_event.wait(timeout=0.2):
                logger.info(f"Stop requested, terminating ffmpeg process {process.pid}")
                _terminate(process)
                return
