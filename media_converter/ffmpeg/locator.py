# media_converter/ffmpeg/locator.py
"""
Locates the ffmpeg and ffprobe executables.

Lookup order: explicit directory (argument or MEDIA_CONVERTER_FFMPEG_DIR),
then the current working directory when both tools are there, then PATH.
"""

import logging
import os
import shutil
from pathlib import Path

from media_converter.config import FFMPEG_DIR_ENV, FFMPEG_EXE_NAME, FFPROBE_EXE_NAME

logger = logging.getLogger(__name__)


def _override_directory(ffmpeg_dir: str | None) -> Path | None:
    directory = ffmpeg_dir or os.environ.get(FFMPEG_DIR_ENV)
    return Path(directory) if directory else None


def _find_executable(exe_name: str, ffmpeg_dir: str | None) -> Path | None:
    override = _override_directory(ffmpeg_dir)
    if override is not None:
        candidate = override / exe_name
        if candidate.is_file():
            return candidate
        logger.warning(f"{exe_name} not found in configured directory {override}")
        return None

    # Both tools side by side in the working directory win over PATH
    cwd = Path.cwd()
    if (cwd / FFMPEG_EXE_NAME).is_file() and (cwd / FFPROBE_EXE_NAME).is_file():
        return cwd / exe_name

    system_exe = shutil.which(exe_name)
    if system_exe:
        return Path(system_exe)
    return None


def get_ffmpeg_path(ffmpeg_dir: str | None = None) -> Path | None:
    """Get path to ffmpeg.

    Returns:
        Path to ffmpeg executable or None if not found anywhere.
    """
    return _find_executable(FFMPEG_EXE_NAME, ffmpeg_dir)


def get_ffprobe_path(ffmpeg_dir: str | None = None) -> Path | None:
    """Get path to ffprobe.

    Returns:
        Path to ffprobe executable or None if not found anywhere.
    """
    return _find_executable(FFPROBE_EXE_NAME, ffmpeg_dir)
