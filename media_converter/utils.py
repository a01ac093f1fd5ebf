# media_converter/utils.py
"""
Small helpers shared by the ffmpeg layer and the conversion worker.
"""

import subprocess
import sys
from typing import Any

_SIZE_UNITS = ("KB", "MB", "GB")


def get_windows_subprocess_startupinfo() -> tuple[Any, int]:
    """Startup info and creation flags that keep ffmpeg/ffprobe from opening console windows.

    Returns:
        (startupinfo, creationflags); (None, 0) outside Windows.
    """
    if sys.platform != "win32":
        return None, 0
    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return startupinfo, subprocess.CREATE_NO_WINDOW


def format_time(seconds: float) -> str:
    """Render a duration as "h:mm:ss", or "m:ss" below one hour."""
    if seconds is None or seconds < 0:
        return "--:--:--"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_file_size(size_bytes: int) -> str:
    """Render a byte count with a binary unit, keeping the sign (reclaimed space can be negative)."""
    if size_bytes is None:
        return "-"
    sign = "-" if size_bytes < 0 else ""
    value = abs(size_bytes)
    if value < 1024:
        return f"{sign}{value} B"
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{sign}{value:.2f} {unit}"


def percent_of(part: int, whole: int) -> int:
    """Integer percentage of part relative to whole, 0 when whole is not positive."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole)
