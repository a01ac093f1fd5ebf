# media_converter/ffmpeg/footer.py
"""
Cheap "already converted" check: look for the muxer signature and the
application's provenance tag in the trailing bytes of a file.
"""

import logging
import os

from media_converter.config import FOOTER_SCAN_BYTES

logger = logging.getLogger(__name__)


def read_tail(path: str, window: int = FOOTER_SCAN_BYTES) -> bytes:
    """Read at most `window` bytes from the end of a file."""
    with open(path, "rb") as f:
        f.seek(0, os.SEEK_END)
        size = f.tell()
        f.seek(max(0, size - window))
        return f.read()


def has_valid_footer(path: str, marker: str, tag: str, window: int = FOOTER_SCAN_BYTES) -> bool:
    """Check whether both the marker and the tag occur in the file's tail.

    Args:
        path: File to inspect.
        marker: Literal signature, e.g. the muxer version "Lavf58.45.100".
        tag: Provenance tag written by this application.
        window: Number of trailing bytes searched.

    Returns:
        True only if both strings are found. Unreadable files return False.
    """
    if not marker:
        return False
    try:
        tail = read_tail(path, window)
    except OSError as e:
        logger.warning(f"Cannot read footer of {os.path.basename(path)}: {e}")
        return False
    return marker.encode("utf-8") in tail and tag.encode("utf-8") in tail
