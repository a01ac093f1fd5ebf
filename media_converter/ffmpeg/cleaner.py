# media_converter/ffmpeg/cleaner.py
"""
Utility functions for cleaning up scratch files left by interrupted conversions.
"""

import logging
from pathlib import Path

from media_converter.config import CACHE_FILE_NAME

logger = logging.getLogger(__name__)


def purge_temp_files(data_dir: str) -> int:
    """Delete leftover temporary outputs from the data directory.

    The fingerprint cache file is never touched, and subdirectories are left alone.

    Args:
        data_dir: The per-application data directory.

    Returns:
        Number of files successfully removed.
    """
    base_path = Path(data_dir)
    if not base_path.is_dir():
        logger.debug(f"No data directory to clean: {data_dir}")
        return 0

    cleaned_count = 0
    for item in base_path.iterdir():
        if CACHE_FILE_NAME in item.name.lower() or not item.is_file():
            continue
        try:
            item.unlink()
            logger.debug(f"Removed temp file: {item}")
            cleaned_count += 1
        except OSError as e:
            logger.warning(f"Failed to remove temporary file {item}: {e}")

    if cleaned_count > 0:
        logger.info(f"Removed {cleaned_count} leftover temporary file(s) from {data_dir}.")
    return cleaned_count
