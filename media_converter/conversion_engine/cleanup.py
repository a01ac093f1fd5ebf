# media_converter/conversion_engine/cleanup.py
"""
Contains cleanup functions related to the conversion process,
like purging scratch files from interrupted runs.
"""

import logging

from media_converter.ffmpeg.cleaner import purge_temp_files

logger = logging.getLogger(__name__)


def purge_scratch_area(data_dir: str) -> int:
    """Purge temporary outputs left in the data directory by earlier runs.

    Called once before the conversion loop starts. The fingerprint cache
    file in the same directory is preserved. Errors are logged, never raised.

    Args:
        data_dir: The per-application data directory.

    Returns:
        Number of files removed.
    """
    try:
        return purge_temp_files(data_dir)
    except OSError as e:
        logger.warning(f"Error occurred during scratch cleanup in {data_dir}: {e!s}", exc_info=True)
        return 0
