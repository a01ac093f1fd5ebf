# media_converter/config.py
"""
Central configuration constants for the Media Converter application.
"""

import sys

# --- Application Identity ---
APP_NAME = "MediaConverter"  # Data directory name and provenance metadata key
PROVENANCE_VALUE = "True"  # Written as "-metadata MediaConverter=True" into every output

# --- Fingerprint Cache ---
CACHE_FILE_NAME = "media_converter_hashes.txt"  # One fingerprint per line, append-only
EXPORT_FILE_PREFIX = "export_"  # export_<uuid>.txt written to the working directory

# --- Environment Overrides ---
DATA_DIR_ENV = "MEDIA_CONVERTER_DATA_DIR"  # Overrides the per-application data directory
FFMPEG_DIR_ENV = "MEDIA_CONVERTER_FFMPEG_DIR"  # Directory holding ffmpeg/ffprobe executables

# --- Footer Marker Check ---
DEFAULT_FOOTER_MARKER = "Lavf58.45.100"  # Muxer signature expected near the end of converted files
FOOTER_SCAN_BYTES = 64 * 1024  # Trailing window searched for the marker

# --- Discovery ---
SKIP_LOG_INTERVAL = 100  # Emit a progress event every N skipped files

# --- Conversion ---
DEFAULT_LIMIT = -1  # No limit on converted files
PROBE_TIMEOUT_SECONDS = 60  # ffprobe timeout per file
PROCESS_TERMINATE_GRACE_SECONDS = 5  # Wait after terminate() before kill()
STAGING_PREFIX = ".media-converter-"  # Hidden name used while swapping the output into place

# --- Executables ---
FFMPEG_EXE_NAME = "ffmpeg.exe" if sys.platform == "win32" else "ffmpeg"
FFPROBE_EXE_NAME = "ffprobe.exe" if sys.platform == "win32" else "ffprobe"

# --- Exit Codes ---
EXIT_OK = 0
EXIT_CONFIGURATION_ERROR = 2
