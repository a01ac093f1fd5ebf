# media_converter/media_types.py
"""
Known audio/video containers and resolution of the Target Format Profile.
"""

import logging

from media_converter.exceptions import UnsupportedFormat
from media_converter.models import MediaCategory, TargetFormatProfile

logger = logging.getLogger(__name__)

# Container extension -> codec expected in a file this application produced
VIDEO_FORMATS: dict[str, str] = {
    "mp4": "h264",
    "mkv": "h264",
    "avi": "mpeg4",
    "flv": "flv1",
    "mov": "h264",
    "wmv": "wmv3",
    "webm": "vp9",
    "ts": "h264",
    "mpg": "mpeg2video",
}

AUDIO_FORMATS: dict[str, str] = {
    "mp3": "mp3",
    "m4a": "aac",
    "wav": "pcm_s16le",
    "flac": "flac",
    "ogg": "vorbis",
}

_TABLES: dict[MediaCategory, dict[str, str]] = {
    MediaCategory.VIDEO: VIDEO_FORMATS,
    MediaCategory.AUDIO: AUDIO_FORMATS,
}


def normalize_format(output_format: str) -> str:
    """Strip dots and whitespace and lowercase an extension ("  .MP4" -> "mp4")."""
    return (output_format or "").replace(".", "").strip().lower()


def resolve_target_profile(output_format: str) -> TargetFormatProfile:
    """Resolve the requested output extension into a TargetFormatProfile.

    Args:
        output_format: Requested extension, case-insensitive, with or without leading dot.

    Returns:
        The immutable profile for the run.

    Raises:
        UnsupportedFormat: If the extension is in neither the video nor the audio table.
    """
    normalized = normalize_format(output_format)
    for category, table in _TABLES.items():
        if normalized in table:
            profile = TargetFormatProfile(
                output_format=normalized,
                category=category,
                target_codec=table[normalized],
                input_formats=tuple(table),
            )
            logger.debug(f"Resolved target profile: {profile}")
            return profile
    raise UnsupportedFormat(output_format)
