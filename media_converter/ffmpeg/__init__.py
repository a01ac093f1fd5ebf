"""
Package for interacting with the ffmpeg and ffprobe executables.
"""
# Make key components easily accessible
from .cleaner import purge_temp_files
from .footer import has_valid_footer
from .locator import get_ffmpeg_path, get_ffprobe_path
from .parser import FFmpegProgressParser
from .probe import FFprobe
from .wrapper import FFmpegWrapper
