"""Logging configuration for the Media Converter command line."""

import datetime
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def get_script_directory() -> str:
    """Directory of the running script or frozen executable, falling back to the working directory."""
    if getattr(sys, "frozen", False):
        return os.path.dirname(sys.executable)
    if sys.argv and sys.argv[0]:
        return os.path.dirname(os.path.abspath(sys.argv[0]))
    return os.getcwd()


def _open_log_file(logs_dir: str, formatter: logging.Formatter) -> RotatingFileHandler | None:
    try:
        os.makedirs(logs_dir, exist_ok=True)
        stamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        handler = RotatingFileHandler(
            os.path.join(logs_dir, f"media_converter_{stamp}.log"),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        # Logging is not configured yet, so stderr is the only channel left
        print(f"ERROR: Cannot write log files to '{logs_dir}': {e}", file=sys.stderr)
        return None
    handler.setFormatter(formatter)
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(log_directory: str | None = None, console_level: int = logging.INFO) -> str | None:
    """Send DEBUG and above to a rotating log file and console_level and above to stderr.

    Handlers already attached to the root logger are closed and replaced, so
    calling this twice does not duplicate output.

    Args:
        log_directory: Where log files go. Defaults to a 'logs' folder next to the script.
        console_level: Minimum level shown on the console.

    Returns:
        The log directory in use, or None when only console logging could be set up.
    """
    logs_dir = os.path.abspath(log_directory) if log_directory else os.path.join(get_script_directory(), "logs")
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = _open_log_file(logs_dir, formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for old_handler in list(root_logger.handlers):
        root_logger.removeHandler(old_handler)
        old_handler.close()

    if file_handler is not None:
        root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    return logs_dir if file_handler is not None else None
