# media_converter/main.py
"""
Command-line front end for the Media Converter.
Defines the main() function to be called by the launcher and the console script.
"""

import argparse
import logging
import signal
import sys

from media_converter import __version__
from media_converter.config import DEFAULT_FOOTER_MARKER, DEFAULT_LIMIT, EXIT_CONFIGURATION_ERROR, EXIT_OK
from media_converter.converter import MediaConverter
from media_converter.exceptions import ConfigurationError
from media_converter.fingerprint_cache import FingerprintCache
from media_converter.logging_setup import setup_logging
from media_converter.models import ConverterOptions, LogEvent

logger = logging.getLogger(__name__)


class ConsolePrinter:
    """Event listener writing events to stdout, progress updates on a single line."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._progress_open = False

    def __call__(self, event: LogEvent) -> None:
        if event.percent is not None:
            self.stream.write(f"\r{event.message}")
            self._progress_open = True
        else:
            if self._progress_open:
                self.stream.write("\n")
                self._progress_open = False
            self.stream.write(f"{event}\n")
        self.stream.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-converter",
        description="Convert every audio or video file below a directory to one container format, "
        "skipping files already converted by earlier runs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  media-converter -i /media/videos -o mp4
  media-converter -i /media/music -o mp3 --check-codec --mark-bad-as-completed
  media-converter -i . -o mkv --copy-codec --limit 10
  media-converter --export
""",
    )
    parser.add_argument("-i", "--input-directory", default=".", help="Directory to convert (default: current)")
    parser.add_argument("-o", "--output-format", help="Target container extension, e.g. mp4, mkv, mp3")
    parser.add_argument("--ignore-errors", action="store_true", help="Let ffmpeg ignore decoding errors")
    parser.add_argument("--check-codec", action="store_true", help="Probe files with ffprobe to detect converted ones")
    parser.add_argument("--check-footer", action="store_true", help="Look for the converter marker near file ends")
    parser.add_argument(
        "--footer-marker", default=DEFAULT_FOOTER_MARKER, help=f"Marker for --check-footer (default: {DEFAULT_FOOTER_MARKER})"
    )
    parser.add_argument("--copy-codec", action="store_true", help="Remux only, copy streams without re-encoding")
    parser.add_argument(
        "--mark-bad-as-completed", action="store_true", help="Remember unreadable files so they are never probed again"
    )
    parser.add_argument("--reset-cache", action="store_true", help="Delete all stored fingerprints before running")
    parser.add_argument("--export", action="store_true", help="Write stored fingerprints to export_<id>.txt and exit")
    parser.add_argument("--calculate-count", action="store_true", help="Scan the whole tree first to show (i/N) counters")
    parser.add_argument("--scan-only", action="store_true", help="Only report how many files need conversion")
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Stop after N converted files (default: no limit)")
    parser.add_argument("--log-dir", help="Directory for log files (default: logs/ next to the script)")
    parser.add_argument("--ffmpeg-dir", help="Directory containing ffmpeg and ffprobe")
    parser.add_argument("--data-dir", help="Directory for the fingerprint cache and scratch files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show log messages on the console")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv=None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.output_format and not (args.export or args.reset_cache):
        parser.error("the following arguments are required: -o/--output-format")
    return args


def options_from_args(args: argparse.Namespace) -> ConverterOptions:
    return ConverterOptions(
        ignore_errors=args.ignore_errors,
        check_codec=args.check_codec,
        check_footer=args.check_footer,
        copy_codec=args.copy_codec,
        mark_bad_as_completed=args.mark_bad_as_completed,
        footer_marker=args.footer_marker,
        data_dir=args.data_dir,
        ffmpeg_dir=args.ffmpeg_dir,
    )


def run(args: argparse.Namespace, printer=None) -> int:
    """Execute the requested action.

    Returns:
        Process exit code.

    Raises:
        ConfigurationError: Propagated to main() for reporting.
    """
    printer = printer or ConsolePrinter()

    if args.reset_cache or args.export:
        cache = FingerprintCache(args.data_dir)
        if args.reset_cache:
            cache.reset()
            print(f"Fingerprint cache reset: {cache.data_dir}")
        if args.export:
            print(f"Exported: {cache.export_to_file()}")
            return EXIT_OK
        if not args.output_format:
            return EXIT_OK

    converter = MediaConverter(args.input_directory, args.output_format, options_from_args(args))
    converter.events.subscribe(printer)

    def handle_sigint(signum, frame):
        print("\nStop requested, finishing current step...", file=sys.stderr)
        converter.stop()

    previous_handler = signal.signal(signal.SIGINT, handle_sigint)
    try:
        if args.scan_only or args.calculate_count:
            files = converter.find_input_files()
            if args.scan_only:
                print(f"Files to convert: {len(files)}")
                return EXIT_OK
        converter.convert_files(limit=args.limit)
    finally:
        signal.signal(signal.SIGINT, previous_handler)
    return EXIT_OK


def main(argv=None) -> int:
    """Parses arguments, sets up logging and runs the converter."""
    args = parse_args(argv)

    log_dir = setup_logging(args.log_dir, console_level=logging.INFO if args.verbose else logging.ERROR)
    logger.info("=== Starting Media Converter ===")
    if log_dir:
        logger.info(f"Log directory: {log_dir}")
    logger.info(f"System: {sys.platform}, Python: {sys.version}")

    try:
        return run(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
