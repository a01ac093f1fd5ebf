#!/usr/bin/env python3
"""
Media Converter - Main Launcher

Runs the command-line front end from the media_converter package without installing it.
"""
import os
import sys
import traceback

# Main entry point
if __name__ == "__main__":
    # Add the current directory to the Python path
    current_dir = os.path.dirname(os.path.abspath(__file__))
    if current_dir not in sys.path:
        sys.path.insert(0, current_dir)

    try:
        from media_converter.main import main
    except ImportError as e:
        print(f"Error importing the application: {str(e)}", file=sys.stderr)
        print("\nPlease make sure you have:", file=sys.stderr)
        print("- Python 3.10 or higher", file=sys.stderr)
        print("- FFmpeg and FFprobe on PATH (or use --ffmpeg-dir)", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)
    sys.exit(main())
