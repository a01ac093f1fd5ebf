# media_converter/exceptions.py
"""
Custom exceptions for the Media Converter application.
"""


class ConverterError(Exception):
    """Base exception for media converter errors"""

    def __init__(self, message, error_type=None):
        self.message = message
        self.error_type = error_type
        super().__init__(self.message)


class ConfigurationError(ConverterError):
    """Fatal misconfiguration detected before a run starts."""


class UnsupportedFormat(ConfigurationError):
    """The requested output extension is not a known audio or video container."""

    def __init__(self, output_format):
        super().__init__(f"Output media type is not supported: {output_format}", error_type="unsupported_format")
        self.output_format = output_format


class ProbeFailure(ConverterError):
    """The media-inspection tool could not read a file."""

    def __init__(self, message, path=None, error_type="probe_failed"):
        super().__init__(message, error_type=error_type)
        self.path = path


class ConversionFailure(ConverterError):
    """The transcoding engine failed or the converted file could not be put in place."""

    def __init__(self, message, command=None, output=None, error_type="conversion_failed"):
        super().__init__(message, error_type=error_type)
        self.command = command
        self.output = output


class CancellationRequested(Exception):
    """Raised when the stop event fires while an item is in flight. Not an error."""
