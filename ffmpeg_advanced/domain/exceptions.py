"""
Defines custom exception types for the FFmpeg Advanced batch processor.

These exceptions allow for more specific and expressive error handling throughout
the batch pipeline. Every failure that can end an item (or a whole batch) is one of
the four kinds below, so the error isolation layer can treat them uniformly while
log messages still say what went wrong and where.

All custom exceptions inherit from the base `FFmpegAdvancedException`.
"""


class FFmpegAdvancedException(Exception):
    """Base class for all custom exceptions in the FFmpeg Advanced application."""

    pass


class ValidationException(FFmpegAdvancedException):
    """
    Raised when a required field or binary payload is absent, or a parameter is malformed.

    Validation happens before any file I/O, so an item that fails here never
    allocates a temporary file. Typical causes are an out-of-range CRF value or an
    item without the configured binary field.
    """

    pass


class NotFoundException(FFmpegAdvancedException):
    """
    Raised when a referenced filesystem path does not exist.

    This is checked before the plan is executed, so FFmpeg is never started
    against an input that is known to be missing.
    """

    pass


class ExecutionException(FFmpegAdvancedException):
    """
    Raised when FFmpeg or ffprobe reports a failure.

    The message carries the operation context and the tail of the engine's
    diagnostic output rather than the raw process dump.
    """

    pass


class MediaIOException(FFmpegAdvancedException):
    """
    Raised when a filesystem call on media files fails (temp writes, output copies).

    The original `OSError` is chained as the cause.
    """

    pass
