"""
Exception hierarchy for batch FASTQ trimming.

Directory-level errors abort a run before anything is scheduled. Per-file
errors are raised inside the file runner and converted to failed outcomes
there, so they never reach the scheduler.
"""

from .constants import REASON_DESTINATION_OPEN, REASON_SOURCE_OPEN, REASON_STREAM


class TrimmerError(Exception):
    """Base class for all trimming errors."""
    pass


class DirectoryError(TrimmerError):
    """Raised when the input directory or an output directory is unusable."""
    pass


class FileTaskError(TrimmerError):
    """Raised when a single file cannot be trimmed."""

    reason = 'file task failed'

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class SourceOpenError(FileTaskError):
    """Raised when the input file cannot be sniffed or opened."""

    reason = REASON_SOURCE_OPEN


class DestinationOpenError(FileTaskError):
    """Raised when the primary or a side output cannot be opened."""

    reason = REASON_DESTINATION_OPEN


class StreamError(FileTaskError):
    """Raised on a read, write or decompression failure mid-transform."""

    reason = REASON_STREAM
