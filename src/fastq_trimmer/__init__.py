"""
fastq-trimmer - fixed-length end trimming for directories of FASTQ files.

Removes a fixed number of bases from the 5' and/or 3' end of every
sequence and quality line, leaving identifier and separator lines
untouched. Plain and gzip-compressed files are detected by content and
written back in the same format. Files are trimmed in parallel on a
bounded pool of workers, and every attempt is recorded in an audit log.

Main Functions
--------------
run_batch
    Trim every FASTQ file in a directory and return a RunSummary.
run_file_task
    Trim a single file described by a FileTask.
trim_stream
    Trim a stream of FASTQ lines into one or more sinks.
detect_format
    Sniff whether a file is gzip-compressed.

Main Classes
------------
TrimPolicy
    Number of bases to trim from each end, and whether to keep them.
FileTask, Outcome, RunSummary
    Per-file work item, per-file result and batch result.
AuditLog
    Thread-safe append-only run log.

Examples
--------
>>> from fastq_trimmer import TrimPolicy, run_batch
>>> policy = TrimPolicy(trim_leading=4, trim_trailing=10, retain_trimmed=True)
>>> summary = run_batch('/path/to/fastq', '/path/to/trimmed', policy)
>>> summary.print_summary()
"""

from .audit import AuditLog
from .batch import (
    RunSummary,
    build_task,
    default_num_workers,
    find_fastq_files,
    prepare_output_dirs,
    resolve_num_workers,
    run_batch,
)
from .constants import (
    AUDIT_LOG_NAME,
    FASTQ_EXTENSIONS,
    LEADING_SIDE_DIR,
    LEADING_SIDE_PREFIX,
    TRAILING_SIDE_DIR,
    TRAILING_SIDE_PREFIX,
)
from .exceptions import (
    DestinationOpenError,
    DirectoryError,
    FileTaskError,
    SourceOpenError,
    StreamError,
    TrimmerError,
)
from .formats import detect_format, open_fastq, resolve_output_format
from .runner import FileTask, Outcome, run_file_task
from .transform import TrimPolicy, iter_trimmed, trim_line, trim_stream

__all__ = [
    # Batch
    "run_batch",
    "RunSummary",
    "build_task",
    "default_num_workers",
    "find_fastq_files",
    "prepare_output_dirs",
    "resolve_num_workers",
    # Single file
    "FileTask",
    "Outcome",
    "run_file_task",
    # Transform
    "TrimPolicy",
    "iter_trimmed",
    "trim_line",
    "trim_stream",
    # Formats
    "detect_format",
    "open_fastq",
    "resolve_output_format",
    # Audit
    "AuditLog",
    # Exceptions
    "TrimmerError",
    "DirectoryError",
    "FileTaskError",
    "SourceOpenError",
    "DestinationOpenError",
    "StreamError",
    # Constants
    "AUDIT_LOG_NAME",
    "FASTQ_EXTENSIONS",
    "LEADING_SIDE_DIR",
    "LEADING_SIDE_PREFIX",
    "TRAILING_SIDE_DIR",
    "TRAILING_SIDE_PREFIX",
]

__version__ = "0.2.0"
