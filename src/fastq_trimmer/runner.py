"""
Single-file trimming task.

A FileTask names one input file, its primary output and optional side
outputs. ``run_file_task`` owns every handle it opens, releases them on
all exit paths and turns per-file errors into a failed Outcome instead of
raising.
"""

import logging
import zlib
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Tuple

from .audit import AuditLog
from .constants import DEFAULT_COMPRESSLEVEL, REASON_OUTPUT_EXISTS
from .exceptions import DestinationOpenError, FileTaskError, SourceOpenError, StreamError
from .formats import FileFormat, check_output_options, detect_format, open_fastq, resolve_output_format
from .transform import TrimPolicy, trim_stream

logger = logging.getLogger(__name__)

OutcomeStatus = Literal['processed', 'skipped', 'failed']

# Errors raised by file objects and the gzip module on bad input
STREAM_ERRORS = (OSError, EOFError, zlib.error)


@dataclass(frozen=True)
class FileTask:
    """
    One input file and where its trimmed records go.

    Parameters
    ----------
    source_path : Path
        Input FASTQ file (plain or gzip).
    primary_output_path : Path
        Trimmed output.
    policy : TrimPolicy
        Trim lengths and side-output switch.
    leading_side_output_path : Path, optional
        Output for 5' fragments. Required when the policy retains them.
    trailing_side_output_path : Path, optional
        Output for 3' fragments. Required when the policy retains them.
    compression : {'auto', 'plain', 'gzip'}, default 'auto'
        Output format. 'auto' mirrors the input's format.
    compresslevel : int, default 6
        gzip compression level for compressed outputs.
    """

    source_path: Path
    primary_output_path: Path
    policy: TrimPolicy
    leading_side_output_path: Optional[Path] = None
    trailing_side_output_path: Optional[Path] = None
    compression: Literal['auto', 'plain', 'gzip'] = 'auto'
    compresslevel: int = DEFAULT_COMPRESSLEVEL

    def __post_init__(self):
        for name in ('source_path', 'primary_output_path',
                     'leading_side_output_path', 'trailing_side_output_path'):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, Path(value))

        check_output_options(self.compression, self.compresslevel)
        if self.policy.retains_leading and self.leading_side_output_path is None:
            raise ValueError(f"No 5' side output given for {self.source_path}")
        if self.policy.retains_trailing and self.trailing_side_output_path is None:
            raise ValueError(f"No 3' side output given for {self.source_path}")


@dataclass(frozen=True)
class Outcome:
    """Result of one file: processed, skipped or failed."""

    path: Path
    status: OutcomeStatus
    message: str
    reason: Optional[str] = None

    @classmethod
    def processed(cls, path: Path, message: str) -> 'Outcome':
        return cls(path=Path(path), status='processed', message=message)

    @classmethod
    def skipped(cls, path: Path, message: str, reason: str = REASON_OUTPUT_EXISTS) -> 'Outcome':
        return cls(path=Path(path), status='skipped', message=message, reason=reason)

    @classmethod
    def failed(cls, path: Path, message: str, reason: str) -> 'Outcome':
        return cls(path=Path(path), status='failed', message=message, reason=reason)


def run_file_task(task: FileTask, audit: Optional[AuditLog] = None) -> Outcome:
    """
    Trim one file and report what happened.

    Parameters
    ----------
    task : FileTask
        File to process.
    audit : AuditLog, optional
        Receives the attempt-start entry and the final outcome.

    Returns
    -------
    Outcome
        'processed' on a clean run, otherwise 'failed' with a reason of
        source open, destination open or stream error. Never raises for
        per-file I/O problems.

    Notes
    -----
    Output written before a stream error is left on disk.
    """
    src = task.source_path
    if audit is not None:
        audit.append(f"Attempting to process {src} and write to {task.primary_output_path} ...")

    try:
        fmt, n_lines = _execute(task)
    except FileTaskError as e:
        message = f"Error processing: {src} - {e.reason}: {e.__cause__ or e}"
        outcome = Outcome.failed(src, message=message, reason=e.reason)
        if audit is not None:
            audit.append(message, level=logging.ERROR)
        else:
            logger.error(message)
        return outcome

    message = f"Processed{_format_tag(fmt)}: {src}"
    logger.debug(f"{message} ({n_lines // 4:,} reads)")
    if audit is not None:
        audit.append(message)
    return Outcome.processed(src, message=message)


def _format_tag(fmt: FileFormat) -> str:
    return ' (gzipped)' if fmt == 'gzip' else ' (non-gzipped)'


def _execute(task: FileTask) -> Tuple[FileFormat, int]:
    """Open, trim and close. Raises FileTaskError subclasses."""
    src = task.source_path
    try:
        with ExitStack() as stack:
            try:
                fmt = detect_format(src)
                source = stack.enter_context(open_fastq(src, 'rb', fmt))
            except OSError as e:
                raise SourceOpenError(src, "Could not open input") from e

            out_fmt = resolve_output_format(fmt, task.compression)
            sinks = {}
            for key, path in (
                ('primary', task.primary_output_path),
                ('leading', task.leading_side_output_path if task.policy.retains_leading else None),
                ('trailing', task.trailing_side_output_path if task.policy.retains_trailing else None),
            ):
                if path is None:
                    continue
                try:
                    sinks[key] = stack.enter_context(
                        open_fastq(path, 'wb', out_fmt, compresslevel=task.compresslevel)
                    )
                except OSError as e:
                    raise DestinationOpenError(path, "Could not open output") from e

            try:
                n_lines = trim_stream(
                    source,
                    sinks['primary'],
                    task.policy,
                    leading=sinks.get('leading'),
                    trailing=sinks.get('trailing'),
                    label=src.name,
                )
            except STREAM_ERRORS as e:
                raise StreamError(src, "Stream failed") from e
    except STREAM_ERRORS as e:
        # Raised while flushing/closing outputs on the way out
        raise StreamError(src, "Stream failed while closing") from e

    return fmt, n_lines
