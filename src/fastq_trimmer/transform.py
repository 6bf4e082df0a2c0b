"""
Fixed-length trimming of FASTQ records.

Provides the trim policy and a streaming transform that classifies each
physical line by its position within a 4-line FASTQ record:

- position 0: identifier (``@read``), passed through
- position 1: sequence, trimmed
- position 2: separator (``+``), passed through
- position 3: quality, trimmed

The transform keeps only a line counter, never a whole record, so
truncated files (line count not a multiple of 4) are handled the same way
as complete ones.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, Optional, Tuple

from .constants import PROGRESS_LINE_INTERVAL

logger = logging.getLogger(__name__)

NEWLINE = b'\n'

# Record positions subject to trimming (sequence and quality)
TRIMMED_POSITIONS = (1, 3)


@dataclass(frozen=True)
class TrimPolicy:
    """
    Number of bases to remove from each end of every read.

    Parameters
    ----------
    trim_leading : int, default 0
        Bases removed from the start (5' end) of sequence/quality lines.
    trim_trailing : int, default 0
        Bases removed from the end (3' end) of sequence/quality lines.
    retain_trimmed : bool, default False
        Write the removed bases to side outputs.

    Raises
    ------
    ValueError
        If a count is negative or not an integer, or if both are zero.

    Examples
    --------
    >>> policy = TrimPolicy(trim_leading=4, trim_trailing=4)
    >>> trim_line(b'NNNNACGTACGTNNNN', policy)
    (b'ACGTACGT', b'NNNN', b'NNNN')
    """

    trim_leading: int = 0
    trim_trailing: int = 0
    retain_trimmed: bool = False

    def __post_init__(self):
        for name in ('trim_leading', 'trim_trailing'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.trim_leading == 0 and self.trim_trailing == 0:
            raise ValueError("At least one of trim_leading or trim_trailing must be positive")

    @property
    def retains_leading(self) -> bool:
        """Whether 5' fragments go to a side output."""
        return self.retain_trimmed and self.trim_leading > 0

    @property
    def retains_trailing(self) -> bool:
        """Whether 3' fragments go to a side output."""
        return self.retain_trimmed and self.trim_trailing > 0


def strip_terminator(line: bytes) -> bytes:
    """Remove one trailing ``\\n`` (or ``\\r\\n``) if present."""
    if line.endswith(NEWLINE):
        line = line[:-1]
        if line.endswith(b'\r'):
            line = line[:-1]
    return line


def trim_line(line: bytes, policy: TrimPolicy) -> Tuple[bytes, bytes, bytes]:
    """
    Split a terminator-free sequence or quality line.

    Parameters
    ----------
    line : bytes
        Line content without its terminator.
    policy : TrimPolicy
        Trim lengths.

    Returns
    -------
    kept : bytes
        ``line[trim_leading : max(n - trim_trailing, trim_leading)]``.
        Empty when the line is shorter than both trims combined.
    leading : bytes
        Bases removed from the start, at most ``trim_leading`` long.
    trailing : bytes
        Bases removed from the end, at most ``trim_trailing`` long.

    Notes
    -----
    For lines at least ``trim_leading + trim_trailing`` long,
    ``leading + kept + trailing == line``. Shorter lines may appear in
    both fragments.
    """
    n = len(line)
    lead = policy.trim_leading
    trail = policy.trim_trailing

    kept = line[lead:max(n - trail, lead)]
    leading = line[:min(lead, n)]
    trailing = line[max(n - trail, 0):n]
    return kept, leading, trailing


def iter_trimmed(
    lines: Iterable[bytes],
    policy: TrimPolicy,
) -> Iterator[Tuple[bytes, Optional[bytes], Optional[bytes]]]:
    """
    Lazily transform a FASTQ line stream.

    Parameters
    ----------
    lines : iterable of bytes
        Physical lines, with or without terminators. Consumed once.
    policy : TrimPolicy
        Trim lengths and side-output switch.

    Yields
    ------
    primary : bytes
        Line for the primary output.
    leading : bytes or None
        Line for the 5' side output, or None if that output is inactive.
    trailing : bytes or None
        Line for the 3' side output, or None if that output is inactive.

    Every yielded line ends with exactly one ``\\n``.
    """
    keep_leading = policy.retains_leading
    keep_trailing = policy.retains_trailing

    for line_num, raw in enumerate(lines):
        line = strip_terminator(raw)

        if line_num % 4 in TRIMMED_POSITIONS:
            kept, leading, trailing = trim_line(line, policy)
            yield (
                kept + NEWLINE,
                leading + NEWLINE if keep_leading else None,
                trailing + NEWLINE if keep_trailing else None,
            )
        else:
            # Identifier and separator lines keep side outputs valid FASTQ
            out = line + NEWLINE
            yield (
                out,
                out if keep_leading else None,
                out if keep_trailing else None,
            )


def trim_stream(
    source: Iterable[bytes],
    primary: BinaryIO,
    policy: TrimPolicy,
    leading: Optional[BinaryIO] = None,
    trailing: Optional[BinaryIO] = None,
    label: Optional[str] = None,
) -> int:
    """
    Trim every record of ``source`` into the given sinks.

    Parameters
    ----------
    source : iterable of bytes
        Readable line source, consumed to exhaustion.
    primary : BinaryIO
        Sink for trimmed records.
    policy : TrimPolicy
        Trim lengths and side-output switch.
    leading, trailing : BinaryIO, optional
        Sinks for the 5' and 3' fragments. Ignored when the policy does
        not retain that end.
    label : str, optional
        Name used in progress messages.

    Returns
    -------
    int
        Number of lines consumed.

    Raises
    ------
    OSError, EOFError
        Propagated from the source or sinks. Lines already written stay
        written.
    """
    if policy.retains_leading and leading is None:
        raise ValueError("Policy retains 5' fragments but no leading sink was given")
    if policy.retains_trailing and trailing is None:
        raise ValueError("Policy retains 3' fragments but no trailing sink was given")

    label = label or getattr(source, 'name', 'stream')
    n_lines = 0
    for out, out_leading, out_trailing in iter_trimmed(source, policy):
        primary.write(out)
        if out_leading is not None:
            leading.write(out_leading)
        if out_trailing is not None:
            trailing.write(out_trailing)

        n_lines += 1
        if n_lines % PROGRESS_LINE_INTERVAL == 0:
            logger.info(f"{label}: {n_lines // 4:,} reads trimmed...")

    logger.debug(f"{label}: {n_lines:,} lines ({n_lines // 4:,} complete reads)")
    return n_lines
