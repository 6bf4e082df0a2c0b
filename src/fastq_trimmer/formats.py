"""
Compression detection and format-transparent file handles.

FASTQ files are read and written through binary handles that iterate by
line and accept ``write`` calls, whether they are plain text or gzip. The
format is decided once per file by sniffing its leading bytes, never from
the file extension.
"""

import gzip
import logging
from os import PathLike
from typing import BinaryIO, Literal, Union

from .constants import COMPRESSION_MODES, DEFAULT_COMPRESSLEVEL, GZIP_MAGIC

logger = logging.getLogger(__name__)

FileFormat = Literal['plain', 'gzip']


def detect_format(path: Union[PathLike, str]) -> FileFormat:
    """
    Detect whether a file is gzip-compressed.

    Reads the first two bytes of the file and compares them to the gzip
    magic number. Only the header is inspected: a corrupt body is reported
    later, when the stream is read.

    Parameters
    ----------
    path : PathLike or str
        File to inspect.

    Returns
    -------
    {'plain', 'gzip'}
        Detected format. Files shorter than two bytes are 'plain'.

    Raises
    ------
    OSError
        If the file is missing or unreadable.
    """
    with open(path, 'rb') as f:
        magic = f.read(len(GZIP_MAGIC))

    fmt: FileFormat = 'gzip' if magic == GZIP_MAGIC else 'plain'
    logger.debug(f"Detected {fmt} format for {path}")
    return fmt


def open_fastq(
    path: Union[PathLike, str],
    mode: Literal['rb', 'wb'],
    fmt: FileFormat,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> BinaryIO:
    """
    Open a FASTQ file as a binary line stream in the given format.

    Both variants support line iteration, ``write`` and ``close`` and can
    be used as context managers.

    Parameters
    ----------
    path : PathLike or str
        File to open.
    mode : {'rb', 'wb'}
        Read or (truncating) write.
    fmt : {'plain', 'gzip'}
        Format of the file.
    compresslevel : int, default 6
        gzip compression level, used when writing gzip.
    """
    if fmt == 'gzip':
        if mode == 'wb':
            return gzip.open(path, mode, compresslevel=compresslevel)
        return gzip.open(path, mode)
    elif fmt == 'plain':
        return open(path, mode)
    else:
        raise ValueError(f"Unknown FASTQ format: {fmt}")


def resolve_output_format(
    source_format: FileFormat,
    compression: Literal['auto', 'plain', 'gzip'] = 'auto',
) -> FileFormat:
    """Output format for a source: mirrors it under 'auto', else forced."""
    if compression not in COMPRESSION_MODES:
        raise ValueError(f"Unknown compression mode: {compression}")
    if compression == 'auto':
        return source_format
    return compression


def check_output_options(
    compression: str = 'auto',
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> None:
    """
    Validate output compression settings before any file is opened.

    Raises
    ------
    ValueError
        If ``compression`` is not one of 'auto', 'plain', 'gzip', or
        ``compresslevel`` is not an integer in 0-9.
    """
    if compression not in COMPRESSION_MODES:
        raise ValueError(f"Unknown compression mode: {compression}")
    if isinstance(compresslevel, bool) or not isinstance(compresslevel, int) \
            or not 0 <= compresslevel <= 9:
        raise ValueError(f"compresslevel must be an integer from 0 to 9, got {compresslevel!r}")
