"""
Append-only audit log for a trimming run.

Every attempt, skip, success and failure is written as one timestamped,
sequenced line. Appends come from several worker threads and are
serialised by a lock so lines never interleave.
"""

import logging
import threading
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class AuditLog:
    """
    Thread-safe, append-only text log.

    The file is opened in append mode and never truncated, so repeated
    runs into the same output directory accumulate in one log.

    Parameters
    ----------
    path : PathLike or str
        Log file location. The parent directory must exist.

    Attributes
    ----------
    path : Path
        Log file location.
    entries : int
        Number of lines appended through this instance.

    Examples
    --------
    >>> with AuditLog('/path/to/out/log.txt') as audit:
    ...     audit.append('Processed (gzipped): /path/to/in/a.fq.gz')
    """

    def __init__(self, path: Union[PathLike, str]):
        self.path = Path(path)
        self.entries = 0
        self._lock = threading.Lock()
        self._handle = open(self.path, 'a', encoding='utf-8')

    def append(self, message: str, level: int = logging.INFO) -> None:
        """
        Append one entry.

        Parameters
        ----------
        message : str
            Single-line message. Embedded newlines are flattened.
        level : int, default logging.INFO
            Level at which the entry is mirrored to the module logger.
        """
        message = ' '.join(message.splitlines())
        with self._lock:
            if self._handle is None:
                raise ValueError(f"Audit log is closed: {self.path}")
            self.entries += 1
            timestamp = datetime.now().isoformat(timespec='milliseconds')
            self._handle.write(f"{timestamp} [{self.entries}] {message}\n")
            self._handle.flush()
        logger.log(level, message)

    def close(self) -> None:
        """Close the underlying file. Further appends raise ValueError."""
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __enter__(self) -> 'AuditLog':
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.close()
        return None
