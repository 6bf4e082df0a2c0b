"""
Batch trimming of a directory of FASTQ files.

Discovers eligible files, skips those whose output already exists, and
trims the rest on a fixed-size pool of worker threads. Every attempt,
skip, success and failure is recorded in an audit log under the output
directory, and a RunSummary is returned to the caller.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import partial
from multiprocessing import cpu_count
from multiprocessing.pool import ThreadPool
from os import PathLike
from pathlib import Path
from typing import List, Literal, Optional, Union

import pandas as pd

from .audit import AuditLog
from .constants import (
    AUDIT_LOG_NAME,
    DEFAULT_COMPRESSLEVEL,
    FASTQ_EXTENSIONS,
    LEADING_SIDE_DIR,
    LEADING_SIDE_PREFIX,
    SUMMARY_BASENAME,
    TRAILING_SIDE_DIR,
    TRAILING_SIDE_PREFIX,
)
from .exceptions import DirectoryError
from .formats import check_output_options
from .runner import FileTask, Outcome, run_file_task
from .transform import TrimPolicy

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ['file', 'path', 'status', 'reason', 'message']


@dataclass
class RunSummary:
    """
    Per-file outcomes of one batch run.

    Attributes
    ----------
    outcomes : list of Outcome
        One entry per discovered file, in completion order.
    """

    outcomes: List[Outcome] = field(default_factory=list)

    def _with_status(self, status: str) -> List[Outcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def processed(self) -> List[Outcome]:
        return self._with_status('processed')

    @property
    def skipped(self) -> List[Outcome]:
        return self._with_status('skipped')

    @property
    def failed(self) -> List[Outcome]:
        return self._with_status('failed')

    @property
    def n_processed(self) -> int:
        return len(self.processed)

    @property
    def n_skipped(self) -> int:
        return len(self.skipped)

    @property
    def n_failed(self) -> int:
        return len(self.failed)

    @property
    def n_total(self) -> int:
        return len(self.outcomes)

    def to_frame(self) -> pd.DataFrame:
        """
        Export outcomes as a DataFrame.

        Returns
        -------
        pd.DataFrame
            One row per file with columns file, path, status, reason and
            message, sorted by file name.
        """
        rows = [
            {
                'file': o.path.name,
                'path': str(o.path),
                'status': o.status,
                'reason': o.reason,
                'message': o.message,
            }
            for o in self.outcomes
        ]
        df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
        return df.sort_values('file').reset_index(drop=True)

    def serialize(
        self,
        results_path: Union[PathLike, str],
        format: Literal['excel', 'csv'] = 'csv',
    ) -> Path:
        """
        Save the per-file summary table to disk.

        Parameters
        ----------
        results_path : PathLike or str
            Directory to save the table in.
        format : {'excel', 'csv'}, default 'csv'
            Output format.

        Returns
        -------
        Path
            Written file.
        """
        results_path = Path(results_path)
        results_path.mkdir(parents=True, exist_ok=True)

        df = self.to_frame()
        if format == 'excel':
            out_fn = results_path / f'{SUMMARY_BASENAME}.xlsx'
            df.to_excel(out_fn, index=False, engine='openpyxl')
        elif format == 'csv':
            out_fn = results_path / f'{SUMMARY_BASENAME}.csv'
            df.to_csv(out_fn, index=False)
        else:
            raise ValueError(f"Unknown summary format: {format}")

        logger.info(f"Summary saved to {out_fn}")
        return out_fn

    def print_summary(self) -> None:
        """Print final counts and any failures."""
        print(f"Files: {self.n_total}")
        print(f"Processed: {self.n_processed}")
        print(f"Skipped: {self.n_skipped}")
        print(f"Failed: {self.n_failed}")
        for o in self.failed:
            print(f"  {o.path.name}: {o.reason}")


def default_num_workers() -> int:
    """Number of CPUs available to this process, at least 1."""
    if hasattr(os, 'sched_getaffinity'):
        return max(1, len(os.sched_getaffinity(0)))
    return max(1, cpu_count())


def resolve_num_workers(num_workers: Optional[int] = None) -> int:
    """Worker budget: the override if given, else the CPU count; floor of 1."""
    if num_workers is None:
        return default_num_workers()
    return max(1, int(num_workers))


def find_fastq_files(input_dir: Union[PathLike, str]) -> List[Path]:
    """
    List regular files in ``input_dir`` with a FASTQ extension.

    Matches ``.fq``, ``.fq.gz``, ``.fastq`` and ``.fastq.gz``. The
    directory is not searched recursively. Results are sorted by name for
    readable logs; processing order is not guaranteed.
    """
    input_dir = Path(input_dir)
    return sorted(
        p for p in input_dir.iterdir()
        if p.is_file() and p.name.endswith(FASTQ_EXTENSIONS)
    )


def prepare_output_dirs(
    input_dir: Union[PathLike, str],
    output_dir: Union[PathLike, str],
    policy: TrimPolicy,
) -> None:
    """
    Check the input directory and create the output tree.

    Creates ``output_dir`` and, when the policy retains trimmed bases,
    the ``5-prime/`` and ``3-prime/`` side directories for each end with
    a positive trim.

    Raises
    ------
    DirectoryError
        If the input directory is missing or unreadable, or an output
        directory cannot be created.
    """
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)

    if not input_dir.is_dir():
        raise DirectoryError(f"Input directory does not exist: {input_dir}")
    if not os.access(input_dir, os.R_OK | os.X_OK):
        raise DirectoryError(f"Input directory is not readable: {input_dir}")

    dirs = [output_dir]
    if policy.retains_leading:
        dirs.append(output_dir / LEADING_SIDE_DIR)
    if policy.retains_trailing:
        dirs.append(output_dir / TRAILING_SIDE_DIR)

    for d in dirs:
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(f"Error creating output directory: {d} ({e})") from e


def build_task(
    source_path: Path,
    output_dir: Path,
    policy: TrimPolicy,
    compression: Literal['auto', 'plain', 'gzip'] = 'auto',
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> FileTask:
    """
    Map an input file to its output locations.

    The primary output keeps the input file name under ``output_dir``;
    side outputs go to ``5-prime/trim5_<name>`` and ``3-prime/trim3_<name>``.
    """
    name = source_path.name
    leading = output_dir / LEADING_SIDE_DIR / f'{LEADING_SIDE_PREFIX}{name}' if policy.retains_leading else None
    trailing = output_dir / TRAILING_SIDE_DIR / f'{TRAILING_SIDE_PREFIX}{name}' if policy.retains_trailing else None

    return FileTask(
        source_path=source_path,
        primary_output_path=output_dir / name,
        policy=policy,
        leading_side_output_path=leading,
        trailing_side_output_path=trailing,
        compression=compression,
        compresslevel=compresslevel,
    )


def run_batch(
    input_dir: Union[PathLike, str],
    output_dir: Union[PathLike, str],
    policy: TrimPolicy,
    force: bool = False,
    num_workers: Optional[int] = None,
    compression: Literal['auto', 'plain', 'gzip'] = 'auto',
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
    log_name: str = AUDIT_LOG_NAME,
) -> RunSummary:
    """
    Trim every FASTQ file in a directory.

    Parameters
    ----------
    input_dir : PathLike or str
        Directory containing FASTQ files (plain or gzip).
    output_dir : PathLike or str
        Directory for trimmed files, side outputs and the audit log.
        Created if needed.
    policy : TrimPolicy
        Trim lengths and side-output switch.
    force : bool, default False
        Overwrite existing outputs. Otherwise files whose primary output
        exists are skipped without using a worker.
    num_workers : int, optional
        Maximum number of files trimmed concurrently. Defaults to the
        number of available CPUs.
    compression : {'auto', 'plain', 'gzip'}, default 'auto'
        Output format. 'auto' mirrors each input's format.
    compresslevel : int, default 6
        gzip compression level for compressed outputs.
    log_name : str, default 'log.txt'
        Audit log file name under ``output_dir``.

    Returns
    -------
    RunSummary
        Outcome for every discovered file.

    Raises
    ------
    ValueError
        If ``compression`` or ``compresslevel`` is invalid. Checked before
        any directory or file is touched.
    DirectoryError
        If the directories cannot be used. Nothing is scheduled in that
        case. Per-file errors never raise; they are reported as failed
        outcomes.
    """
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)

    check_output_options(compression, compresslevel)
    prepare_output_dirs(input_dir, output_dir, policy)
    n_workers = resolve_num_workers(num_workers)

    try:
        fastq_files = find_fastq_files(input_dir)
    except OSError as e:
        raise DirectoryError(f"Error listing input directory: {input_dir} ({e})") from e

    try:
        audit = AuditLog(output_dir / log_name)
    except OSError as e:
        raise DirectoryError(f"Error creating log file: {output_dir / log_name} ({e})") from e

    n_total = len(fastq_files)
    n_completed = 0
    outcomes: List[Outcome] = []

    with audit:
        audit.append(
            f"Run started: {input_dir} -> {output_dir} "
            f"(N5 = {policy.trim_leading}, N3 = {policy.trim_trailing}, "
            f"keep = {policy.retain_trimmed}, force = {force}, workers = {n_workers}, "
            f"files = {n_total})"
        )

        tasks = []
        for path in fastq_files:
            if not force and (output_dir / path.name).exists():
                message = f"Skipped file: {path.name} (output file already exists)"
                audit.append(message, level=logging.WARNING)
                outcomes.append(Outcome.skipped(path, message=message))
                n_completed += 1
                continue
            tasks.append(build_task(path, output_dir, policy, compression, compresslevel))

        logger.info(
            f"Trimming {len(tasks)} of {n_total} FASTQ files "
            f"(N5 = {policy.trim_leading}, N3 = {policy.trim_trailing}) "
            f"with {n_workers} workers"
        )

        if tasks:
            worker = partial(run_file_task, audit=audit)
            with ThreadPool(processes=min(n_workers, len(tasks))) as pool:
                for outcome in pool.imap_unordered(worker, tasks):
                    outcomes.append(outcome)
                    n_completed += 1
                    logger.info(f"Progress: {n_completed}/{n_total} files")

        summary = RunSummary(outcomes)
        audit.append(
            f"Run finished: {summary.n_processed} processed, "
            f"{summary.n_skipped} skipped, {summary.n_failed} failed"
        )

    if summary.n_failed:
        logger.warning(f"{summary.n_failed} of {n_total} files failed; see {audit.path}")
    return summary
