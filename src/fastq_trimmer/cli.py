"""
Command-line interface for batch FASTQ trimming.

Example
-------
fastq-trimmer -i raw_fastq/ -o trimmed/ -5 4 -3 10 --keep
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .batch import run_batch
from .constants import COMPRESSION_MODES
from .exceptions import DirectoryError
from .transform import TrimPolicy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fastq-trimmer',
        description='Trim a fixed number of bases from the 5\' and/or 3\' end '
                    'of every read in a directory of FASTQ files',
    )

    parser.add_argument(
        '-i', '--in',
        dest='input_dir',
        required=True,
        help='Directory containing FASTQ files (.fq, .fastq, optionally .gz)',
    )
    parser.add_argument(
        '-o', '--out',
        dest='output_dir',
        required=True,
        help='Output directory (created if missing)',
    )
    parser.add_argument(
        '-3', '--N3prime',
        dest='n3',
        type=int,
        default=0,
        help='Number of bases to trim from the 3\' end',
    )
    parser.add_argument(
        '-5', '--N5prime',
        dest='n5',
        type=int,
        default=0,
        help='Number of bases to trim from the 5\' end',
    )
    parser.add_argument(
        '-f', '--force',
        action='store_true',
        help='Overwrite existing output files',
    )
    parser.add_argument(
        '-k', '--keep',
        action='store_true',
        help='Write trimmed-off bases to 5-prime/ and 3-prime/ side files',
    )
    parser.add_argument(
        '-j', '--num_workers',
        type=int,
        default=None,
        help='Number of files trimmed in parallel (default: available CPUs)',
    )
    parser.add_argument(
        '--compression',
        choices=COMPRESSION_MODES,
        default='auto',
        help='Output compression; auto mirrors each input file',
    )
    parser.add_argument(
        '--summary',
        choices=['csv', 'excel'],
        default=None,
        help='Also write a per-file summary table to the output directory',
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Exit with status 1 if any file failed',
    )
    parser.add_argument(
        '-d', '--debug',
        action='store_true',
        help='Enable debug logging',
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    print(f"Input Directory: {args.input_dir}")
    print(f"Output Directory: {args.output_dir}")
    print(f"N3 Prime Trim Value: {args.n3}")
    print(f"N5 Prime Trim Value: {args.n5}")
    print(f"Force Flag: {str(args.force).lower()}")
    print(f"Keep Flag: {str(args.keep).lower()}")

    try:
        policy = TrimPolicy(
            trim_leading=args.n5,
            trim_trailing=args.n3,
            retain_trimmed=args.keep,
        )
    except ValueError as e:
        parser.error(str(e))

    if args.num_workers is not None and args.num_workers < 1:
        parser.error("--num_workers must be at least 1")

    input_dir = Path(args.input_dir).resolve()
    output_dir = Path(args.output_dir).resolve()
    if input_dir == output_dir:
        parser.error("Input and output directories must differ")

    try:
        summary = run_batch(
            input_dir,
            output_dir,
            policy,
            force=args.force,
            num_workers=args.num_workers,
            compression=args.compression,
        )
    except DirectoryError as e:
        logger.error(str(e))
        return 1

    if args.summary is not None:
        summary.serialize(output_dir, format=args.summary)

    summary.print_summary()

    if args.strict and summary.n_failed:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
