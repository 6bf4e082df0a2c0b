"""Shared fixtures for fastq_trimmer tests."""
import gzip
from pathlib import Path

import pytest

READS = [
    (b"@read1", b"NNNNACGTACGTNNNN", b"+", b"IIIIABCDEFGHJJJJ"),
    (b"@read2 extra", b"GGGGTTTTAAAACCCC", b"+read2", b"!!!!####$$$$%%%%"),
    (b"@read3", b"ACG", b"+", b"III"),
]


def fastq_bytes(reads=READS) -> bytes:
    return b"".join(line + b"\n" for record in reads for line in record)


def write_fastq(path: Path, reads=READS, gzipped: bool = False) -> Path:
    data = fastq_bytes(reads)
    if gzipped:
        with gzip.open(path, "wb") as f:
            f.write(data)
    else:
        path.write_bytes(data)
    return path


def read_lines(path: Path):
    with open(path, "rb") as f:
        magic = f.read(2)
    opener = gzip.open if magic == b"\x1f\x8b" else open
    with opener(path, "rb") as f:
        return f.read().split(b"\n")[:-1]


@pytest.fixture
def input_dir(tmp_path):
    d = tmp_path / "in"
    d.mkdir()
    write_fastq(d / "a.fastq")
    write_fastq(d / "b.fq.gz", gzipped=True)
    write_fastq(d / "c.fq")
    # Compressed content without a .gz suffix
    write_fastq(d / "d.fastq", gzipped=True)
    (d / "notes.txt").write_text("not a fastq file\n")
    (d / "sub.fastq").mkdir()
    return d


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"
