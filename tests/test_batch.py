"""Tests for the batch scheduler."""
import threading
import time

import openpyxl  # noqa: F401
import pandas as pd
import pytest

from conftest import read_lines, write_fastq
from fastq_trimmer import batch
from fastq_trimmer.batch import (
    RunSummary,
    build_task,
    find_fastq_files,
    prepare_output_dirs,
    resolve_num_workers,
    run_batch,
)
from fastq_trimmer.exceptions import DirectoryError
from fastq_trimmer.runner import Outcome
from fastq_trimmer.transform import TrimPolicy

FASTQ_NAMES = {"a.fastq", "b.fq.gz", "c.fq", "d.fastq"}


def test_find_fastq_files(input_dir):
    assert {p.name for p in find_fastq_files(input_dir)} == FASTQ_NAMES


def test_resolve_num_workers():
    assert resolve_num_workers(3) == 3
    assert resolve_num_workers(0) == 1
    assert resolve_num_workers() >= 1


def test_prepare_output_dirs_missing_input(tmp_path):
    with pytest.raises(DirectoryError):
        prepare_output_dirs(tmp_path / "missing", tmp_path / "out", TrimPolicy(1, 0))


def test_prepare_output_dirs_uncreatable(tmp_path, input_dir):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    with pytest.raises(DirectoryError):
        prepare_output_dirs(input_dir, blocker / "out", TrimPolicy(1, 0))


def test_prepare_output_dirs_side_dirs(tmp_path, input_dir):
    out = tmp_path / "out"
    prepare_output_dirs(input_dir, out, TrimPolicy(2, 0, retain_trimmed=True))
    assert (out / "5-prime").is_dir()
    assert not (out / "3-prime").exists()


def test_build_task_paths(tmp_path):
    task = build_task(tmp_path / "in" / "x.fq.gz", tmp_path / "out", TrimPolicy(1, 2, retain_trimmed=True))
    assert task.primary_output_path == tmp_path / "out" / "x.fq.gz"
    assert task.leading_side_output_path == tmp_path / "out" / "5-prime" / "trim5_x.fq.gz"
    assert task.trailing_side_output_path == tmp_path / "out" / "3-prime" / "trim3_x.fq.gz"


def test_run_batch_processes_all(input_dir, output_dir):
    summary = run_batch(input_dir, output_dir, TrimPolicy(4, 4, retain_trimmed=True), num_workers=2)

    assert summary.n_processed == 4
    assert summary.n_failed == summary.n_skipped == 0
    assert {o.path.name for o in summary.outcomes} == FASTQ_NAMES

    for name in FASTQ_NAMES:
        assert read_lines(output_dir / name)[:4] == [b"@read1", b"ACGTACGT", b"+", b"ABCDEFGH"]
        assert read_lines(output_dir / "5-prime" / f"trim5_{name}")[1] == b"NNNN"
        assert read_lines(output_dir / "3-prime" / f"trim3_{name}")[1] == b"NNNN"

    # Format symmetry, detected by content
    for name, magic in [("b.fq.gz", b"\x1f\x8b"), ("d.fastq", b"\x1f\x8b"), ("a.fastq", b"@r")]:
        assert (output_dir / name).read_bytes()[:2] == magic

    log = (output_dir / "log.txt").read_text()
    assert log.count("Attempting to process") == 4
    assert "Run finished: 4 processed, 0 skipped, 0 failed" in log


def test_no_side_outputs_without_keep(input_dir, output_dir):
    run_batch(input_dir, output_dir, TrimPolicy(4, 4))
    assert not (output_dir / "5-prime").exists()
    assert not (output_dir / "3-prime").exists()


def test_second_run_skips(input_dir, output_dir):
    policy = TrimPolicy(2, 1)
    run_batch(input_dir, output_dir, policy)
    before = {name: (output_dir / name).read_bytes() for name in FASTQ_NAMES}

    summary = run_batch(input_dir, output_dir, policy)

    assert summary.n_skipped == 4
    assert summary.n_processed == 0
    assert all(o.reason == "output exists" for o in summary.skipped)
    assert {name: (output_dir / name).read_bytes() for name in FASTQ_NAMES} == before
    assert (output_dir / "log.txt").read_text().count("Skipped file:") == 4


def test_force_overwrites(input_dir, output_dir):
    run_batch(input_dir, output_dir, TrimPolicy(2, 0))
    summary = run_batch(input_dir, output_dir, TrimPolicy(4, 0), force=True)

    assert summary.n_processed == 4
    assert read_lines(output_dir / "c.fq")[1] == b"ACGTACGTNNNN"


def test_skip_does_not_use_workers(input_dir, output_dir, monkeypatch):
    output_dir.mkdir()
    for name in FASTQ_NAMES - {"a.fastq"}:
        (output_dir / name).write_bytes(b"")

    calls = []
    original = batch.run_file_task

    def tracking(task, audit=None):
        calls.append(task.source_path.name)
        return original(task, audit=audit)

    monkeypatch.setattr(batch, "run_file_task", tracking)
    summary = run_batch(input_dir, output_dir, TrimPolicy(1, 0))

    assert calls == ["a.fastq"]
    assert summary.n_skipped == 3
    assert summary.n_processed == 1


def test_failure_is_isolated(input_dir, output_dir):
    (input_dir / "broken.fq.gz").write_bytes(b"\x1f\x8bnot really gzip")

    summary = run_batch(input_dir, output_dir, TrimPolicy(1, 1), num_workers=2)

    assert summary.n_processed == 4
    assert summary.n_failed == 1
    failed = summary.failed[0]
    assert failed.path.name == "broken.fq.gz"
    assert failed.reason == "stream error during transform"
    assert "Error processing" in (output_dir / "log.txt").read_text()


@pytest.mark.parametrize("options", [{"compresslevel": 42}, {"compression": "bz2"}, {"compresslevel": "9"}])
def test_invalid_output_options_rejected_up_front(input_dir, output_dir, monkeypatch, options):
    monkeypatch.setattr(batch, "run_file_task", lambda *a, **k: pytest.fail("scheduled a file"))
    with pytest.raises(ValueError):
        run_batch(input_dir, output_dir, TrimPolicy(1, 0), num_workers=2, **options)
    assert not output_dir.exists()


def test_missing_input_dir_aborts(tmp_path, output_dir, monkeypatch):
    monkeypatch.setattr(batch, "run_file_task", lambda *a, **k: pytest.fail("scheduled a file"))
    with pytest.raises(DirectoryError):
        run_batch(tmp_path / "missing", output_dir, TrimPolicy(1, 0))


def test_empty_input_dir(tmp_path, output_dir):
    empty = tmp_path / "empty"
    empty.mkdir()
    summary = run_batch(empty, output_dir, TrimPolicy(1, 0))
    assert summary.n_total == 0
    assert (output_dir / "log.txt").exists()


def test_concurrency_is_bounded(tmp_path, output_dir, monkeypatch):
    in_dir = tmp_path / "many"
    in_dir.mkdir()
    for i in range(8):
        write_fastq(in_dir / f"s{i}.fq")

    lock = threading.Lock()
    state = {"active": 0, "peak": 0}
    original = batch.run_file_task

    def delayed(task, audit=None):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        try:
            time.sleep(0.1)
            return original(task, audit=audit)
        finally:
            with lock:
                state["active"] -= 1

    monkeypatch.setattr(batch, "run_file_task", delayed)
    summary = run_batch(in_dir, output_dir, TrimPolicy(1, 0), num_workers=2)

    assert summary.n_processed == 8
    assert state["peak"] == 2


class TestRunSummary:
    def make_summary(self, tmp_path):
        return RunSummary([
            Outcome.processed(tmp_path / "b.fq", "Processed"),
            Outcome.skipped(tmp_path / "a.fq", "Skipped"),
            Outcome.failed(tmp_path / "c.fq", "Error", reason="source open failed"),
        ])

    def test_counts(self, tmp_path):
        summary = self.make_summary(tmp_path)
        assert (summary.n_processed, summary.n_skipped, summary.n_failed, summary.n_total) == (1, 1, 1, 3)

    def test_to_frame(self, tmp_path):
        df = self.make_summary(tmp_path).to_frame()
        assert list(df.columns) == ["file", "path", "status", "reason", "message"]
        assert list(df["file"]) == ["a.fq", "b.fq", "c.fq"]

    def test_empty_frame(self):
        df = RunSummary().to_frame()
        assert df.empty
        assert "status" in df.columns

    def test_serialize_csv(self, tmp_path):
        out_fn = self.make_summary(tmp_path).serialize(tmp_path / "results", format="csv")
        df = pd.read_csv(out_fn)
        assert out_fn.name == "trim_summary.csv"
        assert df["status"].tolist() == ["skipped", "processed", "failed"]

    def test_serialize_excel(self, tmp_path):
        out_fn = self.make_summary(tmp_path).serialize(tmp_path / "results", format="excel")
        assert len(pd.read_excel(out_fn)) == 3

    def test_print_summary(self, tmp_path, capsys):
        self.make_summary(tmp_path).print_summary()
        out = capsys.readouterr().out
        assert "Failed: 1" in out
        assert "c.fq: source open failed" in out
