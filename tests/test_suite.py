"""Tests for the benchmark driver."""

import io
import os

import pytest

from meteobench.benchmarks.reporting import TableReporter
from meteobench.benchmarks.suite import BenchmarkSuite, scratch_file, validate_chain
from meteobench.benchmarks.workloads import Workload
from meteobench.config import BenchmarkConfig

BUDGET = 0.01


def _suite(tmp_path, stream):
    config = BenchmarkConfig(data_dir=str(tmp_path / "nested" / "data"), size_mb=1)
    return BenchmarkSuite(time_budget=BUDGET, config=config, reporter=TableReporter(stream=stream))


def _write_scratch(scratch_path):
    with open(scratch_path, "wb") as f:
        f.write(b"payload")


def _read_scratch(scratch_path):
    with open(scratch_path, "rb") as f:
        return f.read()


class TestBenchmarkSuite:
    def test_rows_align_with_header(self, tmp_path):
        stream = io.StringIO()
        workloads = [
            Workload(name="one", label="First", baseline=0.001, run=lambda: 1, output="x"),
            Workload(name="two", label="Second uses {x}", baseline=0.001, run=lambda x: x + 1, inputs=("x",), output="y"),
        ]

        state = _suite(tmp_path, stream).run(workloads)

        lines = stream.getvalue().splitlines()
        assert len(lines) == 4
        assert len({len(line) for line in lines}) == 1
        assert lines[3].startswith("| Second uses 1 ")
        assert state == {"x": 1, "y": 2}

    def test_scratch_file_lifetime(self, tmp_path):
        seen = []
        workloads = [
            Workload(name="write", label="Write", baseline=0.0, run=_write_scratch,
                     inputs=("scratch_path",), uses_scratch_file=True),
            Workload(name="read", label="Read", baseline=0.0, run=_read_scratch,
                     inputs=("scratch_path",), output="content", uses_scratch_file=True),
            Workload(name="after", label="After", baseline=0.0, run=lambda: seen.append(1)),
        ]

        state = _suite(tmp_path, io.StringIO()).run(workloads)

        assert state["content"] == b"payload"
        assert os.path.isdir(tmp_path / "nested" / "data")
        assert not os.path.exists(state["scratch_path"])
        assert os.path.basename(state["scratch_path"]) == "test.om"
        assert seen

    def test_failure_stops_chain_and_removes_scratch_file(self, tmp_path):
        later = []

        def fail():
            raise RuntimeError("decode failed")

        workloads = [
            Workload(name="write", label="Write", baseline=0.0, run=_write_scratch,
                     inputs=("scratch_path",), uses_scratch_file=True),
            Workload(name="fail", label="Fail", baseline=0.0, run=fail),
            Workload(name="later", label="Later", baseline=0.0, run=lambda: later.append(1),
                     inputs=("scratch_path",), uses_scratch_file=True),
        ]
        stream = io.StringIO()

        with pytest.raises(RuntimeError, match="decode failed"):
            _suite(tmp_path, stream).run(workloads)

        assert later == []
        assert not os.path.exists(tmp_path / "nested" / "data" / "test.om")
        assert stream.getvalue().endswith("| Fail" + " " * 76 + " | ")

    def test_outputs_are_passed_unchanged(self, tmp_path):
        payload = b"compressed bytes"
        seen = []
        workloads = [
            Workload(name="produce", label="Produce", baseline=0.0, run=lambda: payload, output="compressed"),
            Workload(name="consume", label="Consume", baseline=0.0, run=lambda compressed: seen.append(compressed), inputs=("compressed",)),
        ]

        _suite(tmp_path, io.StringIO()).run(workloads)

        assert seen
        assert all(item is payload for item in seen)

    def test_missing_input_fails_before_output(self, tmp_path):
        stream = io.StringIO()
        workloads = [
            Workload(name="consume", label="Consume", baseline=0.0, run=lambda x: x, inputs=("x",)),
        ]

        with pytest.raises(KeyError, match="consume"):
            _suite(tmp_path, stream).run(workloads)
        assert stream.getvalue() == ""

    def test_time_budget(self, tmp_path):
        assert _suite(tmp_path, io.StringIO()).time_budget == BUDGET

    @pytest.mark.slow
    def test_default_chain(self, tmp_path):
        stream = io.StringIO()

        state = _suite(tmp_path, stream).run()

        lines = stream.getvalue().splitlines()
        assert len(lines) == 10
        assert len({len(line) for line in lines}) == 1
        assert {"series", "compressed", "radiation"} <= set(state)
        assert not os.path.exists(state["scratch_path"])


class TestValidateChain:
    def test_scratch_path_only_for_file_workloads(self):
        workloads = [Workload(name="read", label="Read", baseline=0.0, run=_read_scratch, inputs=("scratch_path",))]
        with pytest.raises(KeyError, match="scratch_path"):
            validate_chain(workloads)

    def test_output_of_later_workload_is_unavailable(self):
        workloads = [
            Workload(name="consume", label="C", baseline=0.0, run=lambda x: x, inputs=("x",)),
            Workload(name="produce", label="P", baseline=0.0, run=lambda: 1, output="x"),
        ]
        with pytest.raises(KeyError):
            validate_chain(workloads)


class TestScratchFile:
    def test_removes_file(self, tmp_path):
        with scratch_file(str(tmp_path / "a" / "b")) as path:
            _write_scratch(path)
            assert os.path.exists(path)
        assert not os.path.exists(path)

    def test_never_created_file_is_fine(self, tmp_path):
        with scratch_file(str(tmp_path)) as path:
            pass
        assert not os.path.exists(path)

    def test_inner_error_propagates(self, tmp_path):
        with pytest.raises(RuntimeError, match="inner"):
            with scratch_file(str(tmp_path)) as path:
                _write_scratch(path)
                raise RuntimeError("inner")
        assert not os.path.exists(path)
