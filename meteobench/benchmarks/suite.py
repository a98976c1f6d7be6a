#!/usr/bin/env python3
"""
Benchmark Driver.

Runs the workload chain strictly in order, one workload at a time, and keeps
the chain state (outputs of earlier workloads) between steps. The scratch
file used by file-based workloads exists only from the first to the last
workload that needs it and is removed on every exit path.
"""

import contextlib
import logging
import time
from typing import Any, Callable, Iterator, Optional, Sequence

import fsspec
from fsspec.implementations.local import LocalFileSystem

from ..config import BenchmarkConfig
from .measure import Benchmark
from .reporting import TableReporter
from .workloads import Workload, default_workloads

logger = logging.getLogger(__name__)

SCRATCH_FILE_NAME = "test.om"


@contextlib.contextmanager
def scratch_file(directory: str, name: str = SCRATCH_FILE_NAME) -> Iterator[str]:
    """Provide a scratch file path and remove the file afterwards.

    The directory is created with parents. Removal is best effort: a failure
    to delete the file never replaces an error raised inside the block.

    Parameters
    ----------
    directory : str
        Directory (local path or fsspec URL) for the file.
    name : str
        File name (default: test.om).

    Yields
    ------
    str
        Path of the scratch file.
    """
    fs, root = fsspec.core.url_to_fs(str(directory))
    fs.makedirs(root, exist_ok=True)
    target = f"{root.rstrip('/')}/{name}"
    path = target if isinstance(fs, LocalFileSystem) else fs.unstrip_protocol(target)
    logger.debug(f"Scratch file: {path}")
    try:
        yield path
    finally:
        with contextlib.suppress(OSError):
            fs.rm(target)
            logger.debug(f"Removed scratch file {path}")


def validate_chain(workloads: Sequence[Workload]) -> None:
    """Check that every input is produced by an earlier workload.

    ``scratch_path`` is provided to workloads that use the scratch file.

    Raises
    ------
    KeyError
        Naming the first workload with an unavailable input.
    """
    available = set()
    for workload in workloads:
        provided = available | ({"scratch_path"} if workload.uses_scratch_file else set())
        missing = [key for key in workload.inputs if key not in provided]
        if missing:
            raise KeyError(f"Workload '{workload.name}' is missing inputs: {', '.join(missing)}")
        if workload.output is not None:
            available.add(workload.output)


class BenchmarkSuite:
    """Runs a sequence of workloads through the measurement engine.

    Parameters
    ----------
    time_budget : float
        Sampling time per workload in seconds.
    config : BenchmarkConfig, optional
        Run configuration (default: BenchmarkConfig()).
    reporter : TableReporter, optional
        Table output (default: stdout with the configured reference name).
    clock : callable
        Monotonic clock returning integer nanoseconds.

    Examples
    --------
    >>> suite = BenchmarkSuite(time_budget=5)
    >>> state = suite.run()
    """

    def __init__(
        self,
        time_budget: float,
        config: Optional[BenchmarkConfig] = None,
        reporter: Optional[TableReporter] = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        self.config = config or BenchmarkConfig()
        self.reporter = reporter or TableReporter(reference_name=self.config.reference_name)
        self.benchmark = Benchmark(time_budget, reporter=self.reporter, clock=clock)

    @property
    def time_budget(self) -> float:
        return self.benchmark.time_budget

    def run(self, workloads: Optional[Sequence[Workload]] = None) -> dict[str, Any]:
        """Measure every workload in order and print one row each.

        Any workload failure stops the chain and propagates; the workloads
        after it never run.

        Returns
        -------
        dict
            Final chain state: every declared output plus ``scratch_path``
            if file-based workloads ran.
        """
        if workloads is None:
            workloads = default_workloads(self.config)

        validate_chain(workloads)
        file_steps = [i for i, w in enumerate(workloads) if w.uses_scratch_file]
        first_file_step = file_steps[0] if file_steps else None
        last_file_step = file_steps[-1] if file_steps else None

        state: dict[str, Any] = {}
        self.reporter.print_header()

        with contextlib.ExitStack() as stack:
            for position, workload in enumerate(workloads):
                if position == first_file_step:
                    state["scratch_path"] = stack.enter_context(scratch_file(self.config.data_dir))

                logger.info(f"Running workload {position + 1}/{len(workloads)}: {workload.name}")
                operation = workload.bind(state)
                value = self.benchmark.measure(workload.describe(state), workload.baseline, operation)
                if workload.output is not None:
                    state[workload.output] = value

                if position == last_file_step:
                    stack.close()

        return state
