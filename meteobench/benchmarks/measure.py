#!/usr/bin/env python3
"""
Measurement Engine.

Runs a zero-argument operation repeatedly until a wall-clock time budget is
exhausted and aggregates the per-iteration timings.

The first call is a warm-up: its value is kept, its duration is not. The
sampling loop runs at least once and checks the deadline only between full
iterations, so a slow operation always completes and the last iteration may
overshoot the deadline by up to one operation duration.
"""

import math
import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TYPE_CHECKING

from .stats import reduce_statistics

if TYPE_CHECKING:
    from .reporting import TableReporter

logger = logging.getLogger(__name__)

NANOSECONDS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class MeasurementResult:
    """Aggregated timings of one sampled operation (seconds)."""
    mean: float
    min: float
    max: float
    count: int
    total_elapsed: float


def sample(
    operation: Callable[[], Any],
    time_budget: float,
    clock: Callable[[], int] = time.perf_counter_ns,
) -> tuple[MeasurementResult, Any]:
    """Time ``operation`` until ``time_budget`` seconds have passed.

    Parameters
    ----------
    operation : callable
        Zero-argument callable. Exceptions propagate unchanged and discard
        any partial statistics.
    time_budget : float
        Sampling time in seconds. Must be positive.
    clock : callable
        Monotonic clock returning integer nanoseconds.

    Returns
    -------
    tuple
        (MeasurementResult, value returned by the last timed call)
    """
    if time_budget <= 0:
        raise ValueError(f"time_budget must be positive, got {time_budget}")

    # Warm-up, not timed
    value = operation()

    start = clock()
    deadline = start + round(time_budget * NANOSECONDS_PER_SECOND)
    fastest = math.inf
    slowest = 0
    count = 0

    # Each iteration is timed from the end of the previous one, so the
    # iteration durations add up to the total span exactly.
    previous = start
    while True:
        value = operation()
        now = clock()
        elapsed = now - previous
        previous = now
        if elapsed < fastest:
            fastest = elapsed
        if elapsed > slowest:
            slowest = elapsed
        count += 1
        if now > deadline:
            break

    total = previous - start
    result = MeasurementResult(
        mean=total / count / NANOSECONDS_PER_SECOND,
        min=fastest / NANOSECONDS_PER_SECOND,
        max=slowest / NANOSECONDS_PER_SECOND,
        count=count,
        total_elapsed=total / NANOSECONDS_PER_SECOND,
    )
    return result, value


class Benchmark:
    """Measures labelled operations and emits one table row per operation.

    Parameters
    ----------
    time_budget : float
        Sampling time per operation in seconds.
    reporter : TableReporter, optional
        Destination for the rows. Without a reporter nothing is printed.
    clock : callable
        Monotonic clock returning integer nanoseconds.
    """

    def __init__(
        self,
        time_budget: float,
        reporter: Optional["TableReporter"] = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        if time_budget <= 0:
            raise ValueError(f"time_budget must be positive, got {time_budget}")
        self.time_budget = time_budget
        self.reporter = reporter
        self.clock = clock

    def measure(self, label: str, baseline: float, operation: Callable[[], Any]) -> Any:
        """Sample ``operation`` and report it against ``baseline`` seconds.

        Returns the value of the last timed call.
        """
        if self.reporter is not None:
            self.reporter.begin_row(label)

        result, value = sample(operation, self.time_budget, clock=self.clock)
        logger.debug(
            f"{label}: mean={result.mean:.6f}s min={result.min:.6f}s "
            f"max={result.max:.6f}s runs={result.count}"
        )

        if self.reporter is not None:
            self.reporter.finish_row(reduce_statistics(result, baseline))
        return value
