"""
Benchmarking framework for weather data core functions.

Provides:
- Measurement engine with warm-up and deadline-bounded sampling
- Statistics reduction against recorded baselines
- Fixed-width table reporting
- The ordered workload chain and its driver
"""

from .formatting import format_duration
from .measure import Benchmark, MeasurementResult, sample
from .stats import StatisticsRow, reduce_statistics
from .reporting import TableReporter, table_columns
from .workloads import Workload, default_workloads
from .suite import BenchmarkSuite, scratch_file

__all__ = [
    "format_duration",
    "Benchmark",
    "MeasurementResult",
    "sample",
    "StatisticsRow",
    "reduce_statistics",
    "TableReporter",
    "table_columns",
    "Workload",
    "default_workloads",
    "BenchmarkSuite",
    "scratch_file",
]
