#!/usr/bin/env python3
"""
Statistics Reducer.

Turns a MeasurementResult into the display strings of one table row and the
difference of its mean to a recorded baseline.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .formatting import format_duration

if TYPE_CHECKING:
    from .measure import MeasurementResult


@dataclass(frozen=True)
class StatisticsRow:
    """Rendered statistics for one workload."""
    mean: str
    min: str
    max: str
    runs: str
    diff: str
    diff_seconds: float

    def cells(self) -> list[str]:
        return [self.mean, self.min, self.max, self.runs, self.diff]


def format_diff(diff_seconds: float) -> str:
    """Render a signed difference with an explicit ``+`` for slower results."""
    prefix = "+" if diff_seconds > 0 else ""
    return f"{prefix}{format_duration(diff_seconds)}"


def reduce_statistics(result: "MeasurementResult", baseline: float) -> StatisticsRow:
    """Render ``result`` and compare its mean to ``baseline`` seconds.

    Parameters
    ----------
    result : MeasurementResult
        Timings produced by the measurement engine.
    baseline : float
        Reference mean duration in seconds.

    Returns
    -------
    StatisticsRow
        Display strings for mean, min, max, runs and diff.
    """
    diff_seconds = result.mean - baseline
    return StatisticsRow(
        mean=format_duration(result.mean),
        min=format_duration(result.min),
        max=format_duration(result.max),
        runs=str(result.count),
        diff=format_diff(diff_seconds),
        diff_seconds=diff_seconds,
    )
