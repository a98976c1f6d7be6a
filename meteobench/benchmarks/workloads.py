#!/usr/bin/env python3
"""
Benchmark workload definitions.

Each workload declares the chain-state entries it reads (``inputs``) and the
entry it produces (``output``). The default chain:

1. generate               -> series
2. compress_large_chunks  <- series
3. compress_small_chunks  <- series        -> compressed
4. decompress_memory      <- compressed
5. compress_file          <- series, scratch_path
6. decompress_file        <- scratch_path
7. solar_radiation                         -> radiation
8. interpolate_radiation  <- radiation

Baselines are mean durations recorded on an Apple M1 with the 128 MB default.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

import numpy as np
import pandas as pd

from ..config import BenchmarkConfig
from ..omfile import CompressionType, OmFileReader, OmFileWriter
from ..solar import (
    InterpolationType,
    TimeRange,
    extra_terrestrial_radiation_backwards,
    interpolate,
)

LARGE_CHUNKS = (1024, 1024)
SMALL_CHUNKS = (8, 128)
SCALEFACTOR = 20
COMPRESSION = CompressionType.QUANTIZED_DELTA

RADIATION_LATITUDE = 52.0
RADIATION_LONGITUDE = 7.0
RADIATION_TIME = TimeRange(pd.Timestamp(1900, 1, 1), pd.Timestamp(2000, 1, 1), 3600)
INTERPOLATION_DT = 900
INTERPOLATION_SCALEFACTOR = 100


@dataclass(frozen=True)
class Workload:
    """One named step of the benchmark chain.

    Parameters
    ----------
    name : str
        Identifier used in logs.
    label : str or callable
        Row label. A string is formatted with the chain state, a callable
        receives the chain state.
    baseline : float
        Reference mean duration in seconds.
    run : callable
        Operation taking the declared inputs as keyword arguments.
    inputs : tuple[str, ...]
        Chain-state entries passed to ``run``.
    output : str, optional
        Chain-state entry that receives the result of the last timed call.
    uses_scratch_file : bool
        Whether the scratch file must exist while this workload runs.
    """
    name: str
    label: Union[str, Callable[[Mapping[str, Any]], str]]
    baseline: float
    run: Callable[..., Any]
    inputs: tuple = ()
    output: Optional[str] = None
    uses_scratch_file: bool = False

    def describe(self, state: Mapping[str, Any]) -> str:
        if callable(self.label):
            return self.label(state)
        return self.label.format(**state)

    def bind(self, state: Mapping[str, Any]) -> Callable[[], Any]:
        """Zero-argument operation closing over the current inputs."""
        missing = [key for key in self.inputs if key not in state]
        if missing:
            raise KeyError(f"Workload '{self.name}' is missing inputs: {', '.join(missing)}")
        kwargs = {key: state[key] for key in self.inputs}
        return lambda: self.run(**kwargs)


def generate_temperature_series(count: int) -> np.ndarray:
    """Synthetic hourly temperature with daily, yearly and weekly cycles."""
    x = np.arange(count, dtype=np.float32)
    return (
        np.sin(x * np.float32(np.pi / 24)) * 10
        + np.sin(x * np.float32(np.pi / 24 / 365.25)) * 15
        + np.sin(x * np.float32(np.pi / 7))
    ).astype(np.float32)


def _writer(series: np.ndarray, columns: int, chunks: tuple) -> OmFileWriter:
    return OmFileWriter(dim0=series.size // columns, dim1=columns, chunk0=chunks[0], chunk1=chunks[1])


def compress_in_memory(series: np.ndarray, columns: int, chunks: tuple) -> bytes:
    return _writer(series, columns, chunks).write_in_memory(COMPRESSION, SCALEFACTOR, series)


def compress_to_file(series: np.ndarray, scratch_path: str, columns: int, chunks: tuple) -> None:
    _writer(series, columns, chunks).write(scratch_path, COMPRESSION, SCALEFACTOR, series, overwrite=True)


def decompress_from_memory(compressed: bytes) -> np.ndarray:
    return OmFileReader(compressed).read_all()


def decompress_from_file(scratch_path: str) -> np.ndarray:
    return OmFileReader.from_file(scratch_path).read_all()


def compute_radiation(timerange: TimeRange = RADIATION_TIME):
    return extra_terrestrial_radiation_backwards(RADIATION_LATITUDE, RADIATION_LONGITUDE, timerange)


def interpolate_radiation(radiation, timerange: TimeRange = RADIATION_TIME, dt_seconds: int = INTERPOLATION_DT):
    # New intervals start where the first old interval starts
    time_new = timerange.shifted(-timerange.dt_seconds + dt_seconds).with_dt(dt_seconds)
    return interpolate(
        radiation,
        InterpolationType.SOLAR_BACKWARDS_AVERAGED,
        time_old=timerange,
        time_new=time_new,
        latitude=RADIATION_LATITUDE,
        longitude=RADIATION_LONGITUDE,
        scalefactor=INTERPOLATION_SCALEFACTOR,
    )


def _compressed_label(state: Mapping[str, Any]) -> str:
    size_mb = len(state["compressed"]) // 1024 // 1024
    return f"Decompress from memory, small chunks ({size_mb} MB)"


def default_workloads(config: BenchmarkConfig) -> list[Workload]:
    """The benchmark chain in execution order."""
    count = config.element_count
    columns = config.columns
    if count % columns:
        raise ValueError(f"{count} values cannot be split into rows of {columns} columns")

    return [
        Workload(
            name="generate",
            label=f"Generating dummy temperature timeseries ({config.size_mb} MB)",
            baseline=0.271,
            run=lambda: generate_temperature_series(count),
            output="series",
        ),
        Workload(
            name="compress_large_chunks",
            label="Compression in memory, large chunks",
            baseline=0.174,
            run=lambda series: compress_in_memory(series, columns, LARGE_CHUNKS),
            inputs=("series",),
        ),
        Workload(
            name="compress_small_chunks",
            label="Compression in memory, small chunks",
            baseline=0.179,
            run=lambda series: compress_in_memory(series, columns, SMALL_CHUNKS),
            inputs=("series",),
            output="compressed",
        ),
        Workload(
            name="decompress_memory",
            label=_compressed_label,
            baseline=0.054,
            run=decompress_from_memory,
            inputs=("compressed",),
        ),
        Workload(
            name="compress_file",
            label="Compress to file, small chunks",
            baseline=0.241,
            run=lambda series, scratch_path: compress_to_file(series, scratch_path, columns, SMALL_CHUNKS),
            inputs=("series", "scratch_path"),
            uses_scratch_file=True,
        ),
        Workload(
            name="decompress_file",
            label="Decompress from file, small chunks",
            baseline=0.055,
            run=decompress_from_file,
            inputs=("scratch_path",),
            uses_scratch_file=True,
        ),
        Workload(
            name="solar_radiation",
            label="Calculate extra terrestrial radiation (100 years, hourly)",
            baseline=0.046,
            run=compute_radiation,
            output="radiation",
        ),
        Workload(
            name="interpolate_radiation",
            label="Interpolate radiation to 15 minutes",
            baseline=0.246,
            run=interpolate_radiation,
            inputs=("radiation",),
        ),
    ]
