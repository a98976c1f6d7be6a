#!/usr/bin/env python3
"""
Benchmark Configuration Module.

Holds the run-wide settings that are fixed before the first workload starts.
Values come from keyword arguments or from environment variables:

- METEOBENCH_DATA_DIR: directory for the scratch file (default: ./data/)
- METEOBENCH_SIZE_MB: size of the generated timeseries in MB (default: 128)
- METEOBENCH_LOG_LEVEL: log level name for stderr logging (default: WARNING)
"""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "./data/"
DEFAULT_SIZE_MB = 128
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_REFERENCE_NAME = "Apple M1"


@dataclass(frozen=True)
class BenchmarkConfig:
    """Configuration for a benchmark run.

    Parameters
    ----------
    data_dir : str
        Directory where the scratch file for file-based workloads is created.
    size_mb : int
        Size of the generated temperature timeseries in MB (float32 values).
    log_level : str
        Log level name used by the command line entry point.
    reference_name : str
        Name of the machine the baselines were recorded on.
    columns : int
        Number of columns the generated series is reshaped to for encoding.
    """
    data_dir: str = DEFAULT_DATA_DIR
    size_mb: int = DEFAULT_SIZE_MB
    log_level: str = DEFAULT_LOG_LEVEL
    reference_name: str = DEFAULT_REFERENCE_NAME
    columns: int = 1024

    def __post_init__(self):
        if self.size_mb <= 0:
            raise ValueError(f"size_mb must be positive, got {self.size_mb}")
        if self.columns <= 0:
            raise ValueError(f"columns must be positive, got {self.columns}")

    @property
    def element_count(self) -> int:
        """Number of float32 values in the generated series."""
        return 1024 * 1024 // 4 * self.size_mb

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BenchmarkConfig":
        """Build a configuration from METEOBENCH_* environment variables.

        Parameters
        ----------
        environ : Mapping[str, str], optional
            Environment to read from. Defaults to ``os.environ``.

        Returns
        -------
        BenchmarkConfig
            Configuration with defaults for unset variables.

        Raises
        ------
        ValueError
            If METEOBENCH_SIZE_MB is not a positive integer.
        """
        if environ is None:
            environ = os.environ

        size_raw = environ.get("METEOBENCH_SIZE_MB")
        size_mb = DEFAULT_SIZE_MB
        if size_raw:
            try:
                size_mb = int(size_raw)
            except ValueError:
                raise ValueError(
                    f"METEOBENCH_SIZE_MB must be an integer, got {size_raw!r}"
                ) from None

        return cls(
            data_dir=environ.get("METEOBENCH_DATA_DIR") or DEFAULT_DATA_DIR,
            size_mb=size_mb,
            log_level=(environ.get("METEOBENCH_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send log records to stderr so stdout only carries the result table."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
