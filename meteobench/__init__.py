"""
Micro-benchmarks for weather data core functions.

This package provides tools for:
- Chunked, scale-factor compressed array encoding
- Extraterrestrial solar radiation timeseries
- Timing workloads against recorded baselines
"""

from .config import (
    BenchmarkConfig,
    configure_logging,
)

from .omfile import (
    CompressionType,
    OmFileError,
    OmFileReader,
    OmFileWriter,
)

from .solar import (
    InterpolationType,
    TimeRange,
    extra_terrestrial_radiation_backwards,
    interpolate,
)

__all__ = [
    # Configuration
    "BenchmarkConfig",
    "configure_logging",
    # Codec
    "CompressionType",
    "OmFileError",
    "OmFileReader",
    "OmFileWriter",
    # Solar radiation
    "InterpolationType",
    "TimeRange",
    "extra_terrestrial_radiation_backwards",
    "interpolate",
]
