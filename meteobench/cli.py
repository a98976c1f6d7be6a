#!/usr/bin/env python3
"""
Command line entry point.

Usage:
  meteobench benchmark            # 5 seconds per workload
  meteobench benchmark -t 1       # 1 second per workload

Environment variables (see meteobench.config):
  METEOBENCH_DATA_DIR, METEOBENCH_SIZE_MB, METEOBENCH_LOG_LEVEL
"""

import argparse
import logging
from typing import Optional, Sequence

from .config import BenchmarkConfig, configure_logging

logger = logging.getLogger(__name__)

DEFAULT_TIME_PER_TEST = 5


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number of seconds, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meteobench",
        description="Benchmark weather data core functions like data manipulation and compression.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run all workloads with the default 5 seconds each
  %(prog)s benchmark

  # Quick run with 1 second per workload
  %(prog)s benchmark --time 1
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    benchmark = subparsers.add_parser(
        "benchmark",
        help="Benchmark data generation, compression and solar radiation functions",
    )
    benchmark.add_argument(
        "-t", "--time",
        type=_positive_int,
        default=DEFAULT_TIME_PER_TEST,
        help=f"Time per test in seconds (default: {DEFAULT_TIME_PER_TEST})",
    )
    return parser


def run_benchmark(time_per_test: int, config: BenchmarkConfig) -> int:
    """Run the benchmark chain; return the process exit status."""
    from .benchmarks.suite import BenchmarkSuite

    suite = BenchmarkSuite(time_budget=time_per_test, config=config)
    try:
        suite.run()
    except Exception as e:
        suite.reporter.abort_row()
        logger.exception(f"Benchmark failed: {e}")
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)

    try:
        config = BenchmarkConfig.from_env()
    except ValueError as e:
        configure_logging()
        logger.error(str(e))
        return 1

    configure_logging(config.log_level)
    logger.info(f"Time per test: {args.time}s, data directory: {config.data_dir}, size: {config.size_mb} MB")

    if args.command == "benchmark":
        return run_benchmark(args.time, config)
    return 1


if __name__ == "__main__":
    exit(main())
