"""Latency benchmark harness.

This package times repeated calls to zero-argument operations with:
- A fixed wall-clock budget per benchmark
- Single-pass running mean and standard deviation
- Background execution with a single completion callback
- YAML-configured benchmark suites
"""

from __future__ import annotations

from ssbench.runner import (
    BenchmarkRegistry,
    BenchmarkRunner,
    BenchmarkRunResult,
    BenchmarkSuite,
    ConfigError,
    load_suite_config,
)
from ssbench.stats import BenchmarkStats, RunningStats
from ssbench.timer import (
    DEFAULT_TIME_LIMIT,
    BenchmarkCancelledError,
    BenchmarkError,
    InvalidTimeLimitError,
    run_benchmark,
    run_benchmark_in_background,
    validate_time_limit,
)

__all__ = [
    "DEFAULT_TIME_LIMIT",
    "BenchmarkCancelledError",
    "BenchmarkError",
    "BenchmarkRegistry",
    "BenchmarkRunResult",
    "BenchmarkRunner",
    "BenchmarkStats",
    "BenchmarkSuite",
    "ConfigError",
    "InvalidTimeLimitError",
    "RunningStats",
    "load_suite_config",
    "run_benchmark",
    "run_benchmark_in_background",
    "validate_time_limit",
]
