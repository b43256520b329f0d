"""Benchmark registration and orchestration.

Provides the non-interactive benchmark runner that coordinates:
- Registering named zero-argument operations
- Loading benchmark suites from YAML
- Timing each benchmark for the suite's time limit
- Collecting and formatting the results
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from ssbench.stats import BenchmarkStats
from ssbench.timer import (
    DEFAULT_TIME_LIMIT,
    InvalidTimeLimitError,
    Operation,
    run_benchmark,
    validate_time_limit,
)
from ssbench.workloads import WorkloadError, load_target, make_workload

logger = logging.getLogger(__name__)

DEFAULT_SUITE_PATH = Path(__file__).parent / "suite.yaml"


class ConfigError(ValueError):
    """Raised when a suite configuration is malformed."""


@dataclass(frozen=True)
class Benchmark:
    """A named operation to measure.

    Attributes:
        name: Benchmark identifier shown in results.
        operation: Zero-argument callable under measurement.
        enabled: Whether the benchmark runs as part of the suite.
    """

    name: str
    operation: Operation
    enabled: bool = True


class BenchmarkRegistry:
    """Ordered collection of named benchmarks."""

    def __init__(self) -> None:
        self._benchmarks: dict[str, Benchmark] = {}

    def add_benchmark(
        self, name: str, operation: Operation, enabled: bool = True
    ) -> Benchmark:
        """Register an operation under a unique name."""
        if name in self._benchmarks:
            raise ValueError(f"Benchmark already registered: {name!r}")
        if not callable(operation):
            raise TypeError(f"Operation for {name!r} is not callable")
        benchmark = Benchmark(name=name, operation=operation, enabled=enabled)
        self._benchmarks[name] = benchmark
        return benchmark

    def get(self, name: str) -> Benchmark | None:
        return self._benchmarks.get(name)

    def names(self) -> list[str]:
        return list(self._benchmarks)

    def __iter__(self) -> Iterator[Benchmark]:
        return iter(self._benchmarks.values())

    def __len__(self) -> int:
        return len(self._benchmarks)

    def __contains__(self, name: object) -> bool:
        return name in self._benchmarks


@dataclass
class BenchmarkSuite:
    """Collection of benchmarks sharing a time limit.

    Attributes:
        name: Suite name.
        time_limit: Per-benchmark time limit in seconds.
        registry: Registered benchmarks.
    """

    name: str
    time_limit: float = DEFAULT_TIME_LIMIT
    registry: BenchmarkRegistry = field(default_factory=BenchmarkRegistry)


def _build_operation(bench_data: dict) -> Operation:
    params = {
        k: v
        for k, v in bench_data.items()
        if k not in ("name", "workload", "target", "enabled")
    }

    if "workload" in bench_data and "target" in bench_data:
        raise ConfigError(
            f"Benchmark {bench_data['name']!r}: use either 'workload' or 'target'"
        )

    try:
        if "target" in bench_data:
            if params:
                raise ConfigError(
                    f"Benchmark {bench_data['name']!r}: 'target' takes no parameters"
                )
            return load_target(bench_data["target"])
        if "workload" in bench_data:
            return make_workload(bench_data["workload"], **params)
    except WorkloadError as e:
        raise ConfigError(f"Benchmark {bench_data['name']!r}: {e}") from e

    raise ConfigError(
        f"Benchmark {bench_data['name']!r}: missing 'workload' or 'target'"
    )


def load_suite_config(config_path: Path | str) -> BenchmarkSuite:
    """Load benchmark suite configuration from YAML.

    Args:
        config_path: Path to suite.yaml file.

    Returns:
        BenchmarkSuite configuration.

    Raises:
        ConfigError: If the file does not describe a valid suite.
    """
    with Path(config_path).open() as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level")

    time_limit = data.get("time_limit", DEFAULT_TIME_LIMIT)
    try:
        validate_time_limit(time_limit)
    except InvalidTimeLimitError as e:
        raise ConfigError(f"{config_path}: {e}") from e

    suite = BenchmarkSuite(
        name=data.get("name", "benchmarks"),
        time_limit=float(time_limit),
    )

    benchmarks = data.get("benchmarks") or []
    if not isinstance(benchmarks, list):
        raise ConfigError(f"{config_path}: benchmarks must be a list")

    for bench_data in benchmarks:
        if not isinstance(bench_data, dict) or not bench_data.get("name"):
            raise ConfigError(f"{config_path}: every benchmark needs a name")

        enabled = bench_data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ConfigError(
                f"{config_path}: benchmark {bench_data['name']!r}: "
                "enabled must be true or false"
            )

        operation = _build_operation(bench_data)
        try:
            suite.registry.add_benchmark(
                bench_data["name"],
                operation,
                enabled=enabled,
            )
        except ValueError as e:
            raise ConfigError(f"{config_path}: {e}") from e

    logger.debug(
        "Loaded suite %r with %d benchmarks from %s",
        suite.name,
        len(suite.registry),
        config_path,
    )
    return suite


@dataclass
class BenchmarkRunResult:
    """Result of running a single benchmark.

    Attributes:
        benchmark: Benchmark name.
        stats: Timing statistics (None if the benchmark failed).
        error: Error message if failed.
    """

    benchmark: str
    stats: BenchmarkStats | None = None
    error: str | None = None


@dataclass
class BenchmarkProgress:
    """Progress callback information.

    Attributes:
        benchmark: Current benchmark name.
        phase: Current phase ("timing", "done", "failed").
        index: Position of the benchmark in this run (1-based).
        total: Number of benchmarks in this run.
    """

    benchmark: str
    phase: str
    index: int
    total: int


# Type for progress callbacks
ProgressCallback = Callable[[BenchmarkProgress], None]


@dataclass
class BenchmarkRunner:
    """Runs benchmarks one after another on the calling thread.

    Attributes:
        time_limit: Per-benchmark time limit in seconds.
        progress_callback: Optional callback for progress updates.
    """

    time_limit: float = DEFAULT_TIME_LIMIT
    progress_callback: ProgressCallback | None = None

    def _report(self, benchmark: Benchmark, phase: str, index: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(
                BenchmarkProgress(
                    benchmark=benchmark.name, phase=phase, index=index, total=total
                )
            )

    def run_benchmark(
        self, benchmark: Benchmark, index: int = 1, total: int = 1
    ) -> BenchmarkRunResult:
        """Time a single benchmark.

        A failing operation ends that benchmark only; the failure is
        recorded in the returned result.
        """
        self._report(benchmark, "timing", index, total)

        try:
            stats = run_benchmark(benchmark.operation, self.time_limit)
        except Exception as e:
            logger.warning("Benchmark %r failed: %s", benchmark.name, e)
            self._report(benchmark, "failed", index, total)
            return BenchmarkRunResult(benchmark=benchmark.name, error=str(e) or repr(e))

        self._report(benchmark, "done", index, total)
        return BenchmarkRunResult(benchmark=benchmark.name, stats=stats)

    def run_all(
        self,
        registry: BenchmarkRegistry,
        benchmark_filter: str | None = None,
    ) -> list[BenchmarkRunResult]:
        """Run all enabled benchmarks in a registry.

        Args:
            registry: Benchmarks to run.
            benchmark_filter: If provided, only run this benchmark
                (even if it is disabled).

        Returns:
            Every run result in order, including failures.
        """
        if benchmark_filter:
            selected = [b for b in registry if b.name == benchmark_filter]
        else:
            selected = [b for b in registry if b.enabled]

        return [
            self.run_benchmark(benchmark, index, len(selected))
            for index, benchmark in enumerate(selected, start=1)
        ]


def format_results_table(results: list[BenchmarkRunResult]) -> str:
    """Format benchmark results as a table.

    Args:
        results: Run results, in display order.

    Returns:
        Formatted table string.
    """
    lines = []

    lines.append("=" * 80)
    lines.append("BENCHMARK RESULTS")
    lines.append("=" * 80)

    name_width = max([30, *(len(r.benchmark) for r in results)])
    lines.append(
        f"{'Benchmark':<{name_width}} {'Mean (us)':>12} {'Stdev (us)':>12} "
        f"{'Runs':>10} {'CV':>8}"
    )
    lines.append("-" * (name_width + 46))

    for result in results:
        if result.stats is None:
            lines.append(f"{result.benchmark:<{name_width}} FAILED: {result.error}")
            continue
        stats = result.stats
        lines.append(
            f"{result.benchmark:<{name_width}} {stats.mean / 1000:>12.2f} "
            f"{stats.stddev / 1000:>12.2f} {stats.runs:>10} {stats.cv * 100:>7.2f}%"
        )

    return "\n".join(lines)
