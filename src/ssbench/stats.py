"""Statistical accumulation for benchmark iterations.

Provides tools for computing iteration-latency statistics with:
- Welford's single-pass running mean and variance
- Min/max tracking of individual iteration times
- An immutable summary record delivered once per run
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Nanoseconds per display unit
_UNIT_SCALE = {
    "ns": 1.0,
    "us": 1e3,
    "ms": 1e6,
    "s": 1e9,
}


@dataclass(frozen=True)
class BenchmarkStats:
    """Statistical summary of one benchmark run.

    Attributes:
        mean: Mean iteration time in nanoseconds.
        stddev: Sample standard deviation of iteration times in nanoseconds.
        runs: Number of iterations measured.
        min: Fastest iteration in nanoseconds.
        max: Slowest iteration in nanoseconds.
    """

    mean: float
    stddev: float
    runs: int = 0
    min: float = 0.0
    max: float = 0.0

    @property
    def cv(self) -> float:
        """Coefficient of variation (stddev/mean)."""
        return self.stddev / self.mean if self.mean > 0 else 0.0


@dataclass
class RunningStats:
    """Incremental mean/variance accumulator (Welford's algorithm).

    Attributes:
        count: Number of samples added.
        mean: Running mean of the samples.
        m2: Running sum of squared deviations from the mean.
        min: Smallest sample seen.
        max: Largest sample seen.
    """

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0
    min: float = math.inf
    max: float = -math.inf

    def add(self, sample: float) -> None:
        """Add one sample.

        The deviation is taken against the mean before it is updated, and
        multiplied by the residual against the updated mean.
        """
        self.count += 1
        delta = sample - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (sample - self.mean)

        if sample < self.min:
            self.min = sample
        if sample > self.max:
            self.max = sample

    @property
    def variance(self) -> float:
        """Sample variance (divides by count - 1); 0.0 for a single sample."""
        if self.count < 1:
            raise ValueError("No samples recorded")
        if self.count == 1:
            return 0.0
        return self.m2 / (self.count - 1)

    @property
    def stddev(self) -> float:
        """Sample standard deviation."""
        return math.sqrt(self.variance)

    def to_stats(self) -> BenchmarkStats:
        """Freeze the accumulator into a BenchmarkStats summary."""
        return BenchmarkStats(
            mean=self.mean,
            stddev=self.stddev,
            runs=self.count,
            min=float(self.min),
            max=float(self.max),
        )


def format_stats(stats: BenchmarkStats, unit: str = "us") -> str:
    """Format benchmark statistics for display.

    Args:
        stats: Benchmark statistics to format.
        unit: Time unit for display ("ns", "us", "ms" or "s").

    Returns:
        Formatted string like "12.4us +/- 0.8us (CV=6.45%, 40213 runs)".
    """
    try:
        scale = _UNIT_SCALE[unit]
    except KeyError:
        raise ValueError(f"Unknown time unit: {unit!r}") from None

    mean = stats.mean / scale
    stddev = stats.stddev / scale
    cv_pct = stats.cv * 100

    return f"{mean:.1f}{unit} +/- {stddev:.1f}{unit} (CV={cv_pct:.2f}%, {stats.runs} runs)"
