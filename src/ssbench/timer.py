"""Benchmark timer.

Provides the timing loop that measures a zero-argument operation:
- Repeats the operation until a wall-clock budget is spent
- Accumulates iteration statistics in a single pass
- Delivers (mean, stddev) to a completion callback exactly once
- Optionally runs the loop on a background worker
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from ssbench.stats import BenchmarkStats, RunningStats

logger = logging.getLogger(__name__)

# Time limit to run each benchmark, in seconds
DEFAULT_TIME_LIMIT = 5.0

# Type for the measured unit of work
Operation = Callable[[], object]

# Type for result callbacks: (mean_ns, stddev_ns)
ResultListener = Callable[[float, float], None]

# Type for nanosecond clocks
Clock = Callable[[], int]

# Hook that schedules a call on the caller's context, e.g. loop.call_soon_threadsafe
Post = Callable[..., object]


class BenchmarkError(Exception):
    """Base class for benchmark timer errors."""


class InvalidTimeLimitError(BenchmarkError, ValueError):
    """Raised when a time limit is not a positive, finite number of seconds."""


class BenchmarkCancelledError(BenchmarkError):
    """Raised when a run is cancelled before its time limit is reached."""


def validate_time_limit(time_limit: float) -> int:
    """Check the time limit and convert it to nanoseconds.

    Raises:
        InvalidTimeLimitError: If time_limit is not a positive, finite
            number of seconds.
    """
    if isinstance(time_limit, bool):
        valid = False
    else:
        try:
            valid = time_limit > 0 and math.isfinite(time_limit)
        except TypeError:
            valid = False
    if not valid:
        raise InvalidTimeLimitError(
            f"Time limit must be a positive number of seconds, got {time_limit!r}"
        )
    return int(time_limit * 1e9)


def run_benchmark(
    operation: Operation,
    time_limit: float = DEFAULT_TIME_LIMIT,
    on_result: ResultListener | None = None,
    *,
    clock: Clock = time.perf_counter_ns,
    cancel_event: threading.Event | None = None,
) -> BenchmarkStats:
    """Run an operation repeatedly until the time limit is exceeded.

    The operation always runs at least once: the time limit is checked
    after each iteration. Exceptions raised by the operation propagate
    unchanged and no result is delivered.

    Args:
        operation: Zero-argument callable to measure.
        time_limit: Minimum wall-clock duration of the run, in seconds.
        on_result: Called once with (mean, stddev) in nanoseconds.
        clock: Monotonic clock returning integer nanoseconds.
        cancel_event: If set at an iteration boundary, the run is abandoned.

    Returns:
        BenchmarkStats for the run.

    Raises:
        InvalidTimeLimitError: If time_limit is not positive and finite.
        BenchmarkCancelledError: If cancel_event was set during the run.
    """
    limit_ns = validate_time_limit(time_limit)
    running = RunningStats()

    logger.debug("Starting benchmark run (time limit %.3fs)", time_limit)
    start_time = clock()

    while True:
        iteration_start = clock()
        operation()
        elapsed = clock() - iteration_start

        running.add(float(elapsed))

        if clock() - start_time > limit_ns:
            break
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("Benchmark run cancelled after %d iterations", running.count)
            raise BenchmarkCancelledError(
                f"Benchmark cancelled after {running.count} iterations"
            )

    stats = running.to_stats()
    logger.debug(
        "Benchmark run finished: %d iterations, mean %.1fns, stddev %.1fns",
        stats.runs,
        stats.mean,
        stats.stddev,
    )

    if on_result is not None:
        on_result(stats.mean, stats.stddev)
    return stats


def run_benchmark_in_background(
    operation: Operation,
    on_result: ResultListener | None = None,
    time_limit: float = DEFAULT_TIME_LIMIT,
    *,
    executor: Executor | None = None,
    post: Post | None = None,
    clock: Clock = time.perf_counter_ns,
    cancel_event: threading.Event | None = None,
) -> Future[BenchmarkStats]:
    """Run a benchmark on a worker thread.

    The result callback fires once, after the loop has terminated. With a
    ``post`` hook the callback is handed to it (so it can run on the
    caller's thread); otherwise it runs on the worker.

    Args:
        operation: Zero-argument callable to measure.
        on_result: Called once with (mean, stddev) in nanoseconds.
        time_limit: Minimum wall-clock duration of the run, in seconds.
        executor: Executor to submit to (default: a private single worker).
        post: Hook called as ``post(on_result, mean, stddev)``.
        clock: Monotonic clock returning integer nanoseconds.
        cancel_event: If set at an iteration boundary, the run is abandoned.

    Returns:
        Future resolving to the run's BenchmarkStats, or carrying the
        operation's exception.
    """
    # Reject bad limits on the caller's thread rather than in the future
    validate_time_limit(time_limit)

    def _work() -> BenchmarkStats:
        stats = run_benchmark(
            operation, time_limit, clock=clock, cancel_event=cancel_event
        )
        if on_result is not None:
            if post is not None:
                post(on_result, stats.mean, stats.stddev)
            else:
                on_result(stats.mean, stats.stddev)
        return stats

    if executor is not None:
        return executor.submit(_work)

    own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ssbench")
    try:
        return own_executor.submit(_work)
    finally:
        own_executor.shutdown(wait=False)
