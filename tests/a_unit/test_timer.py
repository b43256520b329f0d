"""Unit tests for ssbench.timer module."""

from __future__ import annotations

import math
import statistics
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from ssbench.timer import (
    BenchmarkCancelledError,
    InvalidTimeLimitError,
    run_benchmark,
    run_benchmark_in_background,
    validate_time_limit,
)

MS = 1_000_000  # nanoseconds


class FakeClock:
    """Clock that only moves when an operation advances it."""

    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now

    def advance(self, ns: int) -> None:
        self.now += ns


def timed_operation(clock: FakeClock, durations: list[int]):
    """Operation whose k-th call takes durations[k] nanoseconds."""
    calls = iter(durations)

    def operation() -> None:
        clock.advance(next(calls))

    return operation


def limit_covering(durations: list[int]) -> float:
    """Time limit (s) that stops exactly after the last duration."""
    return (sum(durations) - MS // 2) / 1e9


class ResultRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple[float, float]] = []

    def __call__(self, mean: float, stdev: float) -> None:
        self.calls.append((mean, stdev))


class TestRunBenchmark:
    """Tests for run_benchmark with a fake clock."""

    def test_single_sample(self) -> None:
        """Test that a limit shorter than one iteration runs exactly once."""
        clock = FakeClock()
        recorder = ResultRecorder()
        operation = timed_operation(clock, [7 * MS])

        stats = run_benchmark(operation, 0.005, recorder, clock=clock)

        assert stats.runs == 1
        assert stats.mean == 7 * MS
        assert stats.stddev == 0.0
        assert recorder.calls == [(7 * MS, 0.0)]

    def test_smallest_limit_runs_once(self) -> None:
        """Test at-least-once with a 1ns time limit."""
        clock = FakeClock()
        operation = timed_operation(clock, [2, 2, 2])

        stats = run_benchmark(operation, 1e-9, clock=clock)

        assert stats.runs == 1

    @pytest.mark.parametrize("n", [1, 2, 10, 250])
    def test_fixed_duration_mean(self, n: int) -> None:
        """Test mean equals the fixed duration for any iteration count."""
        clock = FakeClock()
        durations = [3 * MS] * n

        stats = run_benchmark(
            timed_operation(clock, durations), limit_covering(durations), clock=clock
        )

        assert stats.runs == n
        assert stats.mean == pytest.approx(3 * MS)
        assert stats.stddev == pytest.approx(0.0, abs=1e-6)

    def test_matches_batch_statistics(self) -> None:
        """Test incremental results equal batch sample mean and stdev."""
        clock = FakeClock()
        durations = [d * MS for d in (5, 9, 2, 14, 7, 7, 3, 11)]

        stats = run_benchmark(
            timed_operation(clock, durations), limit_covering(durations), clock=clock
        )

        assert stats.runs == len(durations)
        assert stats.mean == pytest.approx(statistics.mean(durations))
        assert stats.stddev == pytest.approx(statistics.stdev(durations))
        assert stats.min == 2 * MS
        assert stats.max == 14 * MS

    def test_stops_after_limit(self) -> None:
        """Test that the loop stops once elapsed time exceeds the limit."""
        clock = FakeClock()
        calls = 0

        def operation() -> None:
            nonlocal calls
            calls += 1
            clock.advance(MS)

        # 10.5ms limit: 10 iterations stay within it, the 11th exceeds it
        stats = run_benchmark(operation, 0.0105, clock=clock)

        assert calls == 11
        assert stats.runs == 11

    def test_result_callback_once(self) -> None:
        """Test that on_result fires exactly once for many iterations."""
        clock = FakeClock()
        recorder = ResultRecorder()
        durations = [MS] * 50

        stats = run_benchmark(
            timed_operation(clock, durations),
            limit_covering(durations),
            recorder,
            clock=clock,
        )

        assert len(recorder.calls) == 1
        assert recorder.calls[0] == (stats.mean, stats.stddev)

    def test_error_propagates(self) -> None:
        """Test that an operation error propagates and no result is delivered."""
        clock = FakeClock()
        recorder = ResultRecorder()
        calls = 0

        def operation() -> None:
            nonlocal calls
            calls += 1
            clock.advance(MS)
            if calls == 3:
                raise KeyError("boom")

        with pytest.raises(KeyError, match="boom"):
            run_benchmark(operation, 1.0, recorder, clock=clock)

        assert calls == 3
        assert recorder.calls == []

    @pytest.mark.parametrize(
        "time_limit", [0, -1, -0.5, math.nan, math.inf, "5", None, True, False]
    )
    def test_invalid_time_limit(self, time_limit: object) -> None:
        """Test rejection of non-positive or non-numeric limits."""
        calls = 0

        def operation() -> None:
            nonlocal calls
            calls += 1

        with pytest.raises(InvalidTimeLimitError):
            run_benchmark(operation, time_limit)  # type: ignore[arg-type]

        assert calls == 0

    def test_validate_time_limit(self) -> None:
        """Test conversion of valid limits to nanoseconds."""
        assert validate_time_limit(2) == 2_000_000_000
        assert validate_time_limit(0.25) == 250_000_000

        with pytest.raises(InvalidTimeLimitError):
            validate_time_limit(True)

    def test_invalid_time_limit_is_value_error(self) -> None:
        """Test that InvalidTimeLimitError is a ValueError."""
        with pytest.raises(ValueError):
            run_benchmark(lambda: None, 0)

    def test_cancellation(self) -> None:
        """Test that a set cancel event abandons the run without a result."""
        clock = FakeClock()
        recorder = ResultRecorder()
        cancel = threading.Event()
        calls = 0

        def operation() -> None:
            nonlocal calls
            calls += 1
            clock.advance(MS)
            if calls == 4:
                cancel.set()

        with pytest.raises(BenchmarkCancelledError):
            run_benchmark(operation, 1.0, recorder, clock=clock, cancel_event=cancel)

        assert calls == 4
        assert recorder.calls == []


class TestRunBenchmarkInBackground:
    """Tests for run_benchmark_in_background."""

    def test_delivers_result_once(self) -> None:
        """Test the future result and the single callback agree."""
        clock = FakeClock()
        recorder = ResultRecorder()
        durations = [d * MS for d in (4, 6, 5)]

        future = run_benchmark_in_background(
            timed_operation(clock, durations),
            recorder,
            limit_covering(durations),
            clock=clock,
        )
        stats = future.result(timeout=10)

        assert stats.runs == 3
        assert stats.mean == pytest.approx(5 * MS)
        assert recorder.calls == [(stats.mean, stats.stddev)]

    def test_runs_on_worker_thread(self) -> None:
        """Test that the operation does not run on the calling thread."""
        seen: list[threading.Thread] = []

        def operation() -> None:
            seen.append(threading.current_thread())

        future = run_benchmark_in_background(operation, time_limit=0.001)
        future.result(timeout=10)

        assert seen
        assert all(t is not threading.current_thread() for t in seen)

    def test_post_hook(self) -> None:
        """Test that the callback is handed to the post hook."""
        clock = FakeClock()
        recorder = ResultRecorder()
        posted: list[tuple] = []

        def post(callback, *args) -> None:
            posted.append((callback, args))

        with ThreadPoolExecutor(max_workers=1) as executor:
            future = run_benchmark_in_background(
                timed_operation(clock, [MS]),
                recorder,
                0.0001,
                executor=executor,
                post=post,
                clock=clock,
            )
            stats = future.result(timeout=10)

        # Not called directly on the worker
        assert recorder.calls == []
        assert len(posted) == 1
        callback, args = posted[0]
        assert callback is recorder
        assert args == (stats.mean, stats.stddev)

    def test_error_in_future(self) -> None:
        """Test that an operation error is carried by the future."""
        recorder = ResultRecorder()

        def operation() -> None:
            raise RuntimeError("broken")

        future = run_benchmark_in_background(operation, recorder, 1.0)

        with pytest.raises(RuntimeError, match="broken"):
            future.result(timeout=10)
        assert recorder.calls == []

    def test_invalid_time_limit_raises_immediately(self) -> None:
        """Test that a bad limit is rejected before anything is submitted."""
        with pytest.raises(InvalidTimeLimitError):
            run_benchmark_in_background(lambda: None, time_limit=-1)
