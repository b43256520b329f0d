"""Built-in workloads for the benchmark suite.

Provides portable operations to measure:
- An empty operation (timer overhead baseline)
- CPU-intensive array shuffling across a number of threads
- A fixed sleep
- Import of arbitrary ``module:attr`` callables
"""

from __future__ import annotations

import importlib
import threading
import time
from collections.abc import Callable
from functools import partial

from ssbench.timer import Operation

# Per-thread array length for the CPU-intensive workload
DEFAULT_ARRAY_SIZE = 300


class WorkloadError(ValueError):
    """Raised when a workload cannot be built from its description."""


def empty() -> None:
    """Do nothing."""


def _shuffle_array(array: list[int]) -> None:
    """Fill an array with squares, then run a rotating swap pass over it."""
    length = len(array)
    for i in range(length):
        array[i] = i * i
    for i in range(length):
        for j in range(length):
            k = (j + i) % length
            array[j], array[k] = array[k], array[j]


def do_some_work(thread_count: int, array_size: int = DEFAULT_ARRAY_SIZE) -> None:
    """Shuffle one array per thread on ``thread_count`` threads and join them.

    Args:
        thread_count: Number of worker threads to start.
        array_size: Length of each thread's array.
    """
    arrays = [[0] * array_size for _ in range(thread_count)]
    threads = [
        threading.Thread(target=_shuffle_array, args=(array,)) for array in arrays
    ]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def sleep_for(seconds: float) -> None:
    """Sleep for a fixed number of seconds."""
    time.sleep(seconds)


def _make_cpu_intensive(threads: int = 1, array_size: int = DEFAULT_ARRAY_SIZE) -> Operation:
    if threads < 1:
        raise WorkloadError(f"threads must be at least 1, got {threads}")
    if array_size < 1:
        raise WorkloadError(f"array_size must be at least 1, got {array_size}")
    return partial(do_some_work, threads, array_size)


def _make_sleep(seconds: float = 0.001) -> Operation:
    if seconds < 0:
        raise WorkloadError(f"seconds must not be negative, got {seconds}")
    return partial(sleep_for, seconds)


WORKLOAD_FACTORIES: dict[str, Callable[..., Operation]] = {
    "empty": lambda: empty,
    "cpu_intensive": _make_cpu_intensive,
    "sleep": _make_sleep,
}


def make_workload(kind: str, **params: object) -> Operation:
    """Build a built-in workload by kind name.

    Args:
        kind: One of the keys of WORKLOAD_FACTORIES.
        **params: Parameters of the workload (e.g. threads, array_size).

    Returns:
        Zero-argument operation.

    Raises:
        WorkloadError: If the kind is unknown or the parameters are invalid.
    """
    factory = WORKLOAD_FACTORIES.get(kind)
    if factory is None:
        known = ", ".join(sorted(WORKLOAD_FACTORIES))
        raise WorkloadError(f"Unknown workload kind {kind!r} (known: {known})")

    try:
        return factory(**params)
    except TypeError as e:
        raise WorkloadError(f"Invalid parameters for workload {kind!r}: {e}") from e


def load_target(target: str) -> Operation:
    """Import a callable given as ``"package.module:attr"``.

    Raises:
        WorkloadError: If the target is malformed, missing or not callable.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise WorkloadError(f"Target must look like 'module:attr', got {target!r}")

    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as e:
        raise WorkloadError(f"Cannot import {module_name!r}: {e}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise WorkloadError(f"{target!r} not found: {e}") from e

    if not callable(obj):
        raise WorkloadError(f"{target!r} is not callable")
    return obj
