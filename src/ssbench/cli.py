"""Command-line interface for the benchmark suite.

Provides the `ssbench` command with subcommands for:
- Running benchmarks
- Listing configured benchmarks
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ssbench.runner import (
    DEFAULT_SUITE_PATH,
    BenchmarkProgress,
    BenchmarkRunner,
    BenchmarkSuite,
    ConfigError,
    format_results_table,
    load_suite_config,
)
from ssbench.timer import InvalidTimeLimitError, validate_time_limit


def _load_suite(args: argparse.Namespace) -> BenchmarkSuite | None:
    suite_path = Path(args.suite) if args.suite else DEFAULT_SUITE_PATH

    if not suite_path.exists():
        print(f"Error: Suite configuration not found: {suite_path}")
        return None

    try:
        return load_suite_config(suite_path)
    except (ConfigError, OSError) as e:
        print(f"Error loading suite configuration: {e}")
        return None


def cmd_run(args: argparse.Namespace) -> int:
    """Run benchmarks."""
    suite = _load_suite(args)
    if suite is None:
        return 1

    time_limit = args.time_limit if args.time_limit is not None else suite.time_limit
    try:
        validate_time_limit(time_limit)
    except InvalidTimeLimitError as e:
        print(f"Error: {e}")
        return 1

    if args.benchmark and args.benchmark not in suite.registry:
        print(f"Error: Unknown benchmark: {args.benchmark}")
        return 1

    def progress(p: BenchmarkProgress) -> None:
        if p.phase == "timing":
            print(f"  [{p.index}/{p.total}] {p.benchmark}...", end="\r", flush=True)

    runner = BenchmarkRunner(
        time_limit=time_limit,
        progress_callback=progress if not args.quiet else None,
    )

    print(f"Running suite '{suite.name}' ({time_limit:g}s per benchmark)...")
    run_results = runner.run_all(suite.registry, benchmark_filter=args.benchmark)

    # Clear progress line and print results
    print(" " * 79, end="\r")
    print(format_results_table(run_results))

    failed = [r for r in run_results if r.error]
    return 1 if failed else 0


def cmd_benchmarks(args: argparse.Namespace) -> int:
    """List configured benchmarks."""
    suite = _load_suite(args)
    if suite is None:
        return 1

    print(f"Suite '{suite.name}' (time limit {suite.time_limit:g}s)")
    print("-" * 50)
    for benchmark in suite.registry:
        status = "" if benchmark.enabled else " (disabled)"
        print(f"  {benchmark.name}{status}")

    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ssbench",
        description="Measure mean and standard deviation of operation latency",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    suite_help = "Path to suite configuration (default: built-in suite)"

    # run command
    run_parser = subparsers.add_parser("run", help="Run benchmarks")
    run_parser.add_argument("--suite", help=suite_help)
    run_parser.add_argument(
        "--benchmark",
        help="Run only the specified benchmark",
    )
    run_parser.add_argument(
        "--time-limit",
        type=float,
        help="Seconds to spend on each benchmark (default: from suite)",
    )
    run_parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress progress output",
    )
    run_parser.set_defaults(func=cmd_run)

    # benchmarks command
    benchmarks_parser = subparsers.add_parser(
        "benchmarks", help="List configured benchmarks"
    )
    benchmarks_parser.add_argument("--suite", help=suite_help)
    benchmarks_parser.set_defaults(func=cmd_benchmarks)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
