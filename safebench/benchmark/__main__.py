"""CLI entry point for the safe image benchmark.

Selects safe local images, times how fast this machine decodes them,
and prints (or saves) the resulting performance profile.

Usage:
    python -m safebench.benchmark [roots ...] [options]

Examples:
    # Benchmark ./assets, then the working directory
    python -m safebench.benchmark

    # Quick run over a specific folder, two levels deep
    python -m safebench.benchmark ~/Pictures --quick --depth 2

    # Force a tier and save the outputs
    python -m safebench.benchmark --tier good --output-dir bench_out

    # Show the effective per-tier limits and exit
    python -m safebench.benchmark --show-limits --limits-file limits.json
"""

from dotenv import load_dotenv
load_dotenv()

import argparse
import logging
import os
import sys

from safebench.benchmark.config import BenchmarkConfig
from safebench.benchmark.models import PerformanceTier, ScanFailedError
from safebench.benchmark.pipeline import run_safe_benchmark
from safebench.benchmark.reporter import Reporter
from safebench.hardware import detect_host_signals
from safebench.limits import LimitTable

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SCAN_FAILED = 2


def parse_args(args: list[str] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: List of arguments to parse. If None, uses sys.argv.

    Returns:
        Namespace containing parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Benchmark image decoding on safe, locally available images"
    )
    parser.add_argument(
        "roots",
        nargs="*",
        help="Directories to search, in priority order (default: assets, then cwd)",
    )
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Tight time budget (1s per image, 5s total)",
    )
    parser.add_argument(
        "--tier",
        type=str,
        choices=[t.name.lower() for t in PerformanceTier],
        help="Force a performance tier instead of detecting it",
    )
    parser.add_argument(
        "--calibrate",
        action="store_true",
        help="Run the synthetic calibration probe when detecting the tier",
    )
    parser.add_argument(
        "--per-image-timeout",
        type=float,
        help="Seconds allowed per decode",
    )
    parser.add_argument(
        "--total-budget",
        type=float,
        help="Seconds allowed for the whole run",
    )
    parser.add_argument(
        "--depth",
        type=int,
        help="Directory levels to descend below each root",
    )
    parser.add_argument(
        "--limits-file",
        type=str,
        help="JSON file of per-tier limit overrides",
    )
    parser.add_argument(
        "--show-limits",
        action="store_true",
        help="Print the effective per-tier limits and exit",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Write profile.json, samples.csv and summary.txt here",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the profile as JSON",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )
    return parser.parse_args(args)


def write_outputs(profile, reporter: Reporter, output_dir: str) -> None:
    """Write profile.json, samples.csv and summary.txt into output_dir."""
    os.makedirs(output_dir, exist_ok=True)
    reporter.save_profile(profile, os.path.join(output_dir, "profile.json"))
    reporter.export_samples_csv(profile, os.path.join(output_dir, "samples.csv"))
    with open(os.path.join(output_dir, "summary.txt"), "w") as f:
        f.write(reporter.generate_summary(profile))


def main(args: list[str] = None) -> int:
    """Main entry point for the benchmark CLI.

    Args:
        args: List of command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, 2 if no search root was readable,
        1 for other errors).
    """
    parsed = parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = BenchmarkConfig.from_args(parsed)
        limit_table = LimitTable.from_sources(json_path=config.limits_file)
    except (ValueError, KeyError, OSError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    reporter = Reporter()
    if config.show_limits:
        print(reporter.generate_limits_table(limit_table.describe()))
        return EXIT_OK

    tier = PerformanceTier.from_name(config.tier_name) if config.tier_name else None
    host_signals = None if tier is not None else detect_host_signals(calibrate=config.calibrate)

    def on_progress(index, total, sample):
        logger.info(f"[{index + 1}/{total}] {reporter.format_sample(sample)}")

    try:
        profile = run_safe_benchmark(
            host_signals=host_signals,
            budget=config.budget,
            limit_table=limit_table,
            scan_config=config.scan,
            tier=tier,
            progress=on_progress,
        )
    except ScanFailedError as e:
        print(f"Scan failed: {e}", file=sys.stderr)
        return EXIT_SCAN_FAILED
    except KeyboardInterrupt:
        print("\nBenchmark interrupted.", file=sys.stderr)
        return EXIT_ERROR

    if config.json_output:
        print(profile.to_json())
    else:
        print(reporter.generate_summary(profile))

    if config.output_dir:
        write_outputs(profile, reporter, config.output_dir)
        print(f"\nOutputs saved to: {config.output_dir}", file=sys.stderr)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
