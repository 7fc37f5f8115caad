"""Configuration for the benchmark command line.

This module provides the BenchmarkConfig dataclass, which gathers the
scan, budget and limit settings for one CLI run.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from safebench.config import BenchmarkBudget, ScanConfig


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run.

    Attributes:
        scan: Search roots, extensions and depth.
        budget: Per-image timeout and total time budget.
        tier_name: Force this tier instead of classifying the host.
        calibrate: Run the synthetic calibration probe before classifying.
        limits_file: Optional JSON file of per-tier limit overrides.
        show_limits: Print the effective per-tier limits instead of benchmarking.
        output_dir: If set, write profile.json, samples.csv and summary.txt here.
        json_output: Print the profile as JSON instead of a text summary.
    """

    scan: ScanConfig = field(default_factory=ScanConfig)
    budget: BenchmarkBudget = field(default_factory=BenchmarkBudget)
    tier_name: Optional[str] = None
    calibrate: bool = False
    limits_file: Optional[str] = None
    show_limits: bool = False
    output_dir: Optional[str] = None
    json_output: bool = False

    @classmethod
    def quick(cls) -> "BenchmarkConfig":
        """Create a quick configuration with a tight time budget."""
        return cls(budget=BenchmarkBudget.quick())

    @classmethod
    def from_args(cls, args) -> "BenchmarkConfig":
        """Create a BenchmarkConfig from parsed command line arguments.

        Environment defaults (SAFEBENCH_*) apply first, then the arguments.

        Args:
            args: Namespace from argparse containing CLI arguments.

        Returns:
            BenchmarkConfig initialized from the provided arguments.
        """
        scan = ScanConfig.from_env()
        budget = BenchmarkBudget.quick() if args.quick else BenchmarkBudget.from_env()

        if args.roots:
            scan = replace(scan, search_roots=tuple(Path(r) for r in args.roots))
        if args.depth is not None:
            scan = replace(scan, max_depth=args.depth)

        if args.per_image_timeout is not None or args.total_budget is not None:
            budget = replace(
                budget,
                per_image_timeout_sec=(
                    args.per_image_timeout
                    if args.per_image_timeout is not None
                    else budget.per_image_timeout_sec
                ),
                total_time_budget_sec=(
                    args.total_budget
                    if args.total_budget is not None
                    else budget.total_time_budget_sec
                ),
            )

        return cls(
            scan=scan,
            budget=budget,
            tier_name=args.tier,
            calibrate=args.calibrate,
            limits_file=args.limits_file,
            show_limits=args.show_limits,
            output_dir=args.output_dir,
            json_output=args.json,
        )
