"""Aggregation of benchmark samples into a performance profile.

Provides the ProfileBuilder, which turns the runner's samples into summary
statistics (mean, max, p95, per-format breakdowns) and wraps them in a
read-only PerformanceProfile.
"""

from typing import Optional, Sequence

import numpy as np

from safebench.benchmark.models import (
    NO_DATA,
    AggregateStats,
    BenchmarkLimits,
    BenchmarkSample,
    PerformanceProfile,
    PerformanceTier,
    RunResult,
)


class ProfileBuilder:
    """Builds performance profiles from benchmark samples.

    Only successful samples contribute timings. With no successful sample
    the stats are the NO_DATA sentinel (or an equivalent carrying the
    failure count), never an error.
    """

    def compute_aggregate_stats(self, samples: Sequence[BenchmarkSample]) -> AggregateStats:
        """Compute summary statistics from a list of samples.

        Args:
            samples: Samples in attempt order.

        Returns:
            AggregateStats; NO_DATA if samples is empty.
        """
        if not samples:
            return NO_DATA

        successful = [s for s in samples if s.succeeded]
        failure_count = len(samples) - len(successful)
        if not successful:
            return AggregateStats(
                mean_micros=None,
                max_micros=None,
                failure_count=failure_count,
            )

        durations = np.array([s.decode_duration_micros for s in successful], dtype=np.float64)
        total_megapixels = sum(s.candidate.megapixels for s in successful)

        return AggregateStats(
            mean_micros=float(durations.mean()),
            max_micros=int(durations.max()),
            per_format_means=self.compute_mean_by_format(successful),
            p95_micros=float(np.percentile(durations, 95)),
            success_count=len(successful),
            failure_count=failure_count,
            max_successful_megapixels=max(s.candidate.megapixels for s in successful),
            micros_per_megapixel=(
                float(durations.sum()) / total_megapixels if total_megapixels > 0 else None
            ),
            per_format_micros_per_megapixel=self.compute_rate_by_format(successful),
        )

    def compute_mean_by_format(self, samples: Sequence[BenchmarkSample]) -> dict[str, float]:
        """Mean decode time (micros) per format over successful samples."""
        durations_by_format: dict[str, list[int]] = {}
        for sample in samples:
            if not sample.succeeded:
                continue
            durations_by_format.setdefault(sample.candidate.format_key, []).append(
                sample.decode_duration_micros
            )
        return {
            fmt: sum(durations) / len(durations)
            for fmt, durations in durations_by_format.items()
        }

    def compute_rate_by_format(self, samples: Sequence[BenchmarkSample]) -> dict[str, float]:
        """Decode time per megapixel (micros/MP) per format."""
        totals: dict[str, list[float]] = {}
        for sample in samples:
            if not sample.succeeded:
                continue
            entry = totals.setdefault(sample.candidate.format_key, [0.0, 0.0])
            entry[0] += sample.decode_duration_micros
            entry[1] += sample.candidate.megapixels
        return {
            fmt: micros / megapixels
            for fmt, (micros, megapixels) in totals.items()
            if megapixels > 0
        }

    def build(
        self,
        tier: PerformanceTier,
        samples: Sequence[BenchmarkSample],
        incomplete: bool = False,
        cancelled: bool = False,
        selected_count: Optional[int] = None,
        limits: Optional[BenchmarkLimits] = None,
    ) -> PerformanceProfile:
        """Aggregate samples into a profile.

        Args:
            tier: Tier the run was classified into.
            samples: Samples in attempt order.
            incomplete: Whether the run stopped before all candidates ran.
            cancelled: Whether the stop was a cancellation.
            selected_count: Size of the selected set; defaults to len(samples).
            limits: Limits the selection was made under.
        """
        return PerformanceProfile(
            tier=tier,
            samples=tuple(samples),
            aggregate_stats=self.compute_aggregate_stats(samples),
            incomplete=incomplete,
            cancelled=cancelled,
            selected_count=len(samples) if selected_count is None else selected_count,
            limits=limits,
        )

    def build_from_run(
        self,
        tier: PerformanceTier,
        run: RunResult,
        selected_count: int,
        limits: Optional[BenchmarkLimits] = None,
    ) -> PerformanceProfile:
        """Convenience wrapper around build() for a RunResult."""
        return self.build(
            tier,
            run.samples,
            incomplete=run.incomplete,
            cancelled=run.cancelled,
            selected_count=selected_count,
            limits=limits,
        )
