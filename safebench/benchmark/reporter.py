"""Reporter module for benchmark summaries and exports.

This module provides the Reporter class for generating text summaries,
CSV exports of samples, and JSON snapshots of performance profiles.
"""

import csv
from typing import Optional

from safebench.benchmark.models import BenchmarkSample, PerformanceProfile


class Reporter:
    """Generates reports and exports from performance profiles."""

    def generate_summary(self, profile: PerformanceProfile) -> str:
        """Generate a multi-line summary of a profile.

        Args:
            profile: The profile to summarize.

        Returns:
            Multi-line string with tier, run status, overall timings and
            the per-format breakdown.
        """
        stats = profile.aggregate_stats
        lines = [
            "=== Image Decode Benchmark ===",
            f"Performance tier: {profile.tier.label}",
        ]
        if profile.limits is not None:
            lines.append(
                f"Limits: {profile.limits.max_file_size_bytes / (1024 * 1024):.1f}MB, "
                f"{profile.limits.max_megapixels:.0f}MP, "
                f"{profile.limits.max_candidate_count} images"
            )

        if profile.no_candidates_found:
            lines.append("No safe benchmark images found.")
            return "\n".join(lines)

        status = "complete"
        if profile.cancelled:
            status = "cancelled"
        elif profile.incomplete:
            status = "incomplete (time budget exhausted)"
        lines.append(
            f"Images benchmarked: {len(profile.samples)}/{profile.selected_count} ({status})"
        )

        if not stats.has_data:
            lines.append(f"No successful decodes ({stats.failure_count} failed).")
            return "\n".join(lines)

        lines.extend([
            f"Successful: {stats.success_count}, failed: {stats.failure_count}",
            f"Mean decode: {stats.mean_micros / 1000:.1f}ms",
            f"Worst decode: {stats.max_micros / 1000:.1f}ms",
            f"p95 decode: {stats.p95_micros / 1000:.1f}ms",
            f"Largest decoded: {stats.max_successful_megapixels:.2f}MP",
        ])
        if stats.micros_per_megapixel is not None:
            lines.append(f"Decode rate: {stats.micros_per_megapixel / 1000:.2f}ms/MP")

        lines.append("")
        lines.append("By Format:")
        for fmt, mean in sorted(stats.per_format_means.items()):
            rate = stats.per_format_micros_per_megapixel.get(fmt)
            rate_str = f", {rate / 1000:.2f}ms/MP" if rate is not None else ""
            lines.append(f"  {fmt}: {mean / 1000:.1f}ms{rate_str}")

        return "\n".join(lines)

    def format_sample(self, sample: BenchmarkSample) -> str:
        """One line per sample, for progress output."""
        c = sample.candidate
        outcome = "ok" if sample.succeeded else sample.failure_reason.value
        return (
            f"{c.format_key} ({c.width}x{c.height}, {c.megapixels:.1f}MP): "
            f"{sample.decode_duration_micros / 1000:.1f}ms [{outcome}] {c.path}"
        )

    def export_samples_csv(self, profile: PerformanceProfile, output_path: str) -> None:
        """Export samples to a CSV file.

        Args:
            profile: Profile whose samples to export.
            output_path: Path to the output CSV file.
        """
        fieldnames = [
            "path",
            "format",
            "file_size_bytes",
            "width",
            "height",
            "megapixels",
            "decode_duration_micros",
            "succeeded",
            "failure_reason",
        ]

        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for sample in profile.samples:
                c = sample.candidate
                writer.writerow({
                    "path": str(c.path),
                    "format": c.format_key,
                    "file_size_bytes": c.file_size_bytes,
                    "width": c.width,
                    "height": c.height,
                    "megapixels": f"{c.megapixels:.3f}",
                    "decode_duration_micros": sample.decode_duration_micros,
                    "succeeded": sample.succeeded,
                    "failure_reason": (
                        sample.failure_reason.value if sample.failure_reason else ""
                    ),
                })

    def save_profile(self, profile: PerformanceProfile, output_path: str) -> None:
        """Write a profile snapshot as JSON."""
        with open(output_path, "w") as f:
            f.write(profile.to_json())

    def load_profile(self, profile_path: str) -> Optional[PerformanceProfile]:
        """Load a profile snapshot.

        Returns:
            PerformanceProfile, or None if the file does not exist.
        """
        try:
            with open(profile_path, "r") as f:
                json_str = f.read()
            return PerformanceProfile.from_json(json_str)
        except FileNotFoundError:
            return None

    def generate_limits_table(self, described: dict) -> str:
        """Render LimitTable.describe() output as text."""
        lines = ["Tier        Max size      Max MP   Max images"]
        for tier, fields in described.items():
            size = fields["max_file_size_bytes"]
            mp = fields["max_megapixels"]
            count = fields["max_candidate_count"]

            def mark(info):
                return "*" if info["is_override"] else " "

            lines.append(
                f"{tier:<11} {size['value'] / (1024 * 1024):>8.1f}MB{mark(size)}  "
                f"{mp['value']:>6.1f}{mark(mp)}  {count['value']:>6}{mark(count)}"
            )
        lines.append("(* = override)")
        return "\n".join(lines)

