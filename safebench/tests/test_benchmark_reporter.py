"""Tests for benchmark reporter."""

import csv

import pytest

from conftest import candidate, sample
from safebench.benchmark.analyzer import ProfileBuilder
from safebench.benchmark.models import BenchmarkLimits, FailureReason, PerformanceTier
from safebench.benchmark.reporter import Reporter
from safebench.limits import LimitTable


@pytest.fixture
def reporter():
    return Reporter()


@pytest.fixture
def profile():
    samples = [
        sample(candidate("a.png", size=500, width=1000, height=1000), 12_000),
        sample(candidate("b.jpg", size=900, width=2000, height=1000), 8_000),
        sample(candidate("c.gif", size=1200, width=10, height=10), 5_000_000,
               succeeded=False, reason=FailureReason.DECODE_TIMEOUT),
    ]
    return ProfileBuilder().build(
        PerformanceTier.HIGH,
        samples,
        selected_count=3,
        limits=BenchmarkLimits(20 * 1024 * 1024, 32.0, 10),
    )


class TestGenerateSummary:
    """Test the text summary."""

    def test_contains_headline_numbers(self, reporter, profile):
        summary = reporter.generate_summary(profile)
        assert "Performance tier: High" in summary
        assert "Limits: 20.0MB, 32MP, 10 images" in summary
        assert "Images benchmarked: 3/3 (complete)" in summary
        assert "Successful: 2, failed: 1" in summary
        assert "Mean decode: 10.0ms" in summary
        assert "Worst decode: 12.0ms" in summary

    def test_per_format_section(self, reporter, profile):
        summary = reporter.generate_summary(profile)
        assert "By Format:" in summary
        assert "  jpeg: 8.0ms, 4.00ms/MP" in summary
        assert "  png: 12.0ms, 12.00ms/MP" in summary

    def test_incomplete_status(self, reporter):
        profile = ProfileBuilder().build(
            PerformanceTier.LOW, [sample(candidate(), 1_000)], incomplete=True, selected_count=3
        )
        assert "1/3 (incomplete" in reporter.generate_summary(profile)

    def test_cancelled_status(self, reporter):
        profile = ProfileBuilder().build(
            PerformanceTier.LOW, [], incomplete=True, cancelled=True, selected_count=3
        )
        assert "(cancelled)" in reporter.generate_summary(profile)

    def test_no_candidates(self, reporter):
        summary = reporter.generate_summary(ProfileBuilder().build(PerformanceTier.LOW, []))
        assert "No safe benchmark images found." in summary
        assert "Mean decode" not in summary

    def test_all_failed(self, reporter, timeout_sample):
        profile = ProfileBuilder().build(PerformanceTier.LOW, [timeout_sample])
        assert "No successful decodes (1 failed)." in reporter.generate_summary(profile)


class TestFormatSample:
    """Test progress lines."""

    def test_success(self, reporter):
        line = reporter.format_sample(sample(candidate("a.png", width=2000, height=1000), 4_500))
        assert line.startswith("png (2000x1000, 2.0MP): 4.5ms [ok]")

    def test_failure(self, reporter, timeout_sample):
        assert "[decode_timeout]" in reporter.format_sample(timeout_sample)


class TestExports:
    """Test CSV and JSON exports."""

    def test_export_samples_csv(self, reporter, profile, tmp_path):
        path = tmp_path / "samples.csv"
        reporter.export_samples_csv(profile, str(path))

        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))

        assert len(rows) == 3
        assert rows[0]["path"] == "a.png"
        assert rows[0]["format"] == "png"
        assert rows[0]["succeeded"] == "True"
        assert rows[0]["failure_reason"] == ""
        assert rows[2]["failure_reason"] == "decode_timeout"

    def test_save_and_load(self, reporter, profile, tmp_path):
        path = tmp_path / "profile.json"
        reporter.save_profile(profile, str(path))
        assert reporter.load_profile(str(path)) == profile

    def test_load_missing(self, reporter, tmp_path):
        assert reporter.load_profile(str(tmp_path / "missing.json")) is None


class TestLimitsTable:
    """Test the limits table rendering."""

    def test_marks_overrides(self, reporter):
        table = LimitTable({"low": {"max_candidate_count": 2}})
        text = reporter.generate_limits_table(table.describe())
        lines = text.splitlines()
        assert len(lines) == 7
        low = next(line for line in lines if line.startswith("low"))
        assert "2*" in low
        assert "(* = override)" in text
