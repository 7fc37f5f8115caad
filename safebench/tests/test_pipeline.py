"""End-to-end tests for run_safe_benchmark against real image files."""

import threading
from unittest.mock import Mock, patch

import pytest

from conftest import make_image, make_sized_file
from safebench.benchmark.models import (
    NO_DATA,
    DecodeFailure,
    FailureReason,
    PerformanceTier,
    ScanFailedError,
)
from safebench.benchmark.pipeline import run_safe_benchmark
from safebench.config import BenchmarkBudget, ScanConfig
from safebench.hardware import HostSignals
from safebench.image_info import read_image_info
from safebench.limits import MB, LimitTable


class TestRunSafeBenchmark:
    """Test the full classify -> scan -> filter -> select -> run -> profile flow."""

    def test_benchmarks_images_smallest_first(self, image_dir):
        profile = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW)

        assert profile.tier == PerformanceTier.LOW
        assert profile.selected_count == 3
        assert len(profile.samples) == 3
        assert all(s.succeeded for s in profile.samples)
        sizes = [s.candidate.file_size_bytes for s in profile.samples]
        assert sizes == sorted(sizes)
        assert profile.aggregate_stats.has_data
        assert profile.incomplete is False
        assert profile.limits.max_candidate_count == 3

    def test_formats_recorded(self, image_dir):
        profile = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW)
        assert set(profile.aggregate_stats.per_format_means) == {"png", "jpeg"}

    def test_tier_classified_from_signals(self, image_dir):
        profile = run_safe_benchmark(
            [image_dir], host_signals=HostSignals(cpu_cores=16, memory_total_mb=32768)
        )
        assert profile.tier == PerformanceTier.EXCELLENT

    def test_missing_signals_default_to_low(self, image_dir):
        assert run_safe_benchmark([image_dir]).tier == PerformanceTier.LOW

    def test_limits_cap_selection(self, image_dir):
        table = LimitTable({"low": {"max_candidate_count": 1}})
        profile = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW, limit_table=table)
        assert profile.selected_count == 1
        assert profile.samples[0].candidate.path.name == "small.png"

    def test_oversized_files_never_touched(self, tmp_path):
        make_image(tmp_path / "ok.png", (8, 8), "PNG")
        make_sized_file(tmp_path / "huge.png", 3 * MB)
        prober = Mock(wraps=read_image_info)

        profile = run_safe_benchmark([tmp_path], tier=PerformanceTier.LOW, prober=prober)

        probed = [call.args[0].name for call in prober.call_args_list]
        assert probed == ["ok.png"]
        assert [s.candidate.path.name for s in profile.samples] == ["ok.png"]

    def test_placeholders_excluded(self, image_dir):
        profile = run_safe_benchmark(
            [image_dir],
            tier=PerformanceTier.LOW,
            placeholder_check=lambda p: p.name == "small.png",
        )
        names = {s.candidate.path.name for s in profile.samples}
        assert names == {"medium.jpg", "large.png"}

    def test_deterministic_selection(self, image_dir):
        first = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW)
        second = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW)
        assert [s.candidate for s in first.samples] == [s.candidate for s in second.samples]

    def test_no_candidates(self, tmp_path):
        (tmp_path / "readme.txt").write_text("nothing to see")
        profile = run_safe_benchmark([tmp_path], tier=PerformanceTier.LOW)
        assert profile.no_candidates_found is True
        assert profile.aggregate_stats is NO_DATA
        assert profile.incomplete is False
        assert profile.samples == ()

    def test_unreadable_roots_raise(self, tmp_path):
        with pytest.raises(ScanFailedError):
            run_safe_benchmark([tmp_path / "nope", tmp_path / "also-nope"])

    def test_unlistable_root_raises(self, image_dir):
        with patch("safebench.benchmark.scanner.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(ScanFailedError):
                run_safe_benchmark([image_dir], tier=PerformanceTier.LOW)

    def test_one_missing_root_is_fine(self, tmp_path, image_dir):
        profile = run_safe_benchmark([tmp_path / "nope", image_dir], tier=PerformanceTier.LOW)
        assert profile.selected_count == 3

    def test_roots_from_scan_config(self, image_dir):
        config = ScanConfig(search_roots=(image_dir,), extensions=("png",))
        profile = run_safe_benchmark(tier=PerformanceTier.LOW, scan_config=config)
        assert {s.candidate.format_key for s in profile.samples} == {"png"}

    def test_decode_failure_recorded(self, image_dir):
        def decoder(path):
            raise DecodeFailure(f"Failed to decode {path}")

        profile = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW, decoder=decoder)

        assert len(profile.samples) == 3
        assert all(s.failure_reason == FailureReason.DECODE_FAILURE for s in profile.samples)
        assert profile.aggregate_stats.has_data is False

    def test_cancelled_before_first_decode(self, image_dir):
        event = threading.Event()
        event.set()
        profile = run_safe_benchmark([image_dir], tier=PerformanceTier.LOW, cancel_event=event)
        assert profile.cancelled is True
        assert profile.samples == ()
        assert profile.no_candidates_found is False

    def test_progress_reported(self, image_dir):
        progress = Mock()
        run_safe_benchmark(
            [image_dir],
            tier=PerformanceTier.LOW,
            budget=BenchmarkBudget(per_image_timeout_sec=5.0, total_time_budget_sec=30.0),
            progress=progress,
        )
        assert progress.call_count == 3
