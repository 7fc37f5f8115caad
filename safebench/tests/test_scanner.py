"""Tests for the candidate scanner."""

import os
import types
from pathlib import Path
from unittest.mock import patch

from conftest import make_sized_file
from safebench.benchmark.scanner import CandidateScanner


def touch(path):
    return make_sized_file(path, 10)


class TestIsImageName:
    """Test suffix matching."""

    def test_case_insensitive(self):
        scanner = CandidateScanner(extensions=("png", "jpg"))
        assert scanner.is_image_name("A.PNG")
        assert scanner.is_image_name("b.Jpg")

    def test_rejects_other_suffixes(self):
        scanner = CandidateScanner(extensions=("png",))
        assert not scanner.is_image_name("notes.txt")
        assert not scanner.is_image_name("png")

    def test_skips_dotfiles(self):
        scanner = CandidateScanner(extensions=("png",))
        assert not scanner.is_image_name("._resource.png")

    def test_accepts_dotted_extensions(self):
        scanner = CandidateScanner(extensions=(".PNG",))
        assert scanner.is_image_name("a.png")


class TestScan:
    """Test root enumeration."""

    def test_yields_only_images(self, tmp_path):
        touch(tmp_path / "a.png")
        touch(tmp_path / "b.txt")
        touch(tmp_path / "c.jpeg")
        scanner = CandidateScanner()
        names = sorted(p.name for p in scanner.scan([tmp_path]))
        assert names == ["a.png", "c.jpeg"]

    def test_is_lazy(self, tmp_path):
        touch(tmp_path / "a.png")
        scanner = CandidateScanner()
        result = scanner.scan([tmp_path])
        assert isinstance(result, types.GeneratorType)
        assert scanner.stats.files_yielded == 0
        list(result)
        assert scanner.stats.files_yielded == 1

    def test_roots_in_priority_order(self, tmp_path):
        first = tmp_path / "assets"
        second = tmp_path / "cwd"
        touch(first / "z.png")
        touch(second / "a.png")
        paths = list(CandidateScanner().scan([first, second]))
        assert [p.parent for p in paths] == [first, second]

    def test_missing_root_skipped(self, tmp_path):
        touch(tmp_path / "a.png")
        scanner = CandidateScanner()
        paths = list(scanner.scan([tmp_path / "missing", tmp_path]))
        assert [p.name for p in paths] == ["a.png"]
        assert scanner.stats.roots_skipped == [tmp_path / "missing"]
        assert scanner.stats.any_root_readable

    def test_file_as_root_skipped(self, tmp_path):
        root = touch(tmp_path / "a.png")
        scanner = CandidateScanner()
        assert list(scanner.scan([root])) == []
        assert not scanner.stats.any_root_readable

    def test_all_roots_missing(self, tmp_path):
        scanner = CandidateScanner()
        assert list(scanner.scan([tmp_path / "x", tmp_path / "y"])) == []
        assert not scanner.stats.any_root_readable

    def test_unlistable_root_skipped(self, tmp_path):
        """A root that exists but cannot be listed counts as unreadable."""
        touch(tmp_path / "a.png")
        scanner = CandidateScanner()
        with patch("safebench.benchmark.scanner.os.scandir", side_effect=PermissionError("denied")):
            assert list(scanner.scan([tmp_path])) == []
        assert scanner.stats.roots_skipped == [tmp_path]
        assert scanner.stats.roots_scanned == []
        assert not scanner.stats.any_root_readable

    def test_unlistable_root_does_not_stop_later_roots(self, tmp_path):
        locked, open_root = tmp_path / "locked", tmp_path / "open"
        touch(locked / "a.png")
        touch(open_root / "b.png")
        real_scandir = os.scandir

        def scandir(path):
            if Path(path) == locked:
                raise PermissionError("denied")
            return real_scandir(path)

        scanner = CandidateScanner()
        with patch("safebench.benchmark.scanner.os.scandir", side_effect=scandir):
            names = [p.name for p in scanner.scan([locked, open_root])]
        assert names == ["b.png"]
        assert scanner.stats.roots_skipped == [locked]
        assert scanner.stats.any_root_readable

    def test_empty_root_is_readable(self, tmp_path):
        scanner = CandidateScanner()
        assert list(scanner.scan([tmp_path])) == []
        assert scanner.stats.any_root_readable

    def test_depth_zero_ignores_subdirectories(self, tmp_path):
        touch(tmp_path / "top.png")
        touch(tmp_path / "sub" / "nested.png")
        names = [p.name for p in CandidateScanner(max_depth=0).scan([tmp_path])]
        assert names == ["top.png"]

    def test_depth_limits_descent(self, tmp_path):
        touch(tmp_path / "top.png")
        touch(tmp_path / "one" / "a.png")
        touch(tmp_path / "one" / "two" / "b.png")
        names = sorted(p.name for p in CandidateScanner(max_depth=1).scan([tmp_path]))
        assert names == ["a.png", "top.png"]

    def test_files_before_subdirectories(self, tmp_path):
        touch(tmp_path / "sub" / "nested.png")
        touch(tmp_path / "top.png")
        names = [p.name for p in CandidateScanner(max_depth=1).scan([tmp_path])]
        assert names == ["top.png", "nested.png"]

    def test_hidden_directories_skipped(self, tmp_path):
        touch(tmp_path / ".thumbnails" / "a.png")
        assert list(CandidateScanner(max_depth=3).scan([tmp_path])) == []

    def test_fallback_only_stops_after_productive_root(self, tmp_path):
        first = tmp_path / "assets"
        second = tmp_path / "cwd"
        touch(first / "a.png")
        touch(second / "b.png")
        scanner = CandidateScanner(fallback_only=True)
        assert [p.name for p in scanner.scan([first, second])] == ["a.png"]

    def test_fallback_only_uses_later_root_when_first_empty(self, tmp_path):
        first = tmp_path / "assets"
        first.mkdir()
        second = tmp_path / "cwd"
        touch(second / "b.png")
        scanner = CandidateScanner(fallback_only=True)
        assert [p.name for p in scanner.scan([first, second])] == ["b.png"]

    def test_rescan_resets_stats(self, tmp_path):
        touch(tmp_path / "a.png")
        scanner = CandidateScanner()
        list(scanner.scan([tmp_path]))
        list(scanner.scan([tmp_path]))
        assert scanner.stats.files_yielded == 1
        assert scanner.stats.roots_scanned == [tmp_path]
