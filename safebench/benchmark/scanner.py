"""Candidate scanner.

Lazily walks an ordered list of search roots and yields image-suffixed
file paths. Only directory entries are read, never file contents, so the
scan is safe to run over folders that contain cloud placeholders.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from safebench.config import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)


@dataclass
class ScanStats:
    """Mutable progress record for one scan() call.

    Filled in while the generator is consumed; only complete once it is
    exhausted.
    """
    roots_scanned: list[Path] = field(default_factory=list)
    roots_skipped: list[Path] = field(default_factory=list)
    files_yielded: int = 0

    @property
    def any_root_readable(self) -> bool:
        return bool(self.roots_scanned)


class CandidateScanner:
    """Enumerates image files under a set of search roots.

    Usage:
        scanner = CandidateScanner(extensions=("png", "jpg"), max_depth=0)
        for path in scanner.scan([Path("assets"), Path.cwd()]):
            ...
        if not scanner.stats.any_root_readable:
            ...  # every root was missing or unreadable
    """

    def __init__(
        self,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        max_depth: int = 0,
        fallback_only: bool = False,
    ):
        """
        Args:
            extensions: Accepted file suffixes, without the dot, any case.
            max_depth: How many directory levels below each root to visit.
            fallback_only: Stop after the first root that yields any image.
        """
        self._suffixes = {"." + e.lower().lstrip(".") for e in extensions}
        self.max_depth = max_depth
        self.fallback_only = fallback_only
        self.stats = ScanStats()

    def is_image_name(self, name: str) -> bool:
        if name.startswith("."):
            return False
        return os.path.splitext(name)[1].lower() in self._suffixes

    def scan(self, search_roots: Iterable) -> Iterator[Path]:
        """Yield image paths from each root in order.

        Single pass: call scan() again to restart. Resets self.stats.
        """
        self.stats = ScanStats()
        return self._scan(list(search_roots), self.stats)

    def _scan(self, roots: list, stats: ScanStats) -> Iterator[Path]:
        for root in roots:
            root = Path(root)
            if not root.is_dir():
                logger.debug(f"Search root missing or not a directory, skipping: {root}")
                stats.roots_skipped.append(root)
                continue

            yielded_before = stats.files_yielded
            try:
                with os.scandir(root) as entries:
                    stats.roots_scanned.append(root)
                    yield from self._walk(entries, 0, stats)
            except OSError as e:
                logger.warning(f"Cannot enumerate search root {root}: {e}")
                if root not in stats.roots_scanned:
                    stats.roots_skipped.append(root)
                continue

            if self.fallback_only and stats.files_yielded > yielded_before:
                logger.debug(f"Found images in {root}, not scanning later roots")
                return

    def _walk(self, entries, depth: int, stats: ScanStats) -> Iterator[Path]:
        subdirs = []
        for entry in entries:
            try:
                if entry.is_file():
                    if self.is_image_name(entry.name):
                        stats.files_yielded += 1
                        yield Path(entry.path)
                elif depth < self.max_depth and entry.is_dir(follow_symlinks=False):
                    if not entry.name.startswith("."):
                        subdirs.append(entry.path)
            except OSError as e:
                logger.debug(f"Skipping unreadable entry {entry.path}: {e}")

        for subdir in subdirs:
            try:
                with os.scandir(subdir) as sub_entries:
                    yield from self._walk(sub_entries, depth + 1, stats)
            except OSError as e:
                logger.debug(f"Skipping unreadable directory {subdir}: {e}")
