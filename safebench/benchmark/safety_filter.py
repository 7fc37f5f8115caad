"""
Safety filter for benchmark candidates.

Rejects files that are too large, remote-only placeholders, unreadable,
or too high-resolution for the active limits. Checks run cheapest first,
and the placeholder check always precedes any read of the file content.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from safebench.benchmark.models import (
    BenchmarkLimits,
    ImageCandidate,
    MetadataUnreadable,
    RejectionReason,
)
from safebench.file_locality import is_remote_placeholder
from safebench.image_info import ImageInfo, read_image_info

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    """Result of checking one path."""
    path: Path
    passed: bool
    candidate: Optional[ImageCandidate] = None
    rejection_reason: Optional[RejectionReason] = None
    details: Optional[dict] = None


@dataclass
class FilterReport:
    """Per-run tally of what the filter saw."""
    inspected: int = 0
    accepted: int = 0
    rejections: dict[RejectionReason, int] = field(default_factory=dict)
    truncated: bool = False

    def record(self, result: FilterResult) -> None:
        self.inspected += 1
        if result.passed:
            self.accepted += 1
        else:
            reason = result.rejection_reason
            self.rejections[reason] = self.rejections.get(reason, 0) + 1


class SafetyFilter:
    """
    Applies safety limits to candidate image paths.

    Usage:
        sf = SafetyFilter(limits)
        candidates = sf.filter(scanner.scan(roots))
        print(sf.report.rejections)

    The prober and placeholder check are injectable so tests (and hosts with
    their own cloud-file APIs) can replace them.
    """

    def __init__(
        self,
        limits: BenchmarkLimits,
        prober: Callable[[Path], ImageInfo] = read_image_info,
        placeholder_check: Callable[[Path], bool] = is_remote_placeholder,
        max_inspected: Optional[int] = None,
    ):
        self.limits = limits
        self.prober = prober
        self.placeholder_check = placeholder_check
        self.max_inspected = max_inspected
        self.report = FilterReport()

    def check_path(self, path) -> FilterResult:
        """Run every safety check against one path, in order."""
        path = Path(path)

        # 1. Size from filesystem metadata
        try:
            file_size = os.stat(path).st_size
        except OSError as e:
            return FilterResult(
                path=path,
                passed=False,
                rejection_reason=RejectionReason.STAT_FAILED,
                details={"error": str(e)},
            )
        if file_size > self.limits.max_file_size_bytes:
            return FilterResult(
                path=path,
                passed=False,
                rejection_reason=RejectionReason.FILE_TOO_LARGE,
                details={"file_size_bytes": file_size, "max": self.limits.max_file_size_bytes},
            )

        # 2. Placeholder check must precede any content read
        if self.placeholder_check(path):
            return FilterResult(
                path=path,
                passed=False,
                rejection_reason=RejectionReason.REMOTE_PLACEHOLDER,
            )

        # 3. Header-only dimensions
        try:
            info = self.prober(path)
        except MetadataUnreadable as e:
            logger.info(f"Metadata unreadable, skipping: {e}")
            return FilterResult(
                path=path,
                passed=False,
                rejection_reason=RejectionReason.METADATA_UNREADABLE,
                details={"error": str(e)},
            )
        if info.width <= 0 or info.height <= 0:
            return FilterResult(
                path=path,
                passed=False,
                rejection_reason=RejectionReason.METADATA_UNREADABLE,
                details={"width": info.width, "height": info.height},
            )

        # 4. Megapixels from header dimensions
        megapixels = info.width * info.height / 1e6
        if megapixels > self.limits.max_megapixels:
            return FilterResult(
                path=path,
                passed=False,
                rejection_reason=RejectionReason.TOO_MANY_MEGAPIXELS,
                details={"megapixels": megapixels, "max": self.limits.max_megapixels},
            )

        return FilterResult(
            path=path,
            passed=True,
            candidate=ImageCandidate(
                path=path,
                file_size_bytes=file_size,
                width=info.width,
                height=info.height,
                is_remote_placeholder=False,
                image_format=info.format,
            ),
        )

    def iter_accepted(self, candidate_paths: Iterable) -> Iterator[ImageCandidate]:
        """Lazily yield accepted candidates, stopping at max_inspected."""
        self.report = FilterReport()
        for path in candidate_paths:
            if self.max_inspected is not None and self.report.inspected >= self.max_inspected:
                self.report.truncated = True
                logger.warning(
                    f"Stopped inspecting candidates after {self.max_inspected} files"
                )
                return
            result = self.check_path(path)
            self.report.record(result)
            if result.passed:
                yield result.candidate
            else:
                logger.debug(
                    f"Rejected {result.path}: {result.rejection_reason.value} {result.details or ''}"
                )

    def filter(self, candidate_paths: Iterable) -> list[ImageCandidate]:
        """Return all accepted candidates, in input order."""
        return list(self.iter_accepted(candidate_paths))

    def revalidate(self, candidate: ImageCandidate) -> bool:
        """Re-check a selected candidate right before it is decoded.

        The file must still exist with the same size and still be local.
        Dimensions are not re-read, so this never opens the file.
        """
        try:
            file_size = os.stat(candidate.path).st_size
        except OSError:
            return False
        if file_size != candidate.file_size_bytes:
            return False
        if file_size > self.limits.max_file_size_bytes:
            return False
        return not self.placeholder_check(candidate.path)
