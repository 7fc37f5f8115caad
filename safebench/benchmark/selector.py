"""Candidate selector for the benchmark.

Orders accepted candidates smallest-first and keeps the first N, so the
runner always starts with the cheapest decodes.
"""

from typing import Iterable

from safebench.benchmark.models import BenchmarkLimits, ImageCandidate


def selection_key(candidate: ImageCandidate) -> tuple[int, str]:
    """Sort key: file size ascending, then path for ties."""
    return candidate.file_size_bytes, str(candidate.path)


def select_candidates(
    candidates: Iterable[ImageCandidate],
    limits: BenchmarkLimits,
) -> list[ImageCandidate]:
    """Sort candidates ascending by size and truncate to the tier's count.

    Remote placeholders and anything over the size or megapixel limit are
    dropped here as well, so the result always satisfies *limits* even if
    the input did not come from the safety filter. An empty list is a valid
    result.

    Args:
        candidates: Accepted candidates, in any order.
        limits: Active limits for the run.

    Returns:
        At most limits.max_candidate_count candidates, smallest first.
    """
    eligible = [
        c for c in candidates
        if not c.is_remote_placeholder
        and c.file_size_bytes <= limits.max_file_size_bytes
        and c.width * c.height / 1e6 <= limits.max_megapixels
    ]
    eligible.sort(key=selection_key)
    return eligible[:limits.max_candidate_count]
