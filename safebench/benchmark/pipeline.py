"""Single entry point composing the whole safe benchmark.

classify -> limits -> scan -> filter -> select -> run -> build profile

Everything runs synchronously on the calling thread (apart from the
per-image decode workers), so a host that must stay responsive should call
run_safe_benchmark() from a background thread and pass a cancel_event.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from safebench.benchmark.analyzer import ProfileBuilder
from safebench.benchmark.models import (
    PerformanceProfile,
    PerformanceTier,
    ScanFailedError,
)
from safebench.benchmark.runner import BenchmarkRunner, ProgressCallback
from safebench.benchmark.safety_filter import SafetyFilter
from safebench.benchmark.scanner import CandidateScanner
from safebench.benchmark.selector import select_candidates
from safebench.config import BenchmarkBudget, ScanConfig
from safebench.file_locality import is_remote_placeholder
from safebench.hardware import HostSignals, classify
from safebench.image_info import decode_image, read_image_info
from safebench.limits import LimitTable

logger = logging.getLogger(__name__)


def run_safe_benchmark(
    search_roots: Optional[Iterable] = None,
    host_signals: Optional[HostSignals] = None,
    budget: Optional[BenchmarkBudget] = None,
    *,
    limit_table: Optional[LimitTable] = None,
    scan_config: Optional[ScanConfig] = None,
    tier: Optional[PerformanceTier] = None,
    prober: Callable = read_image_info,
    decoder: Callable = decode_image,
    placeholder_check: Callable = is_remote_placeholder,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressCallback] = None,
) -> PerformanceProfile:
    """Select safe local images and benchmark decoding them.

    Args:
        search_roots: Directories to search, in priority order. Defaults to
            scan_config.search_roots.
        host_signals: Host capability signals to classify. Ignored when
            *tier* is given.
        budget: Per-image timeout and total time budget.
        limit_table: Limit overrides; canonical defaults when None.
        scan_config: Extensions, depth and inspection cap for the scan.
        tier: Force a tier instead of classifying host_signals.
        prober, decoder, placeholder_check: Collaborators, replaceable for
            hosts with their own image stack or cloud-file APIs.
        cancel_event: Set to stop before the next decode.
        progress: Called after each sample with (index, total, sample).

    Returns:
        PerformanceProfile. no_candidates_found is True when nothing
        survived filtering.

    Raises:
        ScanFailedError: No search root could be enumerated at all.
    """
    scan_config = scan_config or ScanConfig()
    budget = budget or BenchmarkBudget()
    limit_table = limit_table or LimitTable()
    roots = [Path(r) for r in (search_roots if search_roots is not None else scan_config.search_roots)]

    if tier is None:
        tier = classify(host_signals)
    limits = limit_table.limits_for(tier)
    logger.warning(
        f"Benchmark tier: {tier.label} (max {limits.max_file_size_bytes} bytes, "
        f"{limits.max_megapixels}MP, {limits.max_candidate_count} images)"
    )

    scanner = CandidateScanner(
        extensions=scan_config.extensions,
        max_depth=scan_config.max_depth,
        fallback_only=scan_config.fallback_only,
    )
    safety_filter = SafetyFilter(
        limits,
        prober=prober,
        placeholder_check=placeholder_check,
        max_inspected=scan_config.max_inspected,
    )

    paths = scanner.scan(roots)
    accepted = safety_filter.filter(paths)
    paths.close()

    if not scanner.stats.any_root_readable:
        raise ScanFailedError(
            f"None of the search roots could be read: {', '.join(str(r) for r in roots)}"
        )

    report = safety_filter.report
    logger.info(
        f"Inspected {report.inspected} files, accepted {report.accepted}, "
        f"rejected {dict((k.value, v) for k, v in report.rejections.items())}"
    )

    selected = select_candidates(accepted, limits)
    if not selected:
        logger.warning("No safe benchmark images found")

    runner = BenchmarkRunner(
        decoder=decoder,
        revalidate=safety_filter.revalidate,
        progress=progress,
    )
    run = runner.run(selected, budget, cancel_event=cancel_event)

    return ProfileBuilder().build_from_run(
        tier, run, selected_count=len(selected), limits=limits
    )
