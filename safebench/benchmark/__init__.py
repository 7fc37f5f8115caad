"""Safe image selection and decode benchmarking.

Only the data models are re-exported here; they are shared with the
top-level safebench modules, which the benchmark components import in turn.
Import components from their modules, e.g.
``from safebench.benchmark.pipeline import run_safe_benchmark``.
"""

from safebench.benchmark.models import (
    NO_DATA,
    AggregateStats,
    BenchmarkLimits,
    BenchmarkSample,
    DecodeFailure,
    FailureReason,
    ImageCandidate,
    MetadataUnreadable,
    PerformanceProfile,
    PerformanceTier,
    RejectionReason,
    RunResult,
    SafeBenchError,
    ScanFailedError,
)

__all__ = [
    # Models
    "NO_DATA",
    "AggregateStats",
    "BenchmarkLimits",
    "BenchmarkSample",
    "FailureReason",
    "ImageCandidate",
    "PerformanceProfile",
    "PerformanceTier",
    "RejectionReason",
    "RunResult",
    # Errors
    "SafeBenchError",
    "MetadataUnreadable",
    "DecodeFailure",
    "ScanFailedError",
]
