"""Data models for the safe image benchmark.

These dataclasses describe the performance tiers, the limits derived from
them, the image candidates that survive scanning and filtering, the
per-image samples recorded by the runner, and the aggregated profile
handed back to the caller.
"""

import json
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional


# ============================================================================
# Errors
# ============================================================================

class SafeBenchError(Exception):
    """Base class for all benchmark errors."""


class MetadataUnreadable(SafeBenchError):
    """Image header could not be read or describes a degenerate image."""


class DecodeFailure(SafeBenchError):
    """Full decode of an image failed."""


class ScanFailedError(SafeBenchError):
    """None of the search roots could be enumerated."""


class FailureReason(str, Enum):
    METADATA_UNREADABLE = "metadata_unreadable"
    DECODE_FAILURE = "decode_failure"
    DECODE_TIMEOUT = "decode_timeout"


class RejectionReason(str, Enum):
    STAT_FAILED = "stat_failed"
    FILE_TOO_LARGE = "file_too_large"
    REMOTE_PLACEHOLDER = "remote_placeholder"
    METADATA_UNREADABLE = "metadata_unreadable"
    TOO_MANY_MEGAPIXELS = "too_many_megapixels"


# ============================================================================
# Tiers and limits
# ============================================================================

class PerformanceTier(int, Enum):
    """Ordered host capability classification, Low < ... < Excellent."""
    LOW = 0
    MODERATE = 1
    GOOD = 2
    HIGH = 3
    EXCELLENT = 4

    @property
    def label(self) -> str:
        return self.name.title()

    @classmethod
    def from_name(cls, name: str) -> "PerformanceTier":
        """Look up a tier by case-insensitive name ("low", "Excellent", ...)."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise KeyError(f"Unknown performance tier: {name}") from None


@dataclass(frozen=True)
class BenchmarkLimits:
    """Safety limits applied to candidates for one tier."""
    max_file_size_bytes: int
    max_megapixels: float
    max_candidate_count: int

    def to_dict(self) -> dict:
        return asdict(self)


# ============================================================================
# Candidates and samples
# ============================================================================

@dataclass(frozen=True)
class ImageCandidate:
    """An image that passed (or is being checked by) the safety filter."""
    path: Path
    file_size_bytes: int
    width: int
    height: int
    is_remote_placeholder: bool = False
    image_format: Optional[str] = None

    @property
    def megapixels(self) -> float:
        return self.width * self.height / 1_000_000

    @property
    def format_key(self) -> str:
        """Format tag used for per-format grouping.

        Prefers the decoder's format tag, falls back to the file suffix.
        """
        if self.image_format:
            return self.image_format.lower()
        suffix = Path(self.path).suffix.lower().lstrip(".")
        if suffix == "jpg":
            return "jpeg"
        if suffix == "tif":
            return "tiff"
        return suffix or "unknown"

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "file_size_bytes": self.file_size_bytes,
            "width": self.width,
            "height": self.height,
            "is_remote_placeholder": self.is_remote_placeholder,
            "image_format": self.image_format,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImageCandidate":
        return cls(
            path=Path(data["path"]),
            file_size_bytes=data["file_size_bytes"],
            width=data["width"],
            height=data["height"],
            is_remote_placeholder=data.get("is_remote_placeholder", False),
            image_format=data.get("image_format"),
        )


@dataclass(frozen=True)
class BenchmarkSample:
    """Timing for one attempted decode."""
    candidate: ImageCandidate
    decode_duration_micros: int
    succeeded: bool
    failure_reason: Optional[FailureReason] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "candidate": self.candidate.to_dict(),
            "decode_duration_micros": self.decode_duration_micros,
            "succeeded": self.succeeded,
            "failure_reason": self.failure_reason.value if self.failure_reason else None,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BenchmarkSample":
        reason = data.get("failure_reason")
        return cls(
            candidate=ImageCandidate.from_dict(data["candidate"]),
            decode_duration_micros=data["decode_duration_micros"],
            succeeded=data["succeeded"],
            failure_reason=FailureReason(reason) if reason else None,
            error_message=data.get("error_message"),
        )


@dataclass(frozen=True)
class RunResult:
    """Output of the benchmark runner before aggregation."""
    samples: tuple[BenchmarkSample, ...]
    incomplete: bool = False
    cancelled: bool = False
    elapsed_sec: float = 0.0


# ============================================================================
# Profile
# ============================================================================

@dataclass(frozen=True)
class AggregateStats:
    """Summary statistics over successful samples.

    Timing fields are None in the NO_DATA sentinel. The per-format maps
    are read-only views, so a shared instance cannot be altered.
    """
    mean_micros: Optional[float]
    max_micros: Optional[int]
    per_format_means: Mapping[str, float] = field(default_factory=dict)
    p95_micros: Optional[float] = None
    success_count: int = 0
    failure_count: int = 0
    max_successful_megapixels: float = 0.0
    micros_per_megapixel: Optional[float] = None
    per_format_micros_per_megapixel: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "per_format_means", MappingProxyType(dict(self.per_format_means)))
        object.__setattr__(
            self,
            "per_format_micros_per_megapixel",
            MappingProxyType(dict(self.per_format_micros_per_megapixel)),
        )

    @property
    def has_data(self) -> bool:
        return self.mean_micros is not None

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["per_format_means"] = dict(self.per_format_means)
        data["per_format_micros_per_megapixel"] = dict(self.per_format_micros_per_megapixel)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "AggregateStats":
        if data.get("mean_micros") is None:
            if not data.get("failure_count"):
                return NO_DATA
        return cls(**data)


NO_DATA = AggregateStats(mean_micros=None, max_micros=None)


@dataclass(frozen=True)
class PerformanceProfile:
    """Read-only result of one benchmark invocation."""
    tier: PerformanceTier
    samples: tuple[BenchmarkSample, ...]
    aggregate_stats: AggregateStats
    incomplete: bool = False
    cancelled: bool = False
    selected_count: int = 0
    limits: Optional[BenchmarkLimits] = None

    @property
    def no_candidates_found(self) -> bool:
        """True when nothing survived filtering, so nothing was benchmarked."""
        return self.selected_count == 0

    def estimate_decode_micros(
        self, megapixels: float, image_format: Optional[str] = None
    ) -> Optional[float]:
        """Estimate decode time for an image of the given size.

        Uses the per-format rate when one was measured, otherwise the
        overall rate. Returns None when the profile has no timing data.
        """
        stats = self.aggregate_stats
        if not stats.has_data or stats.micros_per_megapixel is None:
            return None
        rate = stats.micros_per_megapixel
        if image_format:
            rate = stats.per_format_micros_per_megapixel.get(image_format.lower(), rate)
        return rate * megapixels

    def will_decode_within(
        self,
        megapixels: float,
        image_format: Optional[str],
        threshold_ms: float,
    ) -> Optional[bool]:
        """Return whether an image is expected to decode within threshold_ms.

        None means "unknown" (no benchmark data).
        """
        estimate = self.estimate_decode_micros(megapixels, image_format)
        if estimate is None:
            return None
        return estimate <= threshold_ms * 1000

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.name.lower(),
            "samples": [s.to_dict() for s in self.samples],
            "aggregate_stats": self.aggregate_stats.to_dict(),
            "incomplete": self.incomplete,
            "cancelled": self.cancelled,
            "selected_count": self.selected_count,
            "limits": self.limits.to_dict() if self.limits else None,
        }

    def to_json(self) -> str:
        """Serialize the profile to a JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "PerformanceProfile":
        """Deserialize a profile written by to_json()."""
        data = json.loads(json_str)
        limits = data.get("limits")
        return cls(
            tier=PerformanceTier.from_name(data["tier"]),
            samples=tuple(BenchmarkSample.from_dict(s) for s in data["samples"]),
            aggregate_stats=AggregateStats.from_dict(data["aggregate_stats"]),
            incomplete=data["incomplete"],
            cancelled=data.get("cancelled", False),
            selected_count=data.get("selected_count", 0),
            limits=BenchmarkLimits(**limits) if limits else None,
        )
