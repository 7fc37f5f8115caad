"""Per-tier benchmark limits.

Defines the limit fields, their canonical defaults per performance tier,
validation rules, and an override layer so a caller can replace any value
for any tier.

Resolution order:
    1. Caller override (from JSON file, env vars or code) -- highest priority
    2. Canonical tier default

Overrides are validated when they are applied, so limits_for() itself has
no error path.
"""

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from safebench.benchmark.models import BenchmarkLimits, PerformanceTier

logger = logging.getLogger(__name__)

MB = 1024 * 1024


# ============================================================================
# Field definitions
# ============================================================================

class LimitType(str, Enum):
    INT = "int"
    FLOAT = "float"


@dataclass(frozen=True)
class LimitDef:
    """Definition of a single limit field."""
    key: str
    label: str
    description: str
    type: LimitType
    min_val: Optional[float] = None
    max_val: Optional[float] = None


LIMIT_DEFS: dict[str, LimitDef] = {
    "max_file_size_bytes": LimitDef(
        "max_file_size_bytes", "Max File Size",
        "Largest file (in bytes) considered for benchmarking",
        LimitType.INT, min_val=1,
    ),
    "max_megapixels": LimitDef(
        "max_megapixels", "Max Megapixels",
        "Largest image (width*height/1e6, from header) considered for benchmarking",
        LimitType.FLOAT, min_val=0.001,
    ),
    "max_candidate_count": LimitDef(
        "max_candidate_count", "Max Images",
        "Number of images decoded in one benchmark pass",
        LimitType.INT, min_val=0, max_val=1000,
    ),
}


# ============================================================================
# Tier defaults
# ============================================================================

TIER_DEFAULTS: dict[PerformanceTier, dict[str, Any]] = {
    PerformanceTier.LOW: {
        "max_file_size_bytes": 2 * MB,
        "max_megapixels": 4.0,  # 2048x2048
        "max_candidate_count": 3,
    },
    PerformanceTier.MODERATE: {
        "max_file_size_bytes": 5 * MB,
        "max_megapixels": 8.0,  # ~2800x2800
        "max_candidate_count": 5,
    },
    PerformanceTier.GOOD: {
        "max_file_size_bytes": 10 * MB,
        "max_megapixels": 16.0,  # 4096x4096
        "max_candidate_count": 8,
    },
    PerformanceTier.HIGH: {
        "max_file_size_bytes": 20 * MB,
        "max_megapixels": 32.0,  # ~5600x5600
        "max_candidate_count": 10,
    },
    PerformanceTier.EXCELLENT: {
        "max_file_size_bytes": 50 * MB,
        "max_megapixels": 64.0,  # 8192x8192
        "max_candidate_count": 15,
    },
}

ENV_PREFIX = "SAFEBENCH_LIMIT_"


def default_limits(tier: PerformanceTier) -> BenchmarkLimits:
    """Canonical limits for a tier, ignoring any overrides."""
    return BenchmarkLimits(**TIER_DEFAULTS[tier])


# ============================================================================
# Limit table
# ============================================================================

class LimitTable:
    """Resolves tier limits with caller overrides applied.

    Usage:
        table = LimitTable({"low": {"max_candidate_count": 5}})
        limits = table.limits_for(PerformanceTier.LOW)
    """

    def __init__(self, overrides: Optional[dict] = None):
        """
        Args:
            overrides: Mapping of tier (name or PerformanceTier) to a partial
                dict of limit fields.

        Raises:
            KeyError: Unknown tier or field name.
            ValueError: Tier entry that is not a mapping, value of the wrong
                type or out of range, or an override that breaks the
                non-decreasing ordering across tiers.
        """
        self._overrides: dict[PerformanceTier, dict[str, Any]] = {}
        for tier, fields in (overrides or {}).items():
            if not isinstance(fields, dict):
                raise ValueError(f"{tier}: expected an object of limit fields, got {fields!r}")
            for key, value in fields.items():
                self._set(tier, key, value)
        self._check_monotonic()
        self._table = {tier: self._resolve(tier) for tier in PerformanceTier}

    def _set(self, tier, key: str, value: Any) -> None:
        if not isinstance(tier, PerformanceTier):
            tier = PerformanceTier.from_name(str(tier))
        if key not in LIMIT_DEFS:
            raise KeyError(f"Unknown limit: {key}")
        value = _coerce_and_validate(LIMIT_DEFS[key], value)
        self._overrides.setdefault(tier, {})[key] = value

    def _resolve(self, tier: PerformanceTier) -> BenchmarkLimits:
        values = dict(TIER_DEFAULTS[tier])
        values.update(self._overrides.get(tier, {}))
        return BenchmarkLimits(**values)

    def _check_monotonic(self) -> None:
        tiers = sorted(PerformanceTier)
        resolved = [self._resolve(t) for t in tiers]
        for lower, upper, lo, hi in zip(tiers, tiers[1:], resolved, resolved[1:]):
            for key in LIMIT_DEFS:
                if getattr(lo, key) > getattr(hi, key):
                    raise ValueError(
                        f"{key}: {lower.label} ({getattr(lo, key)}) exceeds "
                        f"{upper.label} ({getattr(hi, key)})"
                    )

    def limits_for(self, tier: PerformanceTier) -> BenchmarkLimits:
        """Return the effective limits for a tier. Total over the enum."""
        return self._table[tier]

    def has_override(self, tier: PerformanceTier, key: str) -> bool:
        if key not in LIMIT_DEFS:
            raise KeyError(f"Unknown limit: {key}")
        return key in self._overrides.get(tier, {})

    def describe(self) -> dict:
        """All tiers with value/default/override metadata, for display."""
        result = {}
        for tier in PerformanceTier:
            limits = self._table[tier]
            fields = {}
            for key, defn in LIMIT_DEFS.items():
                info = {
                    "value": getattr(limits, key),
                    "default": TIER_DEFAULTS[tier][key],
                    "is_override": self.has_override(tier, key),
                    "type": defn.type.value,
                    "label": defn.label,
                }
                if defn.min_val is not None:
                    info["min"] = defn.min_val
                if defn.max_val is not None:
                    info["max"] = defn.max_val
                fields[key] = info
            result[tier.name.lower()] = fields
        return result

    @classmethod
    def from_sources(
        cls,
        json_path: Optional[str] = None,
        environ: Optional[dict] = None,
    ) -> "LimitTable":
        """Merge overrides from an optional JSON file and the environment.

        Environment values win over the file.
        """
        overrides: dict[str, dict[str, Any]] = {}
        if json_path:
            for tier, fields in load_json_overrides(json_path).items():
                overrides.setdefault(tier, {}).update(fields)
        for tier, fields in load_env_overrides(environ).items():
            overrides.setdefault(tier, {}).update(fields)
        return cls(overrides)


def _coerce_and_validate(defn: LimitDef, value: Any) -> Any:
    """Coerce to the field type and check range constraints."""
    if isinstance(value, bool):
        raise ValueError(f"{defn.key}: expected a number, got {value!r}")
    if defn.type == LimitType.INT:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{defn.key}: expected an integer, got {value!r}")
    try:
        value = int(value) if defn.type == LimitType.INT else float(value)
    except (TypeError, OverflowError):
        raise ValueError(f"{defn.key}: expected a number, got {value!r}") from None

    if defn.min_val is not None and value < defn.min_val:
        raise ValueError(f"{defn.key}: {value} below minimum {defn.min_val}")
    if defn.max_val is not None and value > defn.max_val:
        raise ValueError(f"{defn.key}: {value} above maximum {defn.max_val}")
    return value


def load_json_overrides(path) -> dict[str, dict[str, Any]]:
    """Read a JSON file of {tier: {field: value}} overrides.

    Tier names are lower-cased; fields are validated later by LimitTable.

    Raises:
        OSError: File cannot be read.
        ValueError: Invalid JSON, or a document that is not an object of
            objects.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object mapping tier names to limits")
    overrides: dict[str, dict[str, Any]] = {}
    for tier, fields in data.items():
        if not isinstance(fields, dict):
            raise ValueError(f"{path}: limits for tier {tier!r} must be an object, got {fields!r}")
        overrides.setdefault(tier.lower(), {}).update(fields)
    return overrides


def load_env_overrides(environ: Optional[dict] = None) -> dict[str, dict[str, str]]:
    """Collect SAFEBENCH_LIMIT_<TIER>_<FIELD> variables.

    Example: SAFEBENCH_LIMIT_LOW_MAX_CANDIDATE_COUNT=4

    Values are returned as raw strings; LimitTable coerces them.
    Variables naming an unknown tier or field are logged and ignored.
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, dict[str, str]] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        rest = name[len(ENV_PREFIX):].lower()
        tier_name, _, key = rest.partition("_")
        if tier_name.upper() not in PerformanceTier.__members__ or key not in LIMIT_DEFS:
            logger.warning(f"Ignoring unrecognised limit override {name}")
            continue
        overrides.setdefault(tier_name, {})[key] = value
    return overrides


def limits_for(tier: PerformanceTier, table: Optional[LimitTable] = None) -> BenchmarkLimits:
    """Convenience: limits for a tier from *table*, or the canonical defaults."""
    if table is None:
        return default_limits(tier)
    return table.limits_for(tier)
