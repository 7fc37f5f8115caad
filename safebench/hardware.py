"""Host capability probing and performance tier classification.

Probes CPU and memory (and optionally runs a short synthetic calibration)
to build an immutable set of host signals. classify() maps those signals
to a PerformanceTier; it is a pure function so it can be exercised with
synthetic signals.

All probes have graceful fallbacks: a signal that cannot be read is None,
and missing signals push the classification toward the lowest tier.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from safebench.benchmark.models import PerformanceTier

logger = logging.getLogger(__name__)


# Calibration score -> tier. Upper bounds are exclusive.
SCORE_THRESHOLDS = [
    (1000, PerformanceTier.LOW),
    (3000, PerformanceTier.MODERATE),
    (6000, PerformanceTier.GOOD),
    (10000, PerformanceTier.HIGH),
]

# (min cores, min memory MB) required for each tier, best first.
RESOURCE_THRESHOLDS = [
    (PerformanceTier.EXCELLENT, 16, 32768),
    (PerformanceTier.HIGH, 8, 16384),
    (PerformanceTier.GOOD, 4, 8192),
    (PerformanceTier.MODERATE, 2, 4096),
]

MIN_CALIBRATION_SCORE = 50
MAX_CALIBRATION_SCORE = 15000


@dataclass(frozen=True)
class HostSignals:
    """Immutable host capability signals. Any field may be unknown (None)."""
    cpu_cores: Optional[int] = None
    memory_total_mb: Optional[int] = None
    calibration_score: Optional[int] = None

    def summary(self) -> str:
        """One-line host summary for the startup log."""
        cores = f"{self.cpu_cores} cores" if self.cpu_cores else "unknown cores"
        memory = f"{self.memory_total_mb}MB RAM" if self.memory_total_mb else "unknown RAM"
        if self.calibration_score is None:
            return f"{cores}, {memory}"
        return f"{cores}, {memory}, calibration score {self.calibration_score}"


# ============================================================================
# Classification
# ============================================================================

def tier_from_score(score: int) -> PerformanceTier:
    """Map a calibration score to a tier."""
    for upper, tier in SCORE_THRESHOLDS:
        if score < upper:
            return tier
    return PerformanceTier.EXCELLENT


def _tier_from_resources(cpu_cores: Optional[int], memory_total_mb: Optional[int]) -> PerformanceTier:
    if not _is_positive(cpu_cores) or not _is_positive(memory_total_mb):
        return PerformanceTier.LOW
    for tier, min_cores, min_memory_mb in RESOURCE_THRESHOLDS:
        if cpu_cores >= min_cores and memory_total_mb >= min_memory_mb:
            return tier
    return PerformanceTier.LOW


def _is_positive(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def classify(signals: Optional[HostSignals]) -> PerformanceTier:
    """Classify host signals into a performance tier.

    Total and side-effect free: unknown or unreadable signals degrade the
    result toward LOW instead of raising. When a calibration score is
    present the result is the lower of the resource tier and the score tier.
    """
    if signals is None:
        return PerformanceTier.LOW

    tier = _tier_from_resources(signals.cpu_cores, signals.memory_total_mb)
    if signals.calibration_score is not None:
        if not _is_positive(signals.calibration_score):
            return PerformanceTier.LOW
        tier = min(tier, tier_from_score(int(signals.calibration_score)))
    return tier


# ============================================================================
# Probes
# ============================================================================

def _probe_cpu() -> Optional[int]:
    """Probe CPU core count, respecting cgroup limits."""
    # Check cgroup v2 limit first (Docker containers)
    try:
        cgroup_path = Path("/sys/fs/cgroup/cpu.max")
        if cgroup_path.exists():
            parts = cgroup_path.read_text().strip().split()
            if parts[0] != "max":
                quota = int(parts[0])
                period = int(parts[1])
                return max(1, quota // period)
    except (OSError, ValueError, IndexError) as e:
        logger.debug(f"cgroup cpu.max unreadable: {e}")

    return os.cpu_count()


def _probe_memory() -> Optional[int]:
    """Probe total memory in MB, capped by the cgroup v2 limit."""
    total_mb = None
    try:
        import psutil
        total_mb = psutil.virtual_memory().total // (1024 * 1024)
    except Exception as e:
        logger.debug(f"psutil memory probe failed: {e}")

    try:
        cgroup_path = Path("/sys/fs/cgroup/memory.max")
        if cgroup_path.exists():
            content = cgroup_path.read_text().strip()
            if content != "max":
                cgroup_limit_mb = int(content) // (1024 * 1024)
                total_mb = min(total_mb, cgroup_limit_mb) if total_mb else cgroup_limit_mb
    except (OSError, ValueError) as e:
        logger.debug(f"cgroup memory.max unreadable: {e}")

    return total_mb or None


def run_calibration_probe(scratch_dir: Optional[str] = None) -> Optional[int]:
    """Run a short synthetic workload resembling image loading.

    Writes and re-reads a small scratch file, fills and packs pixel
    buffers, and does scaling arithmetic. The raw work score is
    normalised by elapsed wall time and clamped to
    [MIN_CALIBRATION_SCORE, MAX_CALIBRATION_SCORE].

    Returns None if the probe itself could not run.
    """
    start = time.perf_counter()
    score = 0

    try:
        # Storage: one write, several reads of a typical small image
        payload = b"\xab" * 500_000
        with tempfile.TemporaryDirectory(dir=scratch_dir) as tmp:
            scratch = Path(tmp) / "calibration.bin"
            io_start = time.perf_counter()
            scratch.write_bytes(payload)
            read_times = []
            for _ in range(5):
                read_start = time.perf_counter()
                data = scratch.read_bytes()
                read_times.append(time.perf_counter() - read_start)
                score += len(data) // 10_000
            io_ms = (time.perf_counter() - io_start) * 1000
        avg_read_ms = sum(read_times) / len(read_times) * 1000
        if avg_read_ms < 200:
            score += int(2000.0 / max(avg_read_ms + io_ms, 1.0) * 1000)

        # Memory: fill a buffer and pack it as RGBA words
        for _ in range(5):
            buffer = (np.arange(200_000) % 256).astype(np.uint8)
            rgba = buffer.reshape(-1, 4).astype(np.uint32)
            packed = (rgba[:, 0] << 24) | (rgba[:, 1] << 16) | (rgba[:, 2] << 8) | rgba[:, 3]
            score += int(packed.astype(np.uint64).sum() // 10_000_000)

        # Arithmetic: fit-to-box scaling
        widths = np.full(25_000, 1920, dtype=np.float32)
        heights = np.full(25_000, 1080, dtype=np.float32)
        scale = np.minimum(1024 / np.maximum(widths, heights), 1.0)
        sizes = (widths * scale).astype(np.uint32) + (heights * scale).astype(np.uint32)
        score += int(((sizes + np.arange(25_000, dtype=np.uint32)) // 2000).sum())
    except (OSError, ValueError, MemoryError) as e:
        logger.warning(f"Calibration probe failed: {e}")
        return None

    elapsed_ms = (time.perf_counter() - start) * 1000
    normalised = int(score * (50.0 / max(elapsed_ms, 1.0)))
    return max(MIN_CALIBRATION_SCORE, min(MAX_CALIBRATION_SCORE, normalised))


def detect_host_signals(calibrate: bool = False) -> HostSignals:
    """Run all host probes and build an immutable signal set.

    Args:
        calibrate: Also run the synthetic calibration probe.

    Returns:
        Frozen HostSignals dataclass.
    """
    signals = HostSignals(
        cpu_cores=_probe_cpu(),
        memory_total_mb=_probe_memory(),
        calibration_score=run_calibration_probe() if calibrate else None,
    )
    logger.warning(f"Host: {signals.summary()}")
    return signals
