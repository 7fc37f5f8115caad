"""Configuration records for the safe image benchmark."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_EXTENSIONS = ("png", "jpg", "jpeg", "bmp", "gif", "webp", "tif", "tiff")


@dataclass(frozen=True)
class BenchmarkBudget:
    """Time limits for one benchmark pass."""
    per_image_timeout_sec: float = 5.0
    total_time_budget_sec: float = 30.0

    def __post_init__(self):
        if self.per_image_timeout_sec <= 0:
            raise ValueError(f"per_image_timeout_sec must be positive, got {self.per_image_timeout_sec}")
        if self.total_time_budget_sec <= 0:
            raise ValueError(f"total_time_budget_sec must be positive, got {self.total_time_budget_sec}")

    @classmethod
    def from_env(cls) -> "BenchmarkBudget":
        return cls(
            per_image_timeout_sec=float(os.environ.get("SAFEBENCH_PER_IMAGE_TIMEOUT", "5.0")),
            total_time_budget_sec=float(os.environ.get("SAFEBENCH_TOTAL_BUDGET", "30.0")),
        )

    @classmethod
    def quick(cls) -> "BenchmarkBudget":
        """Tight budget for interactive use."""
        return cls(per_image_timeout_sec=1.0, total_time_budget_sec=5.0)


@dataclass(frozen=True)
class ScanConfig:
    """Where to look for candidate images and how far to walk."""
    search_roots: tuple[Path, ...] = field(default_factory=lambda: (Path("assets"), Path(".")))
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    max_depth: int = 0  # 0 = only the root itself
    max_inspected: Optional[int] = 500  # None = no cap
    fallback_only: bool = False  # later roots only if earlier roots had no images

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_inspected is not None and self.max_inspected < 1:
            raise ValueError(f"max_inspected must be >= 1, got {self.max_inspected}")
        object.__setattr__(self, "search_roots", tuple(Path(r) for r in self.search_roots))
        object.__setattr__(
            self, "extensions", tuple(e.lower().lstrip(".") for e in self.extensions)
        )

    @classmethod
    def from_env(cls) -> "ScanConfig":
        assets_dir = os.environ.get("SAFEBENCH_ASSETS_DIR", "assets")
        extensions = os.environ.get("SAFEBENCH_EXTENSIONS")
        return cls(
            search_roots=(Path(assets_dir), Path.cwd()),
            extensions=(
                tuple(e.strip() for e in extensions.split(",") if e.strip())
                if extensions
                else DEFAULT_EXTENSIONS
            ),
            max_depth=int(os.environ.get("SAFEBENCH_SCAN_DEPTH", "0")),
            fallback_only=os.environ.get("SAFEBENCH_FALLBACK_ONLY", "false").lower() == "true",
        )
