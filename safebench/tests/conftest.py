"""Shared fixtures for safebench tests."""

import os

import pytest
from PIL import Image

from safebench.benchmark.models import BenchmarkSample, FailureReason, ImageCandidate


def make_image(path, size=(64, 48), fmt=None, color=(200, 30, 30)):
    """Write a small real image to *path* and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


def make_noise_image(path, size=(400, 300), fmt="JPEG"):
    """Write an incompressible image, so most of the file is pixel data."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3)).save(path, format=fmt)
    return path


def make_sized_file(path, size_bytes):
    """Create a file reporting *size_bytes* without writing that much data."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size_bytes)
    return path


def candidate(name="a.png", size=1000, width=100, height=100, fmt=None, placeholder=False):
    from pathlib import Path
    return ImageCandidate(
        path=Path(name),
        file_size_bytes=size,
        width=width,
        height=height,
        is_remote_placeholder=placeholder,
        image_format=fmt,
    )


def sample(cand, micros, succeeded=True, reason=None):
    return BenchmarkSample(
        candidate=cand,
        decode_duration_micros=micros,
        succeeded=succeeded,
        failure_reason=reason if not succeeded else None,
    )


@pytest.fixture
def image_dir(tmp_path):
    """Directory with a handful of real images of different sizes."""
    d = tmp_path / "images"
    make_image(d / "small.png", (16, 16), "PNG")
    make_image(d / "medium.jpg", (320, 240), "JPEG")
    make_image(d / "large.png", (800, 600), "PNG")
    (d / "notes.txt").write_text("not an image")
    return d


@pytest.fixture
def timeout_sample():
    return sample(candidate("slow.png"), 50_000, succeeded=False, reason=FailureReason.DECODE_TIMEOUT)
