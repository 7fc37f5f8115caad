"""Image header probing and full decoding via Pillow.

read_image_info() only parses the header (Image.open is lazy), so it is
cheap and safe to call on large files. decode_image() forces a full pixel
decode and is what the benchmark times.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from safebench.benchmark.models import DecodeFailure, MetadataUnreadable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageInfo:
    """Header-level image facts."""
    width: int
    height: int
    format: Optional[str] = None

    @property
    def megapixels(self) -> float:
        return self.width * self.height / 1_000_000


def read_image_info(path) -> ImageInfo:
    """Read dimensions and format from the image header.

    Raises:
        MetadataUnreadable: The file is not a readable image, or reports
            zero/negative dimensions.
    """
    try:
        with warnings.catch_warnings():
            # Size limits are enforced by the caller from width/height
            warnings.simplefilter("ignore", Image.DecompressionBombWarning)
            with Image.open(path) as img:
                width, height = img.size
                image_format = img.format
    except (OSError, UnidentifiedImageError, SyntaxError, ValueError,
            Image.DecompressionBombError) as e:
        raise MetadataUnreadable(f"{path}: {e}") from e

    if width <= 0 or height <= 0:
        raise MetadataUnreadable(f"{path}: degenerate dimensions {width}x{height}")

    return ImageInfo(
        width=width,
        height=height,
        format=image_format.lower() if image_format else None,
    )


def decode_image(path) -> ImageInfo:
    """Fully decode *path*; pixel data is discarded.

    Raises:
        DecodeFailure: Pillow could not decode the image.
    """
    try:
        with Image.open(path) as img:
            img.load()
            info = ImageInfo(
                width=img.width,
                height=img.height,
                format=img.format.lower() if img.format else None,
            )
    except (OSError, UnidentifiedImageError, SyntaxError, ValueError,
            Image.DecompressionBombError) as e:
        raise DecodeFailure(f"Failed to decode {path}: {e}") from e
    return info
