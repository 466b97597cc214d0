"""Byte-budget enforcement for encoded images."""

from __future__ import annotations

import logging

from PIL import Image

from maskmagic.config.settings import MIB
from maskmagic.errors import CompressionFailed
from maskmagic.imgproc.orientation import normalize_orientation
from maskmagic.imgproc.raster import RasterImage

logger = logging.getLogger(__name__)

RESIZE_STEP = 0.8
MIN_RESIZE_SCALE = 0.3
JPEG_QUALITIES = (90, 80, 70, 60, 50, 40, 30, 20)


def fit_to_budget(
    image: RasterImage,
    max_bytes: int,
    *,
    min_side: int = 0,
    allow_lossy: bool = True,
) -> RasterImage:
    """Return ``image`` or a reduced copy whose encoding fits in ``max_bytes``.

    Resolution is reduced first (lossless PNG, 0.8 steps, never below 0.3 of
    the original or a shorter side of ``min_side`` pixels). JPEG compression
    at the original resolution is the last resort and only runs when
    ``allow_lossy`` is set. Raises :class:`CompressionFailed` otherwise.
    """

    encoded_size = image.encoded_size()
    logger.info("Original %s size: %.2f MB", image.format, encoded_size / MIB)
    if encoded_size <= max_bytes:
        return image

    upright = normalize_orientation(image)
    width, height = upright.size
    scale = 1.0
    while True:
        scale *= RESIZE_STEP
        if scale < MIN_RESIZE_SCALE:
            break
        new_width = max(1, int(width * scale))
        new_height = max(1, int(height * scale))
        if min(new_width, new_height) < min_side:
            logger.info("Resize floor of %d px reached at scale %.2f", min_side, scale)
            break

        candidate = RasterImage(
            pixels=upright.pixels.resize((new_width, new_height), Image.Resampling.LANCZOS),
        )
        encoded_size = candidate.encoded_size()
        logger.info(
            "Resized image to %dx%d, size: %.2f MB",
            new_width,
            new_height,
            encoded_size / MIB,
        )
        if encoded_size <= max_bytes:
            return candidate

    if allow_lossy:
        for quality in JPEG_QUALITIES:
            candidate = upright.with_pixels(upright.pixels, format="JPEG", quality=quality)
            encoded_size = candidate.encoded_size()
            logger.info("JPEG compression quality %.1f, size: %.2f MB", quality / 100, encoded_size / MIB)
            if encoded_size <= max_bytes:
                return candidate

    logger.warning("Failed to compress image below %.2f MB", max_bytes / MIB)
    raise CompressionFailed(f"Failed to compress image below {max_bytes / MIB:.2f} MB")
