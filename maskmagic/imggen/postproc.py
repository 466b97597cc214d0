"""Post-processing utilities for generated images."""

from __future__ import annotations

import logging

from maskmagic.imgproc.orientation import describe_orientation, normalize_orientation
from maskmagic.imgproc.raster import RasterImage

logger = logging.getLogger(__name__)


class ImagePostProcessor:
    """Turns downloaded bytes into an upright raster."""

    def decode(self, data: bytes) -> RasterImage:
        """Decode downloaded bytes, raising :class:`DecodeError` for non-images."""

        image = RasterImage.from_bytes(data)
        logger.info(
            "Downloaded image orientation: %s, size: %dx%d",
            describe_orientation(image.orientation),
            image.width,
            image.height,
        )
        return image

    def reconcile(self, image: RasterImage) -> RasterImage:
        return normalize_orientation(image)
