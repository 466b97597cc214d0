"""Orientation normalisation and diagnostic logging for raster images."""

from __future__ import annotations

import logging

from PIL import Image

from maskmagic.imgproc.raster import Orientation, RasterImage

logger = logging.getLogger(__name__)

_TRANSPOSE_METHODS = {
    Orientation.UP_MIRRORED: Image.Transpose.FLIP_LEFT_RIGHT,
    Orientation.DOWN: Image.Transpose.ROTATE_180,
    Orientation.DOWN_MIRRORED: Image.Transpose.FLIP_TOP_BOTTOM,
    Orientation.LEFT_MIRRORED: Image.Transpose.TRANSPOSE,
    Orientation.RIGHT: Image.Transpose.ROTATE_270,
    Orientation.RIGHT_MIRRORED: Image.Transpose.TRANSVERSE,
    Orientation.LEFT: Image.Transpose.ROTATE_90,
}

_DESCRIPTIONS = {
    Orientation.UP: "UP (0°)",
    Orientation.DOWN: "DOWN (180°)",
    Orientation.LEFT: "LEFT (90° CCW)",
    Orientation.RIGHT: "RIGHT (90° CW)",
    Orientation.UP_MIRRORED: "UP MIRRORED",
    Orientation.DOWN_MIRRORED: "DOWN MIRRORED",
    Orientation.LEFT_MIRRORED: "LEFT MIRRORED",
    Orientation.RIGHT_MIRRORED: "RIGHT MIRRORED",
}


def describe_orientation(orientation: Orientation) -> str:
    """Return a human-readable orientation label."""

    return _DESCRIPTIONS.get(orientation, "UNKNOWN")


def log_image_details(image: RasterImage | None, label: str) -> None:
    if image is None:
        logger.warning("%s: image is missing", label)
        return
    logger.debug(
        "%s: orientation=%s size=%dx%d scale=%g",
        label,
        describe_orientation(image.orientation),
        image.width,
        image.height,
        image.scale,
    )


def normalize_orientation(image: RasterImage) -> RasterImage:
    """Re-render ``image`` into a canonical top-left raster of the same logical size.

    Images that are already canonical are returned unchanged. A re-rendered
    raster whose width and height came out swapped is logged as an anomaly
    and still returned.
    """

    log_image_details(image, "before orientation fix")
    if image.orientation is Orientation.UP:
        return image

    expected_width, expected_height = image.size
    upright = image.with_pixels(
        image.pixels.transpose(_TRANSPOSE_METHODS[image.orientation]),
        orientation=Orientation.UP,
    )
    if (
        expected_width != expected_height
        and (upright.width, upright.height) == (expected_height, expected_width)
    ):
        logger.warning(
            "Image dimensions were swapped during orientation fix: expected %dx%d, got %dx%d",
            expected_width,
            expected_height,
            upright.width,
            upright.height,
        )

    log_image_details(upright, "after orientation fix")
    return upright
