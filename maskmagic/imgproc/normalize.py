"""Image normalisation helpers."""

from __future__ import annotations

import logging

from PIL import Image

from maskmagic.config.settings import MIB, Settings
from maskmagic.errors import ImageTooLarge, InvalidGeometry
from maskmagic.imgproc.orientation import normalize_orientation
from maskmagic.imgproc.raster import RasterImage

logger = logging.getLogger(__name__)


class ImageNormalizer:
    """Crops images to a centred square on the fixed canvas the editing service expects."""

    def __init__(
        self,
        canvas_size: int = 1024,
        fallback_canvas_size: int = 512,
        max_bytes: int = int(3.9 * MIB),
    ) -> None:
        self._canvas_size = canvas_size
        self._fallback_canvas_size = fallback_canvas_size
        self._max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> ImageNormalizer:
        return cls(
            canvas_size=settings.canvas_size,
            fallback_canvas_size=settings.fallback_canvas_size,
            max_bytes=settings.soft_limit_bytes,
        )

    def prepare(self, image: RasterImage) -> RasterImage:
        """Return a square PNG canvas at scale 1 that fits the soft byte budget.

        Squares already on the main canvas are kept as they are. A square on
        the fallback canvas is still rendered at the main canvas size first
        and only kept unchanged when that render is over budget.
        """

        logger.info("Preparing image, original size: %s", image.describe())
        if image.width <= 0 or image.height <= 0:
            raise InvalidGeometry(f"Invalid image size: {image.width}x{image.height}")

        upright = normalize_orientation(image).pixels
        width, height = upright.size
        side = min(width, height)
        left = (width - side) // 2
        top = (height - side) // 2
        if (width, height) != (side, side):
            logger.debug("Cropping to square %dx%d at (%d, %d)", side, side, left, top)
            upright = upright.crop((left, top, left + side, top + side))
        if upright.mode != "RGBA":
            upright = upright.convert("RGBA")

        canvas = upright
        if side != self._canvas_size:
            canvas = upright.resize((self._canvas_size, self._canvas_size), Image.Resampling.LANCZOS)
        prepared = RasterImage(pixels=canvas)

        encoded_size = prepared.encoded_size()
        logger.info("Prepared image %s, %.2f MB", prepared.describe(), encoded_size / MIB)
        if encoded_size <= self._max_bytes:
            return prepared

        if self._fallback_canvas_size < self._canvas_size:
            logger.warning(
                "Prepared image is too large (%.2f MB), resizing to %dx%d",
                encoded_size / MIB,
                self._fallback_canvas_size,
                self._fallback_canvas_size,
            )
            fallback = upright
            if side != self._fallback_canvas_size:
                fallback = upright.resize(
                    (self._fallback_canvas_size, self._fallback_canvas_size),
                    Image.Resampling.LANCZOS,
                )
            prepared = RasterImage(pixels=fallback)
            encoded_size = prepared.encoded_size()
            if encoded_size <= self._max_bytes:
                return prepared

        raise ImageTooLarge(
            f"Image is too large for the API ({encoded_size / MIB:.2f} MB after resizing)"
        )
