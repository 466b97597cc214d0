"""Inpainting mask synthesis."""

from __future__ import annotations

import logging
from enum import Enum

from PIL import Image, ImageDraw

from maskmagic.errors import InvalidGeometry, MaskGenerationFailed, SizeMismatch
from maskmagic.imgproc.orientation import normalize_orientation
from maskmagic.imgproc.raster import RasterImage

logger = logging.getLogger(__name__)

# Opaque pixels are kept by the editing service; transparent ones are regenerated.
OPAQUE = (0, 0, 0, 255)
TRANSPARENT = (0, 0, 0, 0)


class MaskShape(str, Enum):
    """Shape of the transparent region carved into the centre of the mask."""

    CIRCLE = "circle"
    RECTANGLE = "rectangle"


class MaskGenerator:
    """Renders binary-alpha masks congruent with a target image."""

    def generate_mask(
        self,
        target: RasterImage,
        shape: MaskShape = MaskShape.CIRCLE,
        coverage: float = 0.5,
    ) -> RasterImage:
        """Return an opaque mask with a transparent centred ``shape``.

        ``coverage`` is the transparent region's size relative to the canvas:
        the circle's diameter relative to the shorter side, or each side of the
        rectangle relative to the matching canvas side.
        """

        width, height = target.size
        logger.info(
            "Generating %s mask for %dx%d, coverage %.2f",
            shape.value,
            width,
            height,
            coverage,
        )
        if width <= 0 or height <= 0:
            raise InvalidGeometry(f"Invalid image size: {width}x{height}")
        if not 0 < coverage <= 1:
            raise MaskGenerationFailed(f"Mask coverage must be within (0, 1], got {coverage}")

        try:
            canvas = Image.new("RGBA", (width, height), OPAQUE)
            if shape is MaskShape.CIRCLE:
                self._carve_circle(canvas, coverage)
            else:
                self._carve_rectangle(canvas, coverage)
        except (ValueError, MemoryError) as exc:
            raise MaskGenerationFailed("Failed to generate mask") from exc

        mask = RasterImage(pixels=canvas, scale=target.scale)
        if not mask.is_congruent(target):
            logger.warning(
                "Mask %s doesn't match image %s, refitting",
                mask.describe(),
                target.describe(),
            )
            mask = self.fit_mask(mask, target)
        return mask

    def fit_mask(self, mask: RasterImage, target: RasterImage) -> RasterImage:
        """Re-render ``mask`` at the exact pixel size and scale of ``target``."""

        width, height = target.size
        if width <= 0 or height <= 0:
            raise SizeMismatch("The mask and image sizes don't match and couldn't be fixed")

        pixels = normalize_orientation(mask).pixels
        if pixels.size != (width, height):
            # Nearest keeps the alpha channel binary.
            pixels = pixels.resize((width, height), Image.Resampling.NEAREST)
        if pixels.mode != "RGBA":
            pixels = pixels.convert("RGBA")

        fitted = RasterImage(pixels=pixels, scale=target.scale)
        if not fitted.is_congruent(target):
            raise SizeMismatch("The mask and image sizes don't match and couldn't be fixed")
        logger.info("Fitted mask to %s", fitted.describe())
        return fitted

    @staticmethod
    def _carve_circle(canvas: Image.Image, coverage: float) -> None:
        width, height = canvas.size
        diameter = round(min(width, height) * coverage)
        if diameter < 1:
            return
        left = (width - diameter) // 2
        top = (height - diameter) // 2
        # ImageDraw writes RGBA fills directly, without blending into the canvas.
        ImageDraw.Draw(canvas).ellipse(
            (left, top, left + diameter - 1, top + diameter - 1),
            fill=TRANSPARENT,
        )

    @staticmethod
    def _carve_rectangle(canvas: Image.Image, coverage: float) -> None:
        width, height = canvas.size
        rect_width = round(width * coverage)
        rect_height = round(height * coverage)
        if rect_width < 1 or rect_height < 1:
            return
        left = (width - rect_width) // 2
        top = (height - rect_height) // 2
        canvas.paste(TRANSPARENT, (left, top, left + rect_width, top + rect_height))
