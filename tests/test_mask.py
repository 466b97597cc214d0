"""Tests for inpainting mask synthesis."""

from __future__ import annotations

import math

import pytest
from PIL import Image

from maskmagic.errors import InvalidGeometry, MaskGenerationFailed, SizeMismatch
from maskmagic.imgproc import MaskGenerator, MaskShape, Orientation, RasterImage
from maskmagic.imgproc.mask import OPAQUE, TRANSPARENT


def _canvas(width: int = 1024, height: int = 1024, scale: float = 1.0) -> RasterImage:
    return RasterImage(Image.new("RGBA", (width, height), (200, 200, 200, 255)), scale=scale)


@pytest.mark.parametrize("shape", list(MaskShape))
@pytest.mark.parametrize(
    ("width", "height", "scale"),
    [(1024, 1024, 1.0), (512, 512, 1.0), (300, 200, 2.0), (1, 1, 3.0)],
)
def test_mask_is_congruent_with_target(shape: MaskShape, width: int, height: int, scale: float) -> None:
    target = _canvas(width, height, scale)

    mask = MaskGenerator().generate_mask(target, shape)

    assert mask.is_congruent(target)
    assert mask.pixels.mode == "RGBA"


def test_mask_uses_logical_size_of_rotated_target() -> None:
    target = RasterImage(Image.new("RGB", (400, 200)), orientation=Orientation.LEFT)

    mask = MaskGenerator().generate_mask(target, MaskShape.RECTANGLE)

    assert mask.size == (200, 400)
    assert mask.is_congruent(target)


def test_circle_mask_geometry() -> None:
    mask = MaskGenerator().generate_mask(_canvas(), MaskShape.CIRCLE, 0.5)
    pixels = mask.pixels.load()

    for y in range(1024):
        for x in range(1024):
            distance = math.hypot(x + 0.5 - 512, y + 0.5 - 512)
            if distance > 256:
                assert pixels[x, y] == OPAQUE, (x, y)
            elif distance < 255:
                assert pixels[x, y] == TRANSPARENT, (x, y)

    assert pixels[512, 512] == TRANSPARENT
    assert pixels[0, 0] == OPAQUE
    assert pixels[1023, 1023] == OPAQUE


def test_circle_mask_stays_within_radius() -> None:
    mask = MaskGenerator().generate_mask(_canvas(), MaskShape.CIRCLE, 0.5)

    alpha = mask.pixels.getchannel("A")
    assert alpha.getbbox() == (0, 0, 1024, 1024)
    left, top, right, bottom = alpha.point(lambda value: 255 if value == 0 else 0).getbbox()
    assert 256 <= left <= 258 and 256 <= top <= 258
    assert 766 <= right <= 768 and 766 <= bottom <= 768


def test_rectangle_mask_geometry() -> None:
    mask = MaskGenerator().generate_mask(_canvas(), MaskShape.RECTANGLE, 0.5)

    alpha = mask.pixels.getchannel("A")
    transparent = alpha.point(lambda value: 255 if value == 0 else 0)
    assert transparent.getbbox() == (256, 256, 768, 768)
    # Every pixel inside the box is cleared, everything else is opaque black.
    assert transparent.crop((256, 256, 768, 768)).getextrema() == (255, 255)
    assert mask.pixels.getpixel((255, 255)) == OPAQUE
    assert mask.pixels.getpixel((768, 512)) == OPAQUE
    assert mask.pixels.getpixel((256, 256)) == TRANSPARENT
    assert mask.pixels.getpixel((767, 767)) == TRANSPARENT
    assert alpha.histogram()[0] == 512 * 512


def test_mask_alpha_is_binary() -> None:
    mask = MaskGenerator().generate_mask(_canvas(), MaskShape.CIRCLE)

    histogram = mask.pixels.getchannel("A").histogram()
    assert sum(histogram[1:255]) == 0


def test_mask_rejects_zero_area_target() -> None:
    with pytest.raises(InvalidGeometry):
        MaskGenerator().generate_mask(RasterImage(Image.new("RGBA", (0, 10))), MaskShape.CIRCLE)


@pytest.mark.parametrize("coverage", [0, -0.5, 1.5])
def test_mask_rejects_invalid_coverage(coverage: float) -> None:
    with pytest.raises(MaskGenerationFailed):
        MaskGenerator().generate_mask(_canvas(), MaskShape.CIRCLE, coverage)


def test_fit_mask_restores_congruence() -> None:
    generator = MaskGenerator()
    target = _canvas(512, 512, 1.0)
    stale = generator.generate_mask(_canvas(1024, 1024, 2.0), MaskShape.RECTANGLE)

    fitted = generator.fit_mask(stale, target)

    assert fitted.is_congruent(target)
    transparent = fitted.pixels.getchannel("A").point(lambda value: 255 if value == 0 else 0)
    assert transparent.getbbox() == (128, 128, 384, 384)


def test_fit_mask_fails_for_zero_area_target() -> None:
    generator = MaskGenerator()
    mask = generator.generate_mask(_canvas(), MaskShape.CIRCLE)

    with pytest.raises(SizeMismatch):
        generator.fit_mask(mask, RasterImage(Image.new("RGBA", (0, 0))))
