"""Raster image value type shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from maskmagic.errors import DecodeError

EXIF_ORIENTATION_TAG = 0x0112


class Orientation(IntEnum):
    """EXIF orientation values; ``UP`` is the canonical top-left origin."""

    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @property
    def transposes(self) -> bool:
        """Whether the stored raster is transposed relative to its logical size."""

        return self >= Orientation.LEFT_MIRRORED

    @classmethod
    def from_exif(cls, value: object) -> Orientation:
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return cls.UP


@dataclass(frozen=True, slots=True)
class RasterImage:
    """Pixel buffer plus the metadata the editing service cares about.

    ``pixels`` is kept in its stored orientation; ``width`` and ``height`` are
    the logical dimensions once ``orientation`` is applied. Two images are
    congruent when width, height and scale all match.
    """

    pixels: Image.Image
    scale: float = 1.0
    orientation: Orientation = Orientation.UP
    format: str = "PNG"
    quality: int | None = None

    @property
    def width(self) -> int:
        stored_width, stored_height = self.pixels.size
        return stored_height if self.orientation.transposes else stored_width

    @property
    def height(self) -> int:
        stored_width, stored_height = self.pixels.size
        return stored_width if self.orientation.transposes else stored_height

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def is_congruent(self, other: RasterImage) -> bool:
        return self.size == other.size and self.scale == other.scale

    def encode(self, image_format: str | None = None) -> bytes:
        """Serialise the pixels with the image's own format unless overridden."""

        target_format = (image_format or self.format).upper()
        options: dict[str, object] = {}
        if self.orientation is not Orientation.UP:
            exif = Image.Exif()
            exif[EXIF_ORIENTATION_TAG] = int(self.orientation)
            options["exif"] = exif

        pixels = self.pixels
        if target_format == "JPEG":
            options["quality"] = self.quality or 90
            if pixels.mode not in ("RGB", "L"):
                pixels = pixels.convert("RGB")

        buffer = BytesIO()
        pixels.save(buffer, format=target_format, **options)
        return buffer.getvalue()

    def encoded_size(self, image_format: str | None = None) -> int:
        return len(self.encode(image_format))

    def with_pixels(self, pixels: Image.Image, **changes: object) -> RasterImage:
        return replace(self, pixels=pixels, **changes)  # type: ignore[arg-type]

    def describe(self) -> str:
        return f"{self.width}x{self.height} @{self.scale:g}x {self.orientation.name} {self.format}"

    @classmethod
    def from_bytes(cls, data: bytes, *, scale: float = 1.0) -> RasterImage:
        """Decode encoded bytes, keeping the EXIF orientation as a tag."""

        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                orientation = Orientation.from_exif(img.getexif().get(EXIF_ORIENTATION_TAG, 1))
                image_format = "JPEG" if img.format in ("JPEG", "MPO") else "PNG"
                pixels = img.copy()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise DecodeError("Failed to create image from data") from exc
        return cls(pixels=pixels, scale=scale, orientation=orientation, format=image_format)

    @classmethod
    def from_path(cls, path: str | Path, *, scale: float = 1.0) -> RasterImage:
        return cls.from_bytes(Path(path).expanduser().read_bytes(), scale=scale)
