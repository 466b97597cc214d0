"""Request and response shapes exchanged with the generation backend."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel

from maskmagic.errors import DecodeError, SizeMismatch
from maskmagic.imgproc.raster import RasterImage


def to_data_uri(payload: bytes, media_type: str = "image/png") -> str:
    return f"data:{media_type};base64,{base64.b64encode(payload).decode('ascii')}"


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Image, mask and prompt submitted in one edit call.

    The image and mask must be congruent; construction fails otherwise.
    """

    image: RasterImage
    mask: RasterImage
    prompt: str
    model: str = "dall-e-2"
    size: str = "1024x1024"
    response_format: str = "url"

    def __post_init__(self) -> None:
        if not self.image.is_congruent(self.mask):
            raise SizeMismatch(
                f"Image size ({self.image.describe()}) and mask size ({self.mask.describe()}) don't match"
            )

    def to_payload(self) -> dict[str, Any]:
        return {
            "image": to_data_uri(self.image.encode("PNG")),
            "mask": to_data_uri(self.mask.encode("PNG")),
            "prompt": self.prompt,
            "model": self.model,
            "size": self.size,
            "response_format": self.response_format,
        }


class ImageData(BaseModel):
    url: str | None = None


class GenerationResponse(BaseModel):
    """Envelope returned by the backend: ``{"created": ..., "data": [{"url": ...}]}``."""

    created: int
    data: list[ImageData]

    def result_url(self) -> str:
        """Return the first result URL or raise :class:`DecodeError`."""

        raw_url = self.data[0].url if self.data else None
        if not raw_url:
            raise DecodeError("Invalid image URL")
        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL as exc:
            raise DecodeError("Invalid image URL") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise DecodeError("Invalid image URL")
        return raw_url
