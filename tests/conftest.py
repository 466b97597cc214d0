"""Shared fixtures for pipeline tests."""

from __future__ import annotations

import os
from io import BytesIO

import pytest
from PIL import Image

from maskmagic.config.settings import Settings


def noise_image(width: int, height: int, mode: str = "RGBA") -> Image.Image:
    """Incompressible pixels, useful for pushing PNG sizes over a budget."""

    channels = len(mode)
    return Image.frombytes(mode, (width, height), os.urandom(width * height * channels))


def png_bytes(image: Image.Image, **options: object) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG", **options)
    return buffer.getvalue()


@pytest.fixture
def settings() -> Settings:
    return Settings(endpoint_url="https://backend.test/generate")
