"""Async client for the upstream OpenAI image edit endpoint."""

from __future__ import annotations

import logging

import httpx
from openai import AsyncOpenAI

from maskmagic.config.settings import Settings

logger = logging.getLogger(__name__)


class UpstreamEditClient:
    """Forwards decoded edit requests to ``/images/edits`` with the server-side key."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.openai_base_url.rstrip("/"),
            timeout=settings.request_timeout,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._settings.openai_api_key)

    async def edit(
        self,
        *,
        image: bytes,
        mask: bytes,
        prompt: str,
        model: str,
        size: str,
        response_format: str,
    ) -> httpx.Response:
        """Send the multipart edit request and return the raw upstream response."""

        files = [
            ("image", ("image.png", image, "image/png")),
            ("mask", ("mask.png", mask, "image/png")),
        ]
        data = {
            "prompt": prompt,
            "model": model,
            "size": size,
            "response_format": response_format,
        }
        logger.info("Calling OpenAI API: model=%s size=%s prompt=%r", model, size, prompt)
        return await self._client.post(
            "/images/edits",
            data=data,
            files=files,
            headers={"Authorization": f"Bearer {self._settings.openai_api_key}"},
        )

    async def ping(self) -> bool:
        """Return ``True`` when the upstream API responds to a model listing call."""

        client = AsyncOpenAI(
            api_key=self._settings.openai_api_key,
            base_url=self._settings.openai_base_url.rstrip("/"),
        )
        try:
            models = await client.models.list()
            return bool(models.data)
        finally:
            await client.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""

        await self._client.aclose()
