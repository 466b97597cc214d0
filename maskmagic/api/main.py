"""FastAPI edit backend: relays data-URI edit requests to the upstream image API."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from maskmagic.api.auth import InternalAuthDependency
from maskmagic.api.upstream import UpstreamEditClient
from maskmagic.config.settings import Settings, get_settings
from maskmagic.metrics.prometheus_exporter import edit_requests_total, edit_upstream_seconds

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:([A-Za-z-+/]+);base64,(.+)$")


class EditRequestBody(BaseModel):
    """JSON body accepted by ``POST /generate``."""

    image: str | None = None
    mask: str | None = None
    prompt: str | None = None
    model: str = "dall-e-2"
    size: str = "1024x1024"
    response_format: str = "url"


class InvalidDataURI(ValueError):
    """Raised when an image field is not a base64 data URI."""


def decode_data_uri(data_uri: str) -> bytes:
    """Return the binary payload of a ``data:<type>;base64,<payload>`` URI."""

    match = DATA_URI_PATTERN.match(data_uri)
    if match is None:
        raise InvalidDataURI("Invalid data URI format")
    logger.debug("Extracting buffer: content type %s, %d chars", match.group(1), len(match.group(2)))
    try:
        return base64.b64decode(match.group(2))
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataURI("Invalid base64 payload") from exc


def _error(status_code: int, content: dict[str, Any], outcome: str) -> JSONResponse:
    edit_requests_total.labels(outcome=outcome).inc()
    return JSONResponse(status_code=status_code, content=content)


def _upstream_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or "No detailed error info"


def create_app(
    settings: Settings | None = None,
    upstream: UpstreamEditClient | None = None,
) -> FastAPI:
    """Initialise the FastAPI application."""

    settings = settings or get_settings()
    upstream = upstream or UpstreamEditClient(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await upstream.close()

    app = FastAPI(
        title="MaskMagic Edit Backend",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.upstream = upstream
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Internal-Token"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(_: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Rejected malformed edit request: %s", exc.errors())
        return _error(400, {"error": "Missing required parameters"}, "bad_request")

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.get("/metrics", tags=["system"])
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/generate", tags=["edit"], dependencies=[InternalAuthDependency])
    async def generate_image(body: EditRequestBody) -> JSONResponse:
        """Decode the data URIs and forward them to the upstream edit endpoint."""

        logger.info(
            "Received edit request: has_image=%s has_mask=%s prompt_length=%d",
            bool(body.image),
            bool(body.mask),
            len(body.prompt or ""),
        )
        if not body.image or not body.mask or not body.prompt:
            return _error(400, {"error": "Missing required parameters"}, "bad_request")

        if not upstream.configured:
            logger.error("API key not configured in environment variables")
            return _error(500, {"error": "Server configuration error"}, "misconfigured")

        try:
            image_bytes = decode_data_uri(body.image)
            mask_bytes = decode_data_uri(body.mask)
        except InvalidDataURI as exc:
            logger.error("Error processing images: %s", exc)
            return _error(
                400,
                {"error": "Invalid image format. Must be data URI with base64 encoding."},
                "bad_request",
            )
        logger.info("Converted images to buffers: image=%d mask=%d bytes", len(image_bytes), len(mask_bytes))

        try:
            with edit_upstream_seconds.time():
                response = await upstream.edit(
                    image=image_bytes,
                    mask=mask_bytes,
                    prompt=body.prompt,
                    model=body.model,
                    size=body.size,
                    response_format=body.response_format,
                )
        except httpx.HTTPError as exc:
            logger.error("Error calling OpenAI API: %s", exc)
            return _error(500, {"error": "Failed to generate image"}, "transport_error")

        if not response.is_success:
            details = _upstream_details(response)
            logger.error("OpenAI API error %d: %s", response.status_code, details)
            return _error(
                response.status_code,
                {"error": "OpenAI API error", "details": details},
                "upstream_error",
            )

        try:
            content = response.json()
        except ValueError:
            logger.error("OpenAI API returned a non-JSON body")
            return _error(500, {"error": "Failed to generate image"}, "upstream_error")

        logger.info("OpenAI API success: status %d", response.status_code)
        edit_requests_total.labels(outcome="success").inc()
        return JSONResponse(status_code=200, content=content)

    return app


app = create_app()
