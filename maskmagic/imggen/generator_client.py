"""Blocking client for the backend-mediated image edit endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generator

import httpx
from pydantic import ValidationError

from maskmagic.config.settings import Settings
from maskmagic.errors import DecodeError, RemoteError, TransportError
from maskmagic.imggen.schemas import GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)


class InternalTokenAuth(httpx.Auth):
    """Attaches the shared backend token; the upstream API key never leaves the backend."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["X-Internal-Token"] = self._token
        yield request


@dataclass(frozen=True, slots=True)
class BackendEndpoint:
    """Where edit requests go and how they authenticate."""

    url: str
    auth: httpx.Auth | None = None
    timeout: float = 300.0

    @classmethod
    def from_settings(cls, settings: Settings) -> BackendEndpoint:
        auth = InternalTokenAuth(settings.backend_token) if settings.backend_token else None
        return cls(url=settings.endpoint_url, auth=auth, timeout=settings.request_timeout)


class EditBackendClient:
    """Submits edit requests and downloads the generated image."""

    def __init__(
        self,
        endpoint: BackendEndpoint,
        *,
        download_timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._download_timeout = download_timeout
        self._client = httpx.Client(timeout=endpoint.timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> EditBackendClient:
        return cls(
            BackendEndpoint.from_settings(settings),
            download_timeout=settings.download_timeout,
            transport=transport,
        )

    def submit(self, request: GenerationRequest) -> GenerationResponse:
        """POST the request and return the parsed response envelope."""

        payload = request.to_payload()
        logger.info("Making request to %s (prompt length %d)", self._endpoint.url, len(request.prompt))
        try:
            response = self._client.post(
                self._endpoint.url,
                json=payload,
                auth=self._endpoint.auth,
                timeout=self._endpoint.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError("The generation request timed out.") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Generation request failed: {exc}") from exc

        logger.info(
            "Received response with status code %d, %d bytes",
            response.status_code,
            len(response.content),
        )
        if not response.is_success:
            raise RemoteError(response.status_code, self._error_message(response))

        try:
            return GenerationResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.warning("Undecodable generation response: %s", response.text[:500])
            raise DecodeError("Failed to decode the generation response") from exc

    def download(self, url: str) -> bytes:
        """Fetch the generated image bytes."""

        logger.info("Downloading image from %s", url)
        try:
            response = self._client.get(url, timeout=self._download_timeout)
        except httpx.TimeoutException as exc:
            raise TransportError("The image download timed out.") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Image download failed: {exc}") from exc

        if not response.is_success:
            raise RemoteError(
                response.status_code,
                f"Image download failed with status code: {response.status_code}",
            )
        logger.info("Received image data of size: %d bytes", len(response.content))
        return response.content

    def ping(self) -> bool:
        """Return ``True`` when the endpoint answers a CORS preflight."""

        response = self._client.options(
            self._endpoint.url,
            headers={
                "Origin": "http://localhost",
                "Access-Control-Request-Method": "POST",
            },
        )
        return response.is_success

    def close(self) -> None:
        """Close the underlying HTTP session."""

        self._client.close()

    def __enter__(self) -> EditBackendClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Prefer ``error.message`` from the body, then the relayed upstream details."""

        try:
            body: Any = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            for container in (body, body.get("details")):
                error = container.get("error") if isinstance(container, dict) else None
                if isinstance(error, dict) and isinstance(error.get("message"), str):
                    return error["message"]
        return f"API error with status code: {response.status_code}"
