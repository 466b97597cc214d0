"""Tests for the backend edit client."""

from __future__ import annotations

import base64
import json

import httpx
import pytest
from PIL import Image

from maskmagic.config.settings import Settings
from maskmagic.errors import DecodeError, RemoteError, SizeMismatch, TransportError
from maskmagic.imggen import EditBackendClient, GenerationRequest, GenerationResponse
from maskmagic.imgproc import MaskGenerator, MaskShape, RasterImage


def _request() -> GenerationRequest:
    image = RasterImage(Image.new("RGBA", (64, 64), (10, 20, 30, 255)))
    mask = MaskGenerator().generate_mask(image, MaskShape.CIRCLE)
    return GenerationRequest(image=image, mask=mask, prompt="add a hat")


def _client(settings: Settings, handler) -> EditBackendClient:
    return EditBackendClient.from_settings(settings, transport=httpx.MockTransport(handler))


def test_submit_posts_json_payload(settings: Settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"created": 1, "data": [{"url": "https://x/img.png"}]})

    response = _client(settings, handler).submit(_request())

    assert response.result_url() == "https://x/img.png"
    assert len(seen) == 1
    sent = seen[0]
    assert sent.method == "POST"
    assert str(sent.url) == "https://backend.test/generate"
    assert sent.headers["content-type"] == "application/json"
    assert "x-internal-token" not in sent.headers
    body = json.loads(sent.content)
    assert body["model"] == "dall-e-2"
    assert body["size"] == "1024x1024"
    assert body["response_format"] == "url"
    assert body["prompt"] == "add a hat"
    assert body["image"].startswith("data:image/png;base64,")
    assert base64.b64decode(body["mask"].split(",", 1)[1]).startswith(b"\x89PNG")


def test_submit_sends_backend_token_when_configured() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"created": 1, "data": [{"url": "https://x/img.png"}]})

    settings = Settings(endpoint_url="https://backend.test/generate", backend_token="s3cret")
    _client(settings, handler).submit(_request())

    assert seen[0].headers["x-internal-token"] == "s3cret"


def test_structured_error_message_is_extracted(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "rate limited"}})

    with pytest.raises(RemoteError) as excinfo:
        _client(settings, handler).submit(_request())

    assert excinfo.value == RemoteError(500, "rate limited")
    assert str(excinfo.value) == "rate limited"


def test_relayed_upstream_error_message_is_extracted(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"error": "OpenAI API error", "details": {"error": {"message": "mask too small"}}},
        )

    with pytest.raises(RemoteError) as excinfo:
        _client(settings, handler).submit(_request())

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "mask too small"


def test_unstructured_error_falls_back_to_status_message(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(RemoteError) as excinfo:
        _client(settings, handler).submit(_request())

    assert str(excinfo.value) == "API error with status code: 502"


def test_network_failure_is_a_transport_error(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection reset", request=request)

    with pytest.raises(TransportError):
        _client(settings, handler).submit(_request())


def test_timeout_is_a_transport_error(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError, match="timed out"):
        _client(settings, handler).submit(_request())


@pytest.mark.parametrize(
    "body",
    [
        {"created": 1, "data": []},
        {"created": 1, "data": [{"url": None}]},
        {"created": 1, "data": [{}]},
        {"created": 1, "data": [{"url": "not a url"}]},
    ],
)
def test_missing_result_url_is_a_decode_error(body: dict) -> None:
    response = GenerationResponse.model_validate(body)

    with pytest.raises(DecodeError):
        response.result_url()


def test_malformed_response_is_a_decode_error(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(DecodeError):
        _client(settings, handler).submit(_request())


def test_download_returns_bytes_and_classifies_failures(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/ok.png":
            return httpx.Response(200, content=b"png-bytes")
        return httpx.Response(404)

    client = _client(settings, handler)

    assert client.download("https://x/ok.png") == b"png-bytes"
    with pytest.raises(RemoteError) as excinfo:
        client.download("https://x/missing.png")
    assert excinfo.value.status_code == 404


def test_request_rejects_incongruent_mask() -> None:
    image = RasterImage(Image.new("RGBA", (64, 64)))
    mask = MaskGenerator().generate_mask(RasterImage(Image.new("RGBA", (32, 32))), MaskShape.CIRCLE)

    with pytest.raises(SizeMismatch):
        GenerationRequest(image=image, mask=mask, prompt="add a hat")


def test_ping_sends_preflight(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "OPTIONS"
        return httpx.Response(200)

    assert _client(settings, handler).ping()
