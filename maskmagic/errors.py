"""Classified failures raised by the editing pipeline."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for every terminal pipeline failure.

    ``str(error)`` is the user-facing message and is surfaced verbatim.
    """


class InvalidGeometry(PipelineError):
    """Raised for zero-area input images."""


class InvalidPrompt(PipelineError):
    """Raised when the edit prompt is empty."""


class ImageTooLarge(PipelineError):
    """Raised when a prepared image cannot meet the local soft byte budget."""


class PayloadTooLarge(PipelineError):
    """Raised when the image or the mask exceeds the service hard byte ceiling."""


class MaskGenerationFailed(PipelineError):
    """Raised when a mask cannot be rendered."""


class SizeMismatch(PipelineError):
    """Raised when mask/image congruence cannot be restored."""


class CompressionFailed(PipelineError):
    """Raised when the budget enforcer exhausts every fallback."""


class RemoteError(PipelineError):
    """Raised when the generation backend responds with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteError):
            return NotImplemented
        return (self.status_code, self.message) == (other.status_code, other.message)

    def __hash__(self) -> int:
        return hash((self.status_code, self.message))

    def __repr__(self) -> str:
        return f"RemoteError(status_code={self.status_code}, message={self.message!r})"


class DecodeError(PipelineError):
    """Raised for a malformed response, missing result URL or undecodable image bytes."""


class TransportError(PipelineError):
    """Raised for network-level failures (DNS, TLS, connection reset, timeout)."""
