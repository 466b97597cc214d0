"""Edit request submission and result post-processing."""

from .generator_client import BackendEndpoint, EditBackendClient, InternalTokenAuth
from .postproc import ImagePostProcessor
from .schemas import GenerationRequest, GenerationResponse

__all__ = [
    "BackendEndpoint",
    "EditBackendClient",
    "GenerationRequest",
    "GenerationResponse",
    "ImagePostProcessor",
    "InternalTokenAuth",
]
