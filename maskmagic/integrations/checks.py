"""Connectivity checks for the edit backend and the upstream image API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from maskmagic.api.upstream import UpstreamEditClient
from maskmagic.config.settings import get_settings
from maskmagic.imggen.generator_client import EditBackendClient


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except Exception as exc:  # noqa: BLE001 - reported as a failed check
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_edit_backend() -> IntegrationCheckResult:
    """Send a preflight request to the edit backend and return the result."""

    client = EditBackendClient.from_settings(get_settings())

    def _ping() -> bool:
        try:
            return client.ping()
        finally:
            client.close()

    return await _run_check(
        name="Edit backend",
        factory=lambda: asyncio.to_thread(_ping),
        success_message="Edit backend is reachable.",
    )


async def check_openai() -> IntegrationCheckResult:
    """Ping the upstream OpenAI API with the backend's key and return the result."""

    client = UpstreamEditClient(get_settings())

    async def _ping() -> bool:
        try:
            return await client.ping()
        finally:
            await client.close()

    return await _run_check(
        name="OpenAI",
        factory=_ping,
        success_message="OpenAI API is reachable.",
    )


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute all integration checks concurrently."""

    return list(await asyncio.gather(check_edit_backend(), check_openai()))
