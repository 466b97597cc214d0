"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

MIB = 1024 * 1024


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-wide read-only settings shared by the pipeline and the backend."""

    environment: str = "dev"
    log_level: str = "INFO"

    endpoint_url: str = "http://localhost:8000/generate"
    backend_token: str = ""
    request_timeout: float = 300.0
    download_timeout: float = 60.0

    model: str = "dall-e-2"
    size: str = "1024x1024"
    response_format: str = "url"

    canvas_size: int = 1024
    fallback_canvas_size: int = 512
    soft_limit_bytes: int = int(3.9 * MIB)
    hard_limit_bytes: int = 4 * MIB

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        endpoint_url=os.getenv("MASKMAGIC_ENDPOINT", "http://localhost:8000/generate"),
        backend_token=os.getenv("MASKMAGIC_BACKEND_TOKEN", ""),
        request_timeout=float(os.getenv("MASKMAGIC_REQUEST_TIMEOUT", "300")),
        download_timeout=float(os.getenv("MASKMAGIC_DOWNLOAD_TIMEOUT", "60")),
        model=os.getenv("MASKMAGIC_MODEL", "dall-e-2"),
        size=os.getenv("MASKMAGIC_SIZE", "1024x1024"),
        canvas_size=int(os.getenv("MASKMAGIC_CANVAS_SIZE", "1024")),
        fallback_canvas_size=int(os.getenv("MASKMAGIC_FALLBACK_CANVAS_SIZE", "512")),
        soft_limit_bytes=int(os.getenv("MASKMAGIC_SOFT_LIMIT_BYTES", str(int(3.9 * MIB)))),
        hard_limit_bytes=int(os.getenv("MASKMAGIC_HARD_LIMIT_BYTES", str(4 * MIB))),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
