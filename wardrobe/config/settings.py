"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _parse_env_line(line: str) -> tuple[str, str] | None:
    """Split ``KEY=value`` (optionally ``export``-prefixed, optionally quoted)."""

    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, value = stripped.split("=", 1)
    key = key.removeprefix("export ").strip()
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from ``path``; variables already set take precedence."""

    env_path = Path(path)
    if not env_path.is_file():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_env_line(line)
        if parsed is not None:
            os.environ.setdefault(*parsed)


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    aitunnel_api_key: str = ""
    aitunnel_base_url: str = "https://api.aitunnel.ru/v1"
    aitunnel_chat_model: str = "gemini-2.5-flash"
    aitunnel_image_model: str = "gemini-3-pro-image-preview"

    image_aspect_ratio: str = "3:4"
    image_size: str = "1K"
    recommendation_count: int = 3

    max_image_bytes: int = 10 * 1024 * 1024
    max_image_dimension: int = 1536
    request_timeout: float = 120.0

    seed_defaults: bool = True

    @property
    def api_key_configured(self) -> bool:
        return bool(self.aitunnel_api_key.strip())


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        aitunnel_api_key=os.getenv("AITUNNEL_API_KEY", ""),
        aitunnel_base_url=os.getenv("AITUNNEL_BASE_URL", "https://api.aitunnel.ru/v1"),
        aitunnel_chat_model=os.getenv("AITUNNEL_CHAT_MODEL", "gemini-2.5-flash"),
        aitunnel_image_model=os.getenv("AITUNNEL_IMAGE_MODEL", "gemini-3-pro-image-preview"),
        image_aspect_ratio=os.getenv("WARDROBE_IMAGE_ASPECT_RATIO", "3:4"),
        image_size=os.getenv("WARDROBE_IMAGE_SIZE", "1K"),
        recommendation_count=int(os.getenv("WARDROBE_RECOMMENDATION_COUNT", "3")),
        max_image_bytes=int(os.getenv("WARDROBE_MAX_IMAGE_BYTES", str(10 * 1024 * 1024))),
        max_image_dimension=int(os.getenv("WARDROBE_MAX_IMAGE_DIMENSION", "1536")),
        request_timeout=float(os.getenv("WARDROBE_REQUEST_TIMEOUT", "120")),
        seed_defaults=_as_bool(os.getenv("WARDROBE_SEED_DEFAULTS", "true")),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
