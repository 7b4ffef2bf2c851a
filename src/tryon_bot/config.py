"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_MAX_IMAGE_BYTES = 12 * 1024 * 1024
DEFAULT_SESSION_TTL_MS = 10 * 60 * 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    vonage_api_key: str
    vonage_api_secret: str
    vonage_signature_secret: str | None = None
    vonage_messages_url: str = "https://api.nexmo.com/v1/messages"
    rcs_sender_id: str
    phone_number: str | None = None
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash-image-preview"
    public_base_url: str | None = None
    photos_dir: str = "Pictures"
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    session_ttl_ms: int = DEFAULT_SESSION_TTL_MS
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_base_url(raw: str | None) -> str | None:
    """Strip whitespace and trailing slashes from a configured base URL."""
    if raw is None:
        return None
    cleaned = raw.strip().rstrip("/")
    return cleaned or None
