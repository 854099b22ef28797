"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_AUTH_ERROR_PATTERNS = "Requested entity was not found,API key"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    image_backend: Literal["gemini", "openai"] = "gemini"
    gemini_api_key: str | None = None
    gemini_generate_model: str = "gemini-3-pro-image-preview"
    gemini_edit_model: str = "gemini-2.5-flash-image"
    openai_api_key: str | None = None
    openai_image_model: str = "gpt-image-1"
    auth_error_patterns: str = DEFAULT_AUTH_ERROR_PATTERNS
    request_timeout_seconds: float = 120.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def api_key(self) -> str | None:
        """Return the key for the configured image backend."""
        if self.image_backend == "openai":
            return self.openai_api_key
        return self.gemini_api_key


def parse_auth_error_patterns(raw: str | None) -> tuple[str, ...]:
    """Parse comma separated authorization error substrings from env."""
    if raw is None:
        return ()
    patterns: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value and value not in patterns:
            patterns.append(value)
    return tuple(patterns)
