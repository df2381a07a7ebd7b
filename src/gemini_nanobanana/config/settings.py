"""Application settings loaded from environment variables or a .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gemini_nanobanana.config.constants import (
    CANONICAL_ID,
    DEFAULT_ENDPOINT,
    Retries,
    Timeouts,
)


class Settings(BaseSettings):
    """Process-wide configuration.

    Built once at startup and handed to the generator, the storage layer and the
    tool service. Core code never reads the environment directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Gemini
    gemini_api_key: str = Field(default="", description="Google AI Studio API key")
    gemini_image_endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="generateContent endpoint of the image model",
    )

    # Saving
    default_save_dir: str = Field(
        default="~/Downloads/gemini-images",
        description="Directory used for auto-saved images",
    )
    auto_save: bool = Field(
        default=True,
        description="Save images to default_save_dir when no path is given",
    )

    # MCP server
    mcp_name: str = Field(default=CANONICAL_ID)
    mcp_transport: Literal["stdio", "http"] = Field(default="stdio")
    mcp_http_host: str = Field(default="127.0.0.1")
    mcp_http_port: int = Field(default=7801, ge=1, le=65535)
    mcp_http_path: str = Field(default="/mcp")
    mcp_http_enable_json: bool = Field(default=False)

    # Logging
    log_level: Literal["error", "warn", "warning", "info", "debug"] = Field(default="info")
    log_format: Literal["rich", "json"] = Field(default="rich")

    # Request pipeline
    request_timeout: float = Field(default=Timeouts.GEMINI_REQUEST, gt=0)
    max_retries: int = Field(default=Retries.MAX_RETRIES, ge=0)
    retry_base_delay: float = Field(default=Retries.BASE_DELAY, ge=0)

    @field_validator("mcp_transport", "log_level", "log_format", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def default_save_path(self) -> Path:
        """The auto-save directory with ``~`` expanded."""
        return Path(self.default_save_dir).expanduser()

    @property
    def has_api_key(self) -> bool:
        return bool(self.gemini_api_key.strip())

    def is_configured(self) -> dict[str, bool]:
        """Report which required settings are present."""
        return {
            "gemini_api_key": self.has_api_key,
            "gemini_image_endpoint": bool(self.gemini_image_endpoint.strip()),
        }

    def to_dict(self) -> dict[str, object]:
        """Settings as a dict with the API key masked."""
        data = self.model_dump()
        key = data.get("gemini_api_key") or ""
        data["gemini_api_key"] = f"{key[:4]}…" if key else ""
        return data


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so it is only parsed once."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached settings (used by tests)."""
    get_settings.cache_clear()
