"""Configuration and settings management."""

from gemini_nanobanana.config.constants import (
    ALLOWED_MIME_TYPES,
    CANONICAL_DISPLAY,
    CANONICAL_ID,
    Limits,
    Retries,
    Timeouts,
)
from gemini_nanobanana.config.logging import get_logger, setup_logging
from gemini_nanobanana.config.settings import Settings, clear_settings_cache, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "setup_logging",
    "get_logger",
    "ALLOWED_MIME_TYPES",
    "CANONICAL_DISPLAY",
    "CANONICAL_ID",
    "Limits",
    "Retries",
    "Timeouts",
]
