"""Gemini image generation and its retry policy."""

from gemini_nanobanana.generators.image_generator import ImageGenerator
from gemini_nanobanana.generators.retry import (
    AttemptRecord,
    AttemptState,
    RetryPolicy,
    is_retryable,
    is_retryable_status,
)

__all__ = [
    "AttemptRecord",
    "AttemptState",
    "ImageGenerator",
    "RetryPolicy",
    "is_retryable",
    "is_retryable_status",
]
