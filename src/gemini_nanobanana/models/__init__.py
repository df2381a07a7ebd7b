"""Pydantic data models for tool requests, API responses and saved images."""
from gemini_nanobanana.models.gemini import (
    Candidate,
    Content,
    GeminiResponse,
    InlineImagePart,
    OtherPart,
    TextPart,
    build_request_body,
)
from gemini_nanobanana.models.images import (
    DecodedImage,
    GenerationRequest,
    InlineImageInput,
    SafePath,
    SaveTarget,
    is_safe_relative_path,
)

__all__ = [
    "Candidate",
    "Content",
    "DecodedImage",
    "GeminiResponse",
    "GenerationRequest",
    "InlineImageInput",
    "InlineImagePart",
    "OtherPart",
    "SafePath",
    "SaveTarget",
    "TextPart",
    "build_request_body",
    "is_safe_relative_path",
]
