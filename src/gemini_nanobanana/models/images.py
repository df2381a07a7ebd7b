"""Request and result models for the image tools.

These models carry a single tool call from the MCP layer through the Gemini
request pipeline and into local storage. None of them outlive the call.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from gemini_nanobanana.config.constants import (
    ALLOWED_MIME_TYPES,
    DEFAULT_MIME_TYPE,
    Limits,
)


def is_safe_relative_path(path: str, base_dir: Path | None = None) -> bool:
    """Check that a user-supplied path stays inside the working directory.

    Rejects ``..`` segments, ``~`` anywhere in the string and anything that
    resolves outside ``base_dir`` (defaults to the current directory).
    """
    if ".." in path or "~" in path:
        return False
    base = (base_dir or Path.cwd()).resolve()
    try:
        return (base / path).resolve().is_relative_to(base)
    except (ValueError, OSError):
        return False


def _check_path(value: str | None) -> str | None:
    if value is not None and not is_safe_relative_path(value):
        raise ValueError("Invalid file path - path traversal not allowed")
    return value


# A path argument that must stay inside the working directory.
SafePath = Annotated[str, AfterValidator(_check_path)]


class InlineImageInput(BaseModel):
    """One input image, given as base64 text or as a file path.

    Base64 data wins when both are present. Having neither is rejected by the
    request pipeline with an InputError before any network call is made.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data_base64: str | None = Field(
        default=None,
        alias="dataBase64",
        description="Base64 without data URL prefix",
    )
    path: SafePath | None = Field(default=None, description="Path to the input image file")
    mime_type: str = Field(
        default=DEFAULT_MIME_TYPE,
        alias="mimeType",
        description="image/png, image/jpeg, image/webp, image/gif",
    )

    @field_validator("data_base64")
    @classmethod
    def _check_size(cls, value: str | None) -> str | None:
        if value is not None and len(value) > Limits.MAX_BASE64_CHARS:
            max_mb = Limits.MAX_BASE64_CHARS / 1024 / 1024
            raise ValueError(f"Base64 data too large (max {max_mb:.1f}MB)")
        return value

    @field_validator("mime_type", mode="before")
    @classmethod
    def _check_mime(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_MIME_TYPE
        normalized = value.strip().lower()
        if normalized not in ALLOWED_MIME_TYPES:
            raise ValueError(f"Unsupported MIME type. Allowed: {', '.join(ALLOWED_MIME_TYPES)}")
        return normalized

    @property
    def has_source(self) -> bool:
        return bool(self.data_base64) or bool(self.path)


class GenerationRequest(BaseModel):
    """A prompt plus zero or more images.

    0 images generates, 1 edits, 2 or more composes or transfers style.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(min_length=Limits.PROMPT_MIN_CHARS, max_length=Limits.PROMPT_MAX_CHARS)
    images: tuple[InlineImageInput, ...] = Field(default=())
    save_to_file_path: SafePath | None = Field(default=None, alias="saveToFilePath")


class DecodedImage(BaseModel):
    """Raw image bytes returned by the API."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_base64(cls, data: str, mime_type: str | None = None) -> DecodedImage:
        return cls(data=base64.b64decode(data), mime_type=mime_type or DEFAULT_MIME_TYPE)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def size_kb(self) -> int:
        return round(len(self.data) / 1024)


class SaveTarget(BaseModel):
    """Where an image will be written: directory, base name and extension."""

    model_config = ConfigDict(frozen=True)

    directory: Path
    stem: str
    extension: str = Field(description="File extension including the leading dot")

    @property
    def path(self) -> Path:
        return self.directory / f"{self.stem}{self.extension}"

    def with_counter(self, counter: int) -> Path:
        """Path with a ``_N`` suffix before the extension."""
        return self.directory / f"{self.stem}_{counter}{self.extension}"
