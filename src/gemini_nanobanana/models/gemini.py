"""Wire models for the Gemini generateContent REST API.

Response parts are decoded as a tagged union of image, text and anything else,
so that a missing field becomes an explicit default instead of a KeyError.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag

from gemini_nanobanana.config.constants import DEFAULT_MIME_TYPE
from gemini_nanobanana.models.images import DecodedImage


class InlineData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: str = ""
    mime_type: str | None = Field(
        default=None, validation_alias=AliasChoices("mimeType", "mime_type")
    )


class InlineImagePart(BaseModel):
    """A response part carrying base64 image bytes."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["image"] = "image"
    inline_data: InlineData = Field(validation_alias=AliasChoices("inlineData", "inline_data"))

    def to_image(self) -> DecodedImage | None:
        if not self.inline_data.data:
            return None
        return DecodedImage.from_base64(
            self.inline_data.data, self.inline_data.mime_type or DEFAULT_MIME_TYPE
        )


class TextPart(BaseModel):
    """A response part carrying model commentary."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["text"] = "text"
    text: str = ""


class OtherPart(BaseModel):
    """Any part type this client does not use."""

    model_config = ConfigDict(extra="allow")

    kind: Literal["other"] = "other"


def _part_kind(value: Any) -> str:
    if isinstance(value, BaseModel):
        return getattr(value, "kind", "other")
    if isinstance(value, dict):
        if "inlineData" in value or "inline_data" in value:
            return "image"
        if "text" in value:
            return "text"
    return "other"


ResponsePart = Annotated[
    Union[
        Annotated[InlineImagePart, Tag("image")],
        Annotated[TextPart, Tag("text")],
        Annotated[OtherPart, Tag("other")],
    ],
    Discriminator(_part_kind),
]


class Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: list[ResponsePart] = Field(default_factory=list)


class Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: Content | None = None
    finish_reason: str | None = Field(
        default=None, validation_alias=AliasChoices("finishReason", "finish_reason")
    )


class GeminiResponse(BaseModel):
    """Top-level generateContent response."""

    model_config = ConfigDict(extra="ignore")

    candidates: list[Candidate] = Field(default_factory=list)

    @property
    def first_parts(self) -> list[InlineImagePart | TextPart | OtherPart]:
        if not self.candidates or self.candidates[0].content is None:
            return []
        return list(self.candidates[0].content.parts)

    @property
    def finish_reason(self) -> str | None:
        """Why the first candidate stopped, e.g. ``STOP`` or ``SAFETY``."""
        return self.candidates[0].finish_reason if self.candidates else None

    def images(self) -> list[DecodedImage]:
        """Every inline image in the first candidate, in order."""
        images: list[DecodedImage] = []
        for part in self.first_parts:
            if isinstance(part, InlineImagePart):
                image = part.to_image()
                if image is not None:
                    images.append(image)
        return images

    def text(self) -> str:
        return "\n".join(p.text for p in self.first_parts if isinstance(p, TextPart) and p.text)


def build_request_body(prompt: str, images: list[tuple[str, str]]) -> dict[str, Any]:
    """Build the generateContent JSON body.

    Args:
        prompt: The text prompt, always the first part.
        images: ``(mime_type, base64_data)`` pairs in input order.
    """
    parts: list[dict[str, Any]] = [{"text": prompt}]
    for mime_type, data in images:
        parts.append({"inline_data": {"mime_type": mime_type, "data": data}})
    return {"contents": [{"parts": parts}]}
