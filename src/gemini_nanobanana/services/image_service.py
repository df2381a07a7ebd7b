"""Image tool service: one tool call from prompt to saved file."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from mcp.types import ImageContent, TextContent

from gemini_nanobanana.config.logging import get_logger
from gemini_nanobanana.config.settings import Settings
from gemini_nanobanana.generators.image_generator import ImageGenerator
from gemini_nanobanana.models.images import DecodedImage, GenerationRequest
from gemini_nanobanana.storage.local import LocalImageStorage

logger = get_logger(__name__)


@dataclass
class ToolResult:
    """Outcome of a single image tool call."""

    image: DecodedImage
    saved_path: Path | None
    auto_saved: bool
    duration_ms: int
    request_id: str


@dataclass(frozen=True)
class ToolMessages:
    """Wording used in tool responses for one kind of operation."""

    saved: str
    unsaved: str


MESSAGES: dict[str, ToolMessages] = {
    "generate": ToolMessages("Image generated and saved to", "Image generated successfully!"),
    "edit": ToolMessages("Image edited and saved to", "Image edited successfully!"),
    "compose": ToolMessages("Images composed and saved to", "Images composed successfully!"),
    "style": ToolMessages("Style transferred and saved to", "Style transfer completed!"),
}


class ImageToolService:
    """Runs the generator, then hands the first image to storage."""

    def __init__(self, generator: ImageGenerator, storage: LocalImageStorage):
        self._generator = generator
        self._storage = storage

    @classmethod
    def from_settings(cls, settings: Settings) -> ImageToolService:
        return cls(ImageGenerator(settings), LocalImageStorage.from_settings(settings))

    async def run(self, tool_name: str, request: GenerationRequest) -> ToolResult:
        """Generate an image for ``request`` and save it if asked or auto-saving.

        Args:
            tool_name: Short tool name (generate, edit, compose, style); used as
                the prefix of auto-generated file names.
            request: Validated tool arguments.

        Raises:
            NanobananaError: Any pipeline or storage failure, unchanged.
        """
        request_id = str(uuid4())
        started = time.monotonic()
        logger.debug(
            "Starting image %s",
            tool_name,
            extra={
                "tool": tool_name,
                "requestId": request_id,
                "promptLength": len(request.prompt),
                "images": len(request.images),
                "hasFilePath": bool(request.save_to_file_path),
            },
        )
        try:
            images = await self._generator.execute(request.prompt, request.images)
            first = images[0]
            saved_path = self._storage.save(
                first.data,
                first.mime_type,
                target=request.save_to_file_path,
                tool_name=tool_name,
            )
        except Exception as e:
            logger.error(
                "Image %s failed",
                tool_name,
                extra={
                    "tool": tool_name,
                    "requestId": request_id,
                    "duration": int((time.monotonic() - started) * 1000),
                    "error": str(e),
                },
            )
            raise

        duration_ms = int((time.monotonic() - started) * 1000)
        result = ToolResult(
            image=first,
            saved_path=saved_path,
            auto_saved=saved_path is not None and not request.save_to_file_path,
            duration_ms=duration_ms,
            request_id=request_id,
        )
        logger.info(
            "Image %s succeeded",
            tool_name,
            extra={
                "tool": tool_name,
                "requestId": request_id,
                "duration": duration_ms,
                "savedTo": str(saved_path) if saved_path else None,
                "mimeType": first.mime_type,
                "imageSizeKB": first.size_kb,
            },
        )
        return result


def format_tool_content(result: ToolResult, tool_name: str) -> list[TextContent | ImageContent]:
    """Build the MCP content blocks for a tool result.

    The image itself is only inlined when it was not written to disk, which
    keeps responses small for clients with token limits.
    """
    messages = MESSAGES.get(tool_name, MESSAGES["generate"])
    details = f"Size: {result.image.size_kb}KB\nFormat: {result.image.mime_type}"
    if result.saved_path is not None:
        text = f"{messages.saved}: {result.saved_path}\n{details}"
        if result.auto_saved:
            text += "\nAuto-saved (set AUTO_SAVE=false to disable)"
    else:
        text = f"{messages.unsaved}\n{details}"
        if tool_name == "generate":
            text += "\n\nTo save the image, add saveToFilePath parameter or enable AUTO_SAVE"

    content: list[TextContent | ImageContent] = [TextContent(type="text", text=text)]
    if result.saved_path is None:
        content.append(
            ImageContent(type="image", data=result.image.to_base64(), mimeType=result.image.mime_type)
        )
    return content
