"""Gemini Nanobanana MCP server.

Declares the four image tools and runs them over stdio or streamable HTTP.
Argument names follow the camelCase wire contract of the tools.
"""

from __future__ import annotations

from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ImageContent, TextContent
from pydantic import Field

from gemini_nanobanana.config.constants import (
    CANONICAL_DISPLAY,
    STYLE_TRANSFER_PROMPT,
    Limits,
)
from gemini_nanobanana.config.logging import get_logger, resolve_level
from gemini_nanobanana.config.settings import Settings
from gemini_nanobanana.exceptions import NanobananaError
from gemini_nanobanana.models.images import GenerationRequest, InlineImageInput, SafePath
from gemini_nanobanana.services.image_service import ImageToolService, format_tool_content

logger = get_logger(__name__)

ToolContent = list[TextContent | ImageContent]

Prompt = Annotated[
    str,
    Field(min_length=Limits.PROMPT_MIN_CHARS, max_length=Limits.PROMPT_MAX_CHARS),
]

INSTRUCTIONS = """
# Gemini Nanobanana image tools

- **generate_image**: text-to-image.
- **edit_image**: edit one input image with a prompt.
- **compose_images**: combine 2-10 input images guided by a prompt.
- **style_transfer**: apply the style of one image to another.

Input images are given as `{dataBase64}` (no data URL prefix) or `{path}` inside
the working directory, with an optional `mimeType`. Generated images are saved
to `saveToFilePath` when given, otherwise auto-saved unless AUTO_SAVE=false.
"""

_FASTMCP_LEVELS = {10: "DEBUG", 20: "INFO", 30: "WARNING", 40: "ERROR"}


async def _run_tool(
    service: ImageToolService,
    tool_name: str,
    failure: str,
    request: GenerationRequest,
) -> ToolContent:
    try:
        result = await service.run(tool_name, request)
    except NanobananaError as e:
        raise ToolError(f"{failure}: {e.message}") from e
    return format_tool_content(result, tool_name)


def create_server(settings: Settings, service: ImageToolService | None = None) -> FastMCP:
    """Build the FastMCP server with all image tools registered.

    Args:
        settings: Process settings; also used for the HTTP transport options.
        service: Tool service. Built from settings when omitted.
    """
    if not settings.has_api_key:
        logger.error(
            "Missing GEMINI_API_KEY environment variable",
            extra={
                "service": CANONICAL_DISPLAY,
                "required": True,
                "suggestion": "Set GEMINI_API_KEY environment variable with your Google AI Studio API key",
            },
        )

    service = service or ImageToolService.from_settings(settings)
    mcp = FastMCP(
        settings.mcp_name,
        instructions=INSTRUCTIONS,
        host=settings.mcp_http_host,
        port=settings.mcp_http_port,
        streamable_http_path=settings.mcp_http_path,
        json_response=settings.mcp_http_enable_json,
        log_level=_FASTMCP_LEVELS.get(resolve_level(settings.log_level), "INFO"),
    )

    @mcp.tool(
        name="generate_image",
        structured_output=False,
        description="Generate an image from a text prompt using Gemini 2.5 Flash Image",
    )
    async def generate_image(
        prompt: Prompt = Field(
            description="Detailed scene description. Use photographic terms for photorealism."
        ),
        saveToFilePath: SafePath | None = Field(  # noqa: N803
            default=None,
            description="Optional path to save the image (png/jpeg by extension)",
        ),
    ) -> ToolContent:
        request = GenerationRequest(prompt=prompt, save_to_file_path=saveToFilePath)
        return await _run_tool(service, "generate", "Failed to generate image", request)

    @mcp.tool(
        name="edit_image",
        structured_output=False,
        description="Edit an image using a prompt. Provide one input image via base64 or file path.",
    )
    async def edit_image(
        prompt: Prompt = Field(
            description="Describe the edit; the model matches original style and lighting."
        ),
        image: InlineImageInput = Field(description="One input image"),
        saveToFilePath: SafePath | None = Field(  # noqa: N803
            default=None,
            description="Optional path to save the edited image",
        ),
    ) -> ToolContent:
        request = GenerationRequest(
            prompt=prompt, images=(image,), save_to_file_path=saveToFilePath
        )
        return await _run_tool(service, "edit", "Failed to edit image", request)

    @mcp.tool(
        name="compose_images",
        structured_output=False,
        description="Compose a new image using multiple input images and a guiding prompt.",
    )
    async def compose_images(
        prompt: Prompt = Field(
            description="Describe how to compose the elements of the input images."
        ),
        images: list[InlineImageInput] = Field(
            min_length=Limits.COMPOSE_MIN_IMAGES,
            max_length=Limits.COMPOSE_MAX_IMAGES,
            description="Input images to compose, in order",
        ),
        saveToFilePath: SafePath | None = Field(  # noqa: N803
            default=None,
            description="Optional path to save the composed image",
        ),
    ) -> ToolContent:
        request = GenerationRequest(
            prompt=prompt, images=tuple(images), save_to_file_path=saveToFilePath
        )
        return await _run_tool(service, "compose", "Failed to compose images", request)

    @mcp.tool(
        name="style_transfer",
        structured_output=False,
        description="Transfer style from a style image to a base image, guided by an optional prompt.",
    )
    async def style_transfer(
        baseImage: InlineImageInput = Field(description="Image whose content is kept"),  # noqa: N803
        styleImage: InlineImageInput = Field(description="Image whose style is applied"),  # noqa: N803
        prompt: Prompt | None = Field(
            default=None,
            description="Optional additional instruction for the style transfer.",
        ),
        saveToFilePath: SafePath | None = Field(  # noqa: N803
            default=None,
            description="Optional path to save the output",
        ),
    ) -> ToolContent:
        request = GenerationRequest(
            prompt=prompt or STYLE_TRANSFER_PROMPT,
            images=(baseImage, styleImage),
            save_to_file_path=saveToFilePath,
        )
        return await _run_tool(service, "style", "Failed to transfer style", request)

    return mcp


def run_server(settings: Settings) -> None:
    """Start the server on the configured transport. Blocks until shutdown."""
    mcp = create_server(settings)
    if settings.mcp_transport == "http":
        logger.info(
            "HTTP transport started successfully",
            extra={
                "transport": "http",
                "url": f"http://{settings.mcp_http_host}:{settings.mcp_http_port}{settings.mcp_http_path}",
                "enableJson": settings.mcp_http_enable_json,
            },
        )
        mcp.run(transport="streamable-http")
    else:
        logger.info(
            "STDIO transport started successfully",
            extra={"transport": "stdio", "serverName": settings.mcp_name},
        )
        mcp.run()
