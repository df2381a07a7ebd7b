"""Services that sit between the MCP tools and the generator/storage layers."""

from gemini_nanobanana.services.image_service import (
    ImageToolService,
    ToolResult,
    format_tool_content,
)

__all__ = ["ImageToolService", "ToolResult", "format_tool_content"]
