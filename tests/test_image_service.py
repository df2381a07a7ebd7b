"""Tests for the image tool service and tool response formatting."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp.types import ImageContent, TextContent

from gemini_nanobanana.exceptions import PermanentProviderError, PersistenceError
from gemini_nanobanana.models import DecodedImage, GenerationRequest, InlineImageInput
from gemini_nanobanana.services import ImageToolService, ToolResult, format_tool_content
from gemini_nanobanana.storage import LocalImageStorage


@pytest.fixture
def image(png_bytes: bytes) -> DecodedImage:
    return DecodedImage(data=png_bytes, mime_type="image/png")


@pytest.fixture
def generator(image: DecodedImage) -> MagicMock:
    mock = MagicMock()
    mock.execute = AsyncMock(return_value=[image])
    return mock


@pytest.fixture(autouse=True)
def _in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


class TestImageToolServiceRun:
    """Tests for ImageToolService.run."""

    @pytest.mark.asyncio
    async def test_explicit_path(self, generator, tmp_path: Path, png_bytes: bytes) -> None:
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto"))
        request = GenerationRequest(prompt="a cat", saveToFilePath="out/cat")

        result = await service.run("generate", request)

        assert result.saved_path == tmp_path / "out" / "cat.png"
        assert result.auto_saved is False
        assert result.saved_path.read_bytes() == png_bytes
        assert result.duration_ms >= 0
        assert result.request_id

    @pytest.mark.asyncio
    async def test_auto_saved(self, generator, tmp_path: Path) -> None:
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto"))

        result = await service.run("edit", GenerationRequest(prompt="make it blue"))

        assert result.auto_saved is True
        assert result.saved_path.parent == tmp_path / "auto"
        assert result.saved_path.name.startswith("edit-")

    @pytest.mark.asyncio
    async def test_not_saved_when_auto_save_off(self, generator, tmp_path: Path) -> None:
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto", auto_save=False))

        result = await service.run("generate", GenerationRequest(prompt="a cat"))

        assert result.saved_path is None
        assert result.auto_saved is False
        assert not (tmp_path / "auto").exists()

    @pytest.mark.asyncio
    async def test_passes_prompt_and_images(self, generator, tmp_path: Path) -> None:
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto"))
        images = (InlineImageInput(dataBase64="AAAA"), InlineImageInput(dataBase64="BBBB"))

        await service.run("compose", GenerationRequest(prompt="combine", images=images))

        generator.execute.assert_awaited_once_with("combine", images)

    @pytest.mark.asyncio
    async def test_only_first_image_saved(self, generator, tmp_path: Path, png_bytes: bytes) -> None:
        generator.execute.return_value = [
            DecodedImage(data=png_bytes, mime_type="image/png"),
            DecodedImage(data=b"second", mime_type="image/jpeg"),
        ]
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto"))

        result = await service.run("generate", GenerationRequest(prompt="a cat"))

        assert result.image.data == png_bytes
        assert len(list((tmp_path / "auto").iterdir())) == 1

    @pytest.mark.asyncio
    async def test_pipeline_error_propagates(self, generator, tmp_path: Path) -> None:
        generator.execute.side_effect = PermanentProviderError("Gemini API error 400: bad", status_code=400)
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto"))

        with pytest.raises(PermanentProviderError):
            await service.run("generate", GenerationRequest(prompt="a cat"))
        assert not (tmp_path / "auto").exists()

    @pytest.mark.asyncio
    async def test_storage_error_propagates(self, generator, tmp_path: Path) -> None:
        (tmp_path / "blocker").write_text("file")
        service = ImageToolService(generator, LocalImageStorage(tmp_path / "auto"))
        request = GenerationRequest(prompt="a cat", saveToFilePath="blocker/out.png")

        with pytest.raises(PersistenceError):
            await service.run("generate", request)

    def test_from_settings(self, settings) -> None:
        service = ImageToolService.from_settings(settings)
        assert service._storage.default_dir == settings.default_save_path
        assert service._generator.endpoint == settings.gemini_image_endpoint


class TestFormatToolContent:
    """Tests for format_tool_content."""

    def _result(self, image: DecodedImage, saved_path=None, auto_saved=False) -> ToolResult:
        return ToolResult(
            image=image, saved_path=saved_path, auto_saved=auto_saved, duration_ms=5, request_id="req-1"
        )

    def test_saved_explicitly(self, image: DecodedImage) -> None:
        content = format_tool_content(self._result(image, Path("/tmp/out.png")), "edit")

        assert len(content) == 1
        assert isinstance(content[0], TextContent)
        assert content[0].text == "Image edited and saved to: /tmp/out.png\nSize: 0KB\nFormat: image/png"

    def test_auto_saved_note(self, image: DecodedImage) -> None:
        content = format_tool_content(self._result(image, Path("/tmp/a.png"), auto_saved=True), "compose")

        text = content[0].text
        assert text.startswith("Images composed and saved to: /tmp/a.png")
        assert text.endswith("Auto-saved (set AUTO_SAVE=false to disable)")

    def test_unsaved_inlines_image(self, image: DecodedImage) -> None:
        content = format_tool_content(self._result(image), "style")

        assert content[0].text.startswith("Style transfer completed!")
        assert isinstance(content[1], ImageContent)
        assert content[1].data == image.to_base64()
        assert content[1].mimeType == "image/png"

    def test_unsaved_generate_hint(self, image: DecodedImage) -> None:
        content = format_tool_content(self._result(image), "generate")

        assert "To save the image, add saveToFilePath parameter or enable AUTO_SAVE" in content[0].text
        assert len(content) == 2

    def test_size_rounded_to_kb(self) -> None:
        big = DecodedImage(data=b"x" * 3000, mime_type="image/jpeg")
        content = format_tool_content(self._result(big, Path("/tmp/x.jpg")), "generate")
        assert "Size: 3KB\nFormat: image/jpeg" in content[0].text
