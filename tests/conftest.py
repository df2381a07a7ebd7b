"""Shared fixtures for gemini-nanobanana-mcp tests."""

from __future__ import annotations

import base64
import json
from typing import Any, Callable

import httpx
import pytest

from gemini_nanobanana.config.settings import Settings, clear_settings_cache

# PNG signature followed by every byte value; not a decodable image
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256))


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's environment out of the tests."""
    for name in (
        "GEMINI_API_KEY",
        "GEMINI_IMAGE_ENDPOINT",
        "DEFAULT_SAVE_DIR",
        "AUTO_SAVE",
        "MCP_TRANSPORT",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def png_b64() -> str:
    return base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_image_endpoint="https://example.test/v1beta/models/image:generateContent",
        default_save_dir=str(tmp_path / "auto"),
        auto_save=True,
    )


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Backoff sleep that records delays instead of waiting."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep


def image_response(data_b64: str, mime_type: str | None = "image/png", text: str | None = None) -> dict:
    """A generateContent success body with one inline image."""
    inline: dict[str, str] = {"data": data_b64}
    if mime_type is not None:
        inline["mimeType"] = mime_type
    parts: list[dict] = []
    if text is not None:
        parts.append({"text": text})
    parts.append({"inlineData": inline})
    return {"candidates": [{"content": {"parts": parts}}]}


class ScriptedTransport:
    """httpx handler that replays a list of responses and records requests."""

    def __init__(self, responses: list[httpx.Response | Exception]):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def scripted() -> Callable[[list], tuple[ScriptedTransport, httpx.AsyncClient]]:
    def _make(responses: list) -> tuple[ScriptedTransport, httpx.AsyncClient]:
        handler = ScriptedTransport(responses)
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return handler, client

    return _make
