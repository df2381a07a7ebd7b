"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from gemini_nanobanana.config.constants import DEFAULT_ENDPOINT
from gemini_nanobanana.config.settings import Settings, clear_settings_cache, get_settings


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.gemini_api_key == ""
        assert settings.gemini_image_endpoint == DEFAULT_ENDPOINT
        assert settings.default_save_dir == "~/Downloads/gemini-images"
        assert settings.auto_save is True
        assert settings.mcp_transport == "stdio"
        assert settings.mcp_http_host == "127.0.0.1"
        assert settings.mcp_http_port == 7801
        assert settings.mcp_http_path == "/mcp"
        assert settings.log_level == "info"
        assert settings.request_timeout == 60.0
        assert settings.max_retries == 3
        assert settings.retry_base_delay == 1.0

    def test_save_path_expanded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        settings = Settings(_env_file=None)
        assert settings.default_save_path == tmp_path / "Downloads" / "gemini-images"


class TestSettingsFromEnvironment:
    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "abc123")
        monkeypatch.setenv("AUTO_SAVE", "false")
        monkeypatch.setenv("MCP_TRANSPORT", "HTTP")
        monkeypatch.setenv("LOG_LEVEL", "Warn")

        settings = Settings(_env_file=None)

        assert settings.gemini_api_key == "abc123"
        assert settings.auto_save is False
        assert settings.mcp_transport == "http"
        assert settings.log_level == "warn"

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=from-file\nDEFAULT_SAVE_DIR=/srv/images\n")

        settings = Settings(_env_file=env_file)

        assert settings.gemini_api_key == "from-file"
        assert settings.default_save_dir == "/srv/images"

    def test_invalid_transport(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MCP_TRANSPORT", "websocket")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_invalid_port(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, mcp_http_port=0)


class TestSettingsHelpers:
    def test_is_configured(self) -> None:
        assert Settings(_env_file=None).is_configured()["gemini_api_key"] is False
        assert Settings(_env_file=None, gemini_api_key="k").is_configured()["gemini_api_key"] is True

    def test_blank_key_not_configured(self) -> None:
        assert not Settings(_env_file=None, gemini_api_key="   ").has_api_key

    def test_to_dict_masks_key(self) -> None:
        data = Settings(_env_file=None, gemini_api_key="secret-key-value").to_dict()
        assert data["gemini_api_key"] == "secr…"
        assert "secret-key-value" not in str(data)

    def test_frozen(self) -> None:
        settings = Settings(_env_file=None)
        with pytest.raises(ValidationError):
            settings.auto_save = False


class TestGetSettings:
    def test_cached(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        assert get_settings() is get_settings()

    def test_cache_clear(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GEMINI_API_KEY", "first")
        assert get_settings().gemini_api_key == "first"

        monkeypatch.setenv("GEMINI_API_KEY", "second")
        assert get_settings().gemini_api_key == "first"

        clear_settings_cache()
        assert get_settings().gemini_api_key == "second"
