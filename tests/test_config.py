"""Tests for wren.config — frozen application configuration."""

import pytest

from wren.config import AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.api_prefix == "/api/v1"
        assert config.release_id == "dev"
        assert config.max_content_length == 16 * 1024 * 1024
        assert config.log_level == "info"

    def test_override(self) -> None:
        config = AppConfig(port=3000, release_id="2026.10")
        assert config.port == 3000
        assert config.release_id == "2026.10"

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.port = 9000  # type: ignore[misc]
