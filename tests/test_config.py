"""Tests for application configuration."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from docscreener.config import (
    DEFAULT_API_BASE,
    DEFAULT_SYSTEM_PROMPT,
    AppConfig,
    ConfigError,
    default_settings_path,
)


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.api_key == ""
        assert config.model_id == ""
        assert config.assistant_prompt == ""
        assert config.max_tokens == 200
        assert config.keywords == []
        assert config.include_prompt_in_output is True
        assert config.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert config.api_base == DEFAULT_API_BASE

    def test_custom_config(self) -> None:
        """Should create config with custom values."""
        config = AppConfig(
            api_key="sk-test",
            model_id="gpt-4",
            assistant_prompt="Summarize leadership",
            max_tokens=500,
            keywords=["education", "research"],
            include_prompt_in_output=False,
        )

        assert config.model_id == "gpt-4"
        assert config.max_tokens == 500
        assert config.keywords == ["education", "research"]
        assert config.include_prompt_in_output is False

    def test_keywords_from_comma_string(self) -> None:
        """Should accept the comma-separated keyword form."""
        config = AppConfig(keywords="education, research,,awards")  # type: ignore[arg-type]

        assert config.keywords == ["education", "research", "awards"]
        assert config.keyword_text == "education,research,awards"

    def test_rejects_non_positive_tokens(self) -> None:
        with pytest.raises(ConfigError):
            AppConfig(max_tokens=0)

    def test_default_settings_path(self) -> None:
        with patch("docscreener.config.Path.home", return_value=Path("/home/user")):
            assert default_settings_path() == Path(
                "/home/user/Documents/DocScreener/settings.json"
            )


class TestSettingsFile:
    """Test loading and saving the settings file."""

    def test_load_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = AppConfig.load(tmp_path / "missing.json")

        assert config == AppConfig()

    def test_save_then_load(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "settings.json"
        original = AppConfig(api_key="k", model_id="m", keywords=["a", "b"], max_tokens=42)

        saved = original.save(path)

        assert saved == path
        assert AppConfig.load(path) == original

    def test_load_ignores_unknown_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"model_id": "gpt-4", "theme": "dark"}), encoding="utf-8")

        config = AppConfig.load(path)

        assert config.model_id == "gpt-4"

    def test_load_keyword_string(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"keywords": "one, two"}), encoding="utf-8")

        assert AppConfig.load(path).keywords == ["one", "two"]

    def test_load_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError):
            AppConfig.load(path)

    def test_load_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ConfigError):
            AppConfig.load(path)

    def test_load_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"max_tokens": -5}), encoding="utf-8")

        with pytest.raises(ConfigError):
            AppConfig.load(path)

    @pytest.mark.parametrize(
        "raw",
        [
            {"keywords": None},
            {"keywords": ["ok", 3]},
            {"max_tokens": "200"},
            {"max_tokens": True},
            {"include_prompt_in_output": "no"},
        ],
    )
    def test_load_wrong_value_types(self, tmp_path: Path, raw: dict) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(raw), encoding="utf-8")

        with pytest.raises(ConfigError):
            AppConfig.load(path)
