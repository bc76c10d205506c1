"""Tests for docline.config -- Settings, sub-models and env var nesting.

Every test constructs Settings(_env_file=None, ...) to avoid reading real .env files.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from docline.config import (
    _PROJECT_ROOT,
    AppConfig,
    ConverterConfig,
    ImagesConfig,
    Settings,
    get_settings,
)


class TestDefaults:
    """Defaults apply when nothing is configured."""

    def test_defaults(self, settings: Settings) -> None:
        assert settings.converter.soffice_path == ""
        assert settings.converter.enabled is False
        assert settings.converter.timeout_seconds == 120.0
        assert settings.converter.convertible_types == (".docx", ".doc", ".odt", ".odf")
        assert settings.images.max_concurrency == 4
        assert settings.images.proxy_url is None
        assert settings.app.log_dir == Path("logs")

    def test_env_file_points_at_project_root(self) -> None:
        assert Settings.model_config["env_file"] == _PROJECT_ROOT / ".env"


class TestEnvNesting:
    """Double-underscore environment variables populate sub-models."""

    def test_nested_values(self, settings, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONVERTER__SOFFICE_PATH", "/usr/bin/soffice")
        monkeypatch.setenv("CONVERTER__TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("IMAGES__PROXY_URL", "https://app.example/proxy")
        monkeypatch.setenv("APP__LOG_DIR", "/tmp/docline-logs")

        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.converter.enabled is True
        assert s.converter.timeout_seconds == 30.0
        assert s.images.proxy_url == "https://app.example/proxy"
        assert s.app.log_dir == Path("/tmp/docline-logs")

    def test_types_from_json_list(self, settings, monkeypatch) -> None:
        monkeypatch.setenv("CONVERTER__CONVERTIBLE_TYPES", '["docx", ".ODT"]')
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.converter.convertible_types == (".docx", ".odt")

    def test_get_settings_is_cached(self, settings) -> None:
        assert get_settings() is get_settings()


class TestValidation:
    """Invalid values fail at construction."""

    def test_types_normalised(self) -> None:
        config = ConverterConfig(convertible_types=["RTF", ".Docx"])
        assert config.convertible_types == (".rtf", ".docx")

    def test_concurrency_at_least_one(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            ImagesConfig(max_concurrency=0)

    def test_bad_timeout(self) -> None:
        with pytest.raises(ValidationError):
            ConverterConfig(timeout_seconds="soon")  # type: ignore[arg-type]

    def test_explicit_sub_models(self) -> None:
        s = Settings(
            _env_file=None,  # type: ignore[call-arg]
            app=AppConfig(log_dir=Path("/var/log/docline")),
        )
        assert s.app.log_dir == Path("/var/log/docline")
