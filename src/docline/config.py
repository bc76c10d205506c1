"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/docline/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class ConverterConfig(BaseModel):
    """LibreOffice document conversion."""

    soffice_path: str = ""
    timeout_seconds: float = 120.0
    convertible_types: tuple[str, ...] = (".docx", ".doc", ".odt", ".odf")

    @field_validator("convertible_types", mode="before")
    @classmethod
    def _split_types(cls, value: object) -> object:
        # "docx, .ODT" -> (".docx", ".odt")
        if isinstance(value, str):
            value = [part for part in value.replace(",", " ").split() if part]
        if isinstance(value, (list, tuple)):
            return tuple(
                (t if t.startswith(".") else f".{t}").lower() for t in map(str, value)
            )
        return value

    @property
    def enabled(self) -> bool:
        return bool(self.soffice_path)


class ImagesConfig(BaseModel):
    """Remote image fetching and upload for pasted content."""

    fetch_timeout_seconds: float = 10.0
    max_concurrency: int = 4
    proxy_url: str | None = None
    presign_url: str | None = None

    @field_validator("max_concurrency")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            msg = "IMAGES__MAX_CONCURRENCY must be at least 1"
            raise ValueError(msg)
        return value


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``CONVERTER__SOFFICE_PATH``, ``IMAGES__PROXY_URL``, ``APP__LOG_DIR``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    converter: ConverterConfig = ConverterConfig()
    images: ImagesConfig = ImagesConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None:
        paths = env_file if isinstance(env_file, (list, tuple)) else (env_file,)
        loaded = [str(p) for p in paths if Path(str(p)).is_file()]
        if loaded:
            logger.info("Settings loaded .env from: %s", ", ".join(loaded))
        else:
            logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
