"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ansiloom.palette import ColorPalette, get_palette

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class RenderConfig(BaseModel):
    """Rendering defaults."""

    palette: str = "xterm"
    escape_html: bool = True
    encoding: str = "utf-8"
    decode_errors: Literal["strict", "replace"] = "strict"


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_dir: Path | None = None

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            msg = f"unknown log level {value!r}"
            raise ValueError(msg)
        return level


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with .env loading and type validation.

    Environment variables use the ``ANSILOOM_`` prefix and a double-underscore
    delimiter for nesting: ``ANSILOOM_RENDER__PALETTE``,
    ``ANSILOOM_LOG__LEVEL``.  Custom palettes are given as JSON:
    ``ANSILOOM_PALETTES='{"solarized": {"name": "solarized", ...}}'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANSILOOM_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    render: RenderConfig = RenderConfig()
    log: LogConfig = LogConfig()
    palettes: dict[str, ColorPalette] = Field(default_factory=dict)

    def resolve_palette(self, name: str | None = None) -> ColorPalette:
        """Return palette *name*, or the configured default palette.

        Raises:
            UnknownPaletteError: If the palette is neither custom nor built in.
        """
        return get_palette(name or self.render.palette, self.palettes)


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()
    logger.debug(
        "Settings loaded: palette=%s, %d custom palette(s)",
        settings.render.palette,
        len(settings.palettes),
    )
    return settings
