"""Environment settings for intex, loaded from env / .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IntexSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="INTEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- completion provider ---
    api_key: str = ""
    api_base: str | None = None
    model: str | None = None

    # --- detection / logging ---
    strategy: str | None = None
    log_level: str | None = None

    # --- file-system paths ---
    config_path: Path = Field(default_factory=lambda: Path.home() / ".intex" / "config.json")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".intex" / "data")


@lru_cache
def get_settings() -> IntexSettings:
    return IntexSettings()
