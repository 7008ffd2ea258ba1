"""Configuration loading utilities."""

import json
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger

from intex.config.schema import FrameworkConfig
from intex.settings import IntexSettings, get_settings

# Load .env into os.environ (won't overwrite existing env vars)
load_dotenv(override=False)


def get_config_path(settings: IntexSettings | None = None) -> Path:
    """Get the default configuration file path."""
    return (settings or get_settings()).config_path


def load_config(config_path: Path | None = None, settings: IntexSettings | None = None) -> FrameworkConfig:
    """
    Load configuration from file, then apply env-var overrides.

    Priority (highest → lowest):
        1. INTEX_* environment variables / .env
        2. ~/.intex/config.json (or *config_path*)
        3. Built-in defaults
    """
    settings = settings or get_settings()
    path = config_path or get_config_path(settings)

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            config = build_config(data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}; using default configuration")
            config = FrameworkConfig()
    else:
        config = FrameworkConfig()

    _apply_env_overrides(config, settings)
    return config


def build_config(data: FrameworkConfig | dict[str, Any] | None) -> FrameworkConfig:
    """Validate a camelCase or snake_case mapping into a ``FrameworkConfig``."""
    if isinstance(data, FrameworkConfig):
        return data
    if not data:
        return FrameworkConfig()
    return FrameworkConfig.model_validate(convert_keys(_migrate_config(dict(data))))


# ---------------------------------------------------------------------------
# Flat env-var overrides
# ---------------------------------------------------------------------------


def _apply_env_overrides(config: FrameworkConfig, settings: IntexSettings) -> None:
    """Apply INTEX_* settings on top of the loaded config."""
    provider = config.completion_provider
    if settings.api_key:
        provider.api_key = settings.api_key
    if settings.api_base:
        provider.api_base = settings.api_base
    if settings.model:
        provider.model = settings.model

    if settings.strategy:
        config.intent_detection.strategy = settings.strategy

    if settings.log_level:
        level = settings.log_level.lower()
        if level == "warning":
            level = "warn"
        if level in ("debug", "info", "warn", "error"):
            config.logging.level = level  # type: ignore[assignment]
        else:
            logger.warning(f"Ignoring unknown INTEX_LOG_LEVEL={settings.log_level!r}")


def save_config(config: FrameworkConfig, config_path: Path | None = None) -> None:
    """
    Save configuration to file (camelCase keys).

    The storage extension is runtime-only and is never written.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude={"storage_extension"})
    data = convert_to_camel(data)

    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    # Top-level "openai" section → "completionProvider"
    if "openai" in data and "completionProvider" not in data and "completion_provider" not in data:
        data["completionProvider"] = data.pop("openai")
    return data


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
