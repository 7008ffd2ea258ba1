"""Configuration module for intex."""

from intex.config.loader import build_config, get_config_path, load_config, save_config
from intex.config.schema import (
    CompletionProviderConfig,
    ContextRetentionConfig,
    FrameworkConfig,
    IntentDetectionConfig,
    LoggingConfig,
    StorageExtensionConfig,
)

__all__ = [
    "FrameworkConfig",
    "CompletionProviderConfig",
    "IntentDetectionConfig",
    "LoggingConfig",
    "StorageExtensionConfig",
    "ContextRetentionConfig",
    "build_config",
    "load_config",
    "save_config",
    "get_config_path",
]
