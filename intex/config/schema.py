"""Configuration schema for intex."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class CompletionProviderConfig(BaseModel):
    """Credentials and generation parameters forwarded to every completion call."""

    model_config = ConfigDict(extra="ignore")

    api_key: str = ""
    api_base: str | None = None
    model: str | None = None  # provider default ("gpt-4") when unset
    temperature: float | None = None  # 0.7 when unset
    max_tokens: int | None = None


class IntentDetectionConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # pattern | llm | hybrid | embedding; anything else behaves as pattern
    strategy: str = "pattern"
    # None = per-call-site default (0.3 pattern, 0.7 hybrid short-circuit, 0.5 llm)
    confidence_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    level: Literal["debug", "info", "warn", "error"] = "info"


class StorageExtensionConfig(BaseModel):
    """Wraps a live storage extension instance; never loaded from a file."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    instance: Any


class ContextRetentionConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    max_contexts: int = Field(default=10, ge=1)
    # Declared for compatibility; no age-based eviction consumes it.
    ttl: int | None = None


class FrameworkConfig(BaseModel):
    """Root configuration consumed by ``IntentFramework``."""

    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)

    completion_provider: CompletionProviderConfig = Field(default_factory=CompletionProviderConfig)
    intent_detection: IntentDetectionConfig = Field(default_factory=IntentDetectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage_extension: StorageExtensionConfig | None = None
    context_retention: ContextRetentionConfig = Field(default_factory=ContextRetentionConfig)
