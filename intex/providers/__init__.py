"""Completion provider abstraction module."""

from intex.providers.base import LLMProvider, LLMResponse, ToolCallRequest
from intex.providers.litellm_provider import LiteLLMProvider
from intex.providers.mock_provider import MockProvider, tool_call_response

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "ToolCallRequest",
    "LiteLLMProvider",
    "MockProvider",
    "tool_call_response",
]
