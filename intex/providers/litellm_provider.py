"""Completion provider backed by LiteLLM (OpenAI, Anthropic, OpenRouter, Gemini, ...)."""

import json
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from intex.core.errors import CompletionProviderError
from intex.providers.base import LLMProvider, LLMResponse, ToolCallRequest

DEFAULT_MODEL = "gpt-4"


class LiteLLMProvider(LLMProvider):
    """
    Routes intent classification, entity extraction and function-calling
    turns through ``litellm.acompletion``.

    Credentials given here are sent with every request; when omitted, LiteLLM
    falls back to the usual provider environment variables.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = DEFAULT_MODEL,
        extra_headers: dict[str, str] | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.extra_headers = extra_headers or {}

        litellm.suppress_debug_info = True
        # Some models reject e.g. temperature; let LiteLLM strip what they don't take.
        litellm.drop_params = True

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Run one completion over *messages*.

        Args:
            messages: Transcript in chat shape, tool turns included.
            tools: Function schemas the model may call; omitted when empty.
            model: LiteLLM model string, e.g. ``anthropic/claude-sonnet-4-5``.
            max_tokens: Completion cap; not sent when None.
            temperature: Sampling temperature.

        Returns:
            Plain text, requested tool calls, or both.

        Raises:
            CompletionProviderError: transport/auth failure or an unusable reply.
        """
        request = self._request(messages, tools, model or self.default_model, max_tokens, temperature)
        try:
            response = await acompletion(**request)
        except Exception as e:
            logger.error(f"Completion request to {request['model']} failed: {e}")
            raise CompletionProviderError(f"Completion request failed ({request['model']}): {e}") from e

        return self._parse_response(response)

    def _request(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        model: str,
        max_tokens: int | None,
        temperature: float,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {"model": model, "messages": messages, "temperature": temperature}
        optional = {
            "max_tokens": max_tokens,
            "api_key": self.api_key,
            "api_base": self.api_base,
            "extra_headers": self.extra_headers,
        }
        request.update({key: value for key, value in optional.items() if value})
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"
        return request

    def _parse_response(self, response: Any) -> LLMResponse:
        try:
            choice = response.choices[0]
        except (AttributeError, IndexError) as e:
            raise CompletionProviderError(f"Malformed completion response: {e}") from e

        reply = choice.message
        return LLMResponse(
            content=reply.content,
            tool_calls=[self._tool_call(tc) for tc in getattr(reply, "tool_calls", None) or []],
            finish_reason=choice.finish_reason or "stop",
            usage=self._usage(getattr(response, "usage", None)),
        )

    @staticmethod
    def _tool_call(tc: Any) -> ToolCallRequest:
        arguments = tc.function.arguments
        # The dispatcher parses arguments itself; a few providers hand back dicts.
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return ToolCallRequest(id=tc.id, name=tc.function.name, arguments=arguments or "{}")

    @staticmethod
    def _usage(usage: Any) -> dict[str, int]:
        if not usage:
            return {}
        return {
            name: getattr(usage, name)
            for name in ("prompt_tokens", "completion_tokens", "total_tokens")
        }

    def get_default_model(self) -> str:
        return self.default_model
