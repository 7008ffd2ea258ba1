"""
MockProvider: deterministic completion provider, no network.

Response selection, per call:
  1. The next scripted item, if any remain (``LLMResponse``, plain text, or an
     exception instance to raise).
  2. ``responder(messages, tools)`` when one was supplied.
  3. ``default_content`` as plain text.

Every call is recorded in ``calls`` so tests can assert on call counts,
temperatures and the exact transcript that was sent.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Iterable

from intex.providers.base import LLMProvider, LLMResponse, ToolCallRequest

ScriptItem = LLMResponse | str | BaseException
Responder = Callable[[list[dict[str, Any]], list[dict[str, Any]] | None], LLMResponse]


class MockProvider(LLMProvider):
    def __init__(
        self,
        responses: Iterable[ScriptItem] = (),
        default_content: str = "OK",
        responder: Responder | None = None,
        default_model: str = "mock-model",
    ) -> None:
        super().__init__()
        self._script: deque[ScriptItem] = deque(responses)
        self.default_content = default_content
        self.responder = responder
        self.default_model = default_model
        self.calls: list[dict[str, Any]] = []

    def queue(self, *items: ScriptItem) -> None:
        self._script.extend(items)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        self.calls.append({
            "messages": [dict(m) for m in messages],
            "tools": tools,
            "model": model or self.default_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })

        if self._script:
            item = self._script.popleft()
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, str):
                return LLMResponse(content=item)
            return item

        if self.responder is not None:
            return self.responder(messages, tools)

        return LLMResponse(content=self.default_content)

    def get_default_model(self) -> str:
        return self.default_model


def tool_call_response(*calls: tuple[str, str, str], content: str | None = None) -> LLMResponse:
    """Build a response requesting ``(call_id, function_name, json_arguments)`` calls."""
    return LLMResponse(
        content=content,
        tool_calls=[ToolCallRequest(id=cid, name=name, arguments=args) for cid, name, args in calls],
        finish_reason="tool_calls",
    )
