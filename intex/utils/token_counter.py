"""Rough token estimates for prompts, transcripts and tool schemas."""

import json
from typing import Any

_MESSAGE_OVERHEAD = 4
_TOOL_CALL_OVERHEAD = 10
_FUNCTION_OVERHEAD = 10


def estimate_tokens(text: str) -> int:
    """Fast token estimate for mixed CJK/Latin text.

    Heuristic (no tokenizer dependency):
    - CJK ideographs ≈ 1 token each
    - Everything else ≈ 1 token per 4 chars
    """
    if not text:
        return 0
    cjk = 0
    other = 0
    for ch in text:
        cp = ord(ch)
        if (
            0x4E00 <= cp <= 0x9FFF
            or 0x3400 <= cp <= 0x4DBF
            or 0xF900 <= cp <= 0xFAFF
            or 0x20000 <= cp <= 0x2A6DF
        ):
            cjk += 1
        else:
            other += 1
    return cjk + -(-other // 4)


def estimate_messages_tokens(messages: list[dict[str, Any]]) -> int:
    """Estimate total tokens across a chat transcript."""
    total = 0
    for msg in messages:
        total += _MESSAGE_OVERHEAD
        content = msg.get("content")
        if isinstance(content, str):
            total += estimate_tokens(content)

        tool_calls = msg.get("tool_calls") or []
        total += len(tool_calls) * _TOOL_CALL_OVERHEAD
        for tc in tool_calls:
            if tc.get("type", "function") != "function":
                continue
            fn = tc.get("function", {})
            total += estimate_tokens(fn.get("name", ""))
            total += estimate_tokens(fn.get("arguments", ""))
    return total


def estimate_function_tokens(name: str, description: str, parameters: Any) -> int:
    """Estimate the prompt cost of one tool definition."""
    return (
        estimate_tokens(name)
        + estimate_tokens(description)
        + estimate_tokens(json.dumps(parameters))
        + _FUNCTION_OVERHEAD
    )
