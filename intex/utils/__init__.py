"""Utility helpers for intex.

Matchers, entity extraction and contract validation depend on
``intex.core.types`` and are exported from the ``intex`` package root.
"""

from intex.utils.aio import describe_error, elapsed_ms, maybe_await
from intex.utils.token_counter import estimate_function_tokens, estimate_messages_tokens, estimate_tokens

__all__ = [
    "maybe_await",
    "elapsed_ms",
    "describe_error",
    "estimate_tokens",
    "estimate_messages_tokens",
    "estimate_function_tokens",
]
