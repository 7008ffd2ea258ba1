"""Sliding-window rate limiting middleware."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Callable

from loguru import logger

from intex.core.types import Intent, IntentContext, Middleware, MiddlewareResult
from intex.middleware.base import create_middleware

RATE_LIMIT_CONTEXT_ID = "rate_limit_error"
DEFAULT_KEY = "default"

KeyGenerator = Callable[[str, "IntentContext | None"], str]


def default_key(user_message: str, context: IntentContext | None) -> str:
    """Rate-limit per ``context.data["user_id"]`` when present."""
    if context is not None and isinstance(context.data, dict):
        return str(context.data.get("user_id") or DEFAULT_KEY)
    return DEFAULT_KEY


def create_rate_limit_middleware(
    max_requests: int,
    window_seconds: float,
    key_generator: KeyGenerator | None = None,
    message: str = "Rate limit exceeded. Please try again later.",
    clock: Callable[[], float] = time.monotonic,
) -> Middleware:
    """Allow at most *max_requests* per key within any *window_seconds* span.

    Rejected requests are not counted against the window.
    """
    key_for = key_generator or default_key
    requests: dict[str, deque[float]] = defaultdict(deque)

    def limit(intent: Intent, user_message: str, context: IntentContext | None) -> MiddlewareResult:
        key = key_for(user_message, context)
        now = clock()
        window = requests[key]
        while window and window[0] <= now - window_seconds:
            window.popleft()

        if len(window) >= max_requests:
            logger.info(f"Rate limit exceeded for {key} on intent {intent.id}")
            return MiddlewareResult(
                proceed=False,
                modified_context=IntentContext(id=RATE_LIMIT_CONTEXT_ID, data={"error": message}),
            )

        window.append(now)
        return MiddlewareResult()

    return create_middleware("rate-limit", limit)
