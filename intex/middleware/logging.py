"""Middleware that logs every matched intent before dispatch."""

from __future__ import annotations

from loguru import logger

from intex.core.types import Intent, IntentContext, Middleware, MiddlewareResult
from intex.middleware.base import create_middleware


def create_logging_middleware(level: str = "INFO") -> Middleware:
    async def log_intent(intent: Intent, user_message: str, context: IntentContext | None) -> MiddlewareResult:
        logger.log(level, f'Intent: {intent.id}, Message: "{user_message}"')
        return MiddlewareResult()

    return create_middleware("logging", log_intent)
