"""Token-based authorization middleware."""

from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger

from intex.core.types import Intent, IntentContext, Middleware, MiddlewareResult
from intex.middleware.base import create_middleware
from intex.utils.aio import maybe_await

AUTH_ERROR_CONTEXT_ID = "auth_error"

TokenExtractor = Callable[[str], "str | None"]
TokenValidator = Callable[[str], "bool | Awaitable[bool]"]


def _auth_error(message: str) -> MiddlewareResult:
    return MiddlewareResult(
        proceed=False,
        modified_context=IntentContext(id=AUTH_ERROR_CONTEXT_ID, data={"error": message}),
    )


def create_auth_middleware(
    extract_token: TokenExtractor,
    validate_token: TokenValidator,
    unauthorized_message: str = "Unauthorized access",
) -> Middleware:
    """Halt the turn unless *extract_token* finds a token *validate_token* accepts.

    A halt replaces the injected context with an ``auth_error`` context whose
    ``data["error"]`` explains why.
    """

    async def authorize(intent: Intent, user_message: str, context: IntentContext | None) -> MiddlewareResult:
        token = extract_token(user_message)
        if not token:
            logger.info(f"Rejected intent {intent.id}: no authentication token")
            return _auth_error("No authentication token provided")

        if not await maybe_await(validate_token(token)):
            logger.info(f"Rejected intent {intent.id}: invalid token")
            return _auth_error(unauthorized_message)

        return MiddlewareResult()

    return create_middleware("auth", authorize)
