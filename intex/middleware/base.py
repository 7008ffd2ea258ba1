"""Middleware construction helper."""

from intex.core.types import Middleware, MiddlewareFn


def create_middleware(id: str, execute: MiddlewareFn) -> Middleware:
    """Wrap a sync or async ``(intent, user_message, context) -> MiddlewareResult`` callable."""
    return Middleware(id=id, execute=execute)
