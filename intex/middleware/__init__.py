"""Middleware factories evaluated before a matched intent is dispatched."""

from intex.middleware.auth import create_auth_middleware
from intex.middleware.base import create_middleware
from intex.middleware.logging import create_logging_middleware
from intex.middleware.rate_limit import create_rate_limit_middleware

__all__ = [
    "create_middleware",
    "create_logging_middleware",
    "create_auth_middleware",
    "create_rate_limit_middleware",
]
