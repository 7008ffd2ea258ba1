"""Small helpers for mixing sync and async callables."""

from __future__ import annotations

import inspect
from typing import Awaitable, TypeVar

T = TypeVar("T")


async def maybe_await(value: T | Awaitable[T]) -> T:
    """Await *value* if it is awaitable, otherwise return it unchanged.

    Handlers, context providers and middleware may be plain functions or
    coroutines; callers invoke them and pass the return value through here.
    """
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


def elapsed_ms(start: float, end: float) -> int:
    """Milliseconds between two ``time.perf_counter()`` readings."""
    return int(round((end - start) * 1000))


def describe_error(exc: BaseException) -> str:
    """Stringify an exception the way it is recorded on function calls."""
    return str(exc) or type(exc).__name__


__all__ = ["maybe_await", "elapsed_ms", "describe_error"]
