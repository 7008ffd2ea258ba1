"""Middleware chain runner."""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from intex.core.types import ExecutionContext, Intent, Middleware


async def run_middleware_chain(
    middleware: Sequence[Middleware],
    intent: Intent,
    context: ExecutionContext,
) -> bool:
    """Run *middleware* strictly in order; return False if one halted the turn.

    A replacement context from any step is written to
    ``context.injected_context`` before the next step sees it. Steps after a
    halting one are never invoked. Exceptions from a step propagate.
    """
    for mw in middleware:
        result = await mw.run(intent, context.user_message, context.injected_context)
        if result.modified_context is not None:
            context.injected_context = result.modified_context
        if not result.proceed:
            logger.info(f"Middleware {mw.id} stopped processing for intent {intent.id}")
            return False
    return True
