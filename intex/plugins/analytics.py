"""In-process analytics: records detection, response and error events."""

from __future__ import annotations

import traceback
from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from intex.core.types import ExecutionContext, FrameworkResponse, IntentDetectionResult
from intex.plugins.base import Plugin
from intex.utils.aio import maybe_await

PersistCallback = Callable[[list[dict[str, Any]]], "Awaitable[None] | None"]


class BasicAnalyticsPlugin(Plugin):
    """
    Collects analytics events in memory.

    When *persist_callback* is given it receives each event as it is recorded
    (a one-element list) and, on shutdown, the full event list.
    """

    def __init__(
        self,
        id: str = "analytics",
        name: str = "Basic Analytics",
        description: str = "Tracks intent detections, responses and errors",
        persist_callback: PersistCallback | None = None,
        priority: int = 0,
    ) -> None:
        super().__init__(id=id, name=name, description=description, priority=priority)
        self.persist_callback = persist_callback
        self.events: list[dict[str, Any]] = []

    async def initialize(self) -> None:
        logger.info(f"Analytics plugin {self.id} initialized")

    async def shutdown(self) -> None:
        if self.persist_callback and self.events:
            await maybe_await(self.persist_callback(list(self.events)))
        logger.info(f"Analytics plugin {self.id} shut down ({len(self.events)} events)")

    # ── hook wiring ──

    async def on_after_intent_detection(self, context: ExecutionContext) -> None:
        if context.detected_intent is not None:
            await self.track_intent_detection(context.detected_intent)

    async def on_after_response_generation(
        self, context: ExecutionContext, response: FrameworkResponse
    ) -> None:
        await self.track_response(response)

    async def on_error(self, error: BaseException, context: ExecutionContext | None = None) -> None:
        await self.track_error(error, context)

    # ── tracking ──

    async def track_intent_detection(self, result: IntentDetectionResult) -> None:
        await self._record({
            "type": "intent_detection",
            "timestamp": datetime.now().isoformat(),
            "intent_id": result.intent.id,
            "confidence": result.confidence,
            "matched_pattern": result.matched_pattern,
        })

    async def track_response(self, response: FrameworkResponse) -> None:
        ctx = response.execution_context
        await self._record({
            "type": "response",
            "timestamp": datetime.now().isoformat(),
            "conversation_id": ctx.conversation_id,
            "user_id": ctx.user_id,
            "intent_detected": response.metadata.intent_detected,
            "functions_executed": response.metadata.functions_executed,
            "execution_time": response.metadata.total_execution_time,
        })

    async def track_error(self, error: BaseException, context: ExecutionContext | None = None) -> None:
        await self._record({
            "type": "error",
            "timestamp": datetime.now().isoformat(),
            "error": str(error),
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            "context": (
                {"conversation_id": context.conversation_id, "user_id": context.user_id}
                if context is not None
                else None
            ),
        })

    def get_events(self) -> list[dict[str, Any]]:
        return list(self.events)

    async def _record(self, event: dict[str, Any]) -> None:
        self.events.append(event)
        if self.persist_callback:
            await maybe_await(self.persist_callback([event]))
