"""Per-turn timing of detection, function execution and response generation."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from intex.core.types import ExecutionContext, FrameworkResponse
from intex.plugins.base import Plugin
from intex.utils.aio import elapsed_ms


@dataclass
class PerformanceMetric:
    name: str
    conversation_id: str
    start: float
    duration_ms: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class PerformancePlugin(Plugin):
    """
    Measures stage durations keyed by conversation id.

    Metric names are ``<stage>:<conversation_id>[:<function_id>]``. Stages
    slower than ``slow_operation_ms`` are logged as warnings; ``detailed``
    logs a per-turn report after each response. Only the latest
    ``max_completed`` finished metrics are kept.
    """

    id = "performance-plugin"
    name = "Performance Plugin"
    description = "Monitors and measures performance metrics of framework operations"
    priority = 80

    def __init__(self, slow_operation_ms: int = 500, detailed: bool = False, max_completed: int = 1000) -> None:
        super().__init__()
        self.slow_operation_ms = slow_operation_ms
        self.detailed = detailed
        self._active: dict[str, PerformanceMetric] = {}
        self.completed: deque[PerformanceMetric] = deque(maxlen=max_completed)

    async def shutdown(self) -> None:
        for key in list(self._active):
            self._finish(key, reason="shutdown")
        if self.detailed:
            logger.debug(f"Performance metrics: {len(self.completed)} completed")

    # ── hooks ──

    async def on_before_intent_detection(self, context: ExecutionContext) -> None:
        self._start(
            context,
            "intent_detection",
            message_length=len(context.user_message),
        )

    async def on_after_intent_detection(self, context: ExecutionContext) -> None:
        detected = context.detected_intent
        self._end(
            context,
            "intent_detection",
            intent_id=detected.intent.id if detected else None,
            confidence=detected.confidence if detected else None,
        )

    async def on_before_function_execution(
        self, context: ExecutionContext, function_id: str, parameters: Any
    ) -> None:
        self._start(context, "function_execution", function_id)

    async def on_after_function_execution(
        self,
        context: ExecutionContext,
        function_id: str,
        result: Any,
        error: str | None = None,
    ) -> None:
        metric = self._end(
            context,
            "function_execution",
            function_id,
            success=error is None,
        )
        if metric and metric.duration_ms is not None and metric.duration_ms > self.slow_operation_ms:
            logger.warning(f"Slow function execution: {function_id} took {metric.duration_ms}ms")

    async def on_before_response_generation(self, context: ExecutionContext) -> None:
        self._start(
            context,
            "response_generation",
            message_count=len(context.messages),
        )

    async def on_after_response_generation(
        self, context: ExecutionContext, response: FrameworkResponse
    ) -> None:
        metric = self._end(
            context,
            "response_generation",
            response_length=len(response.response),
            functions_executed=response.metadata.functions_executed,
        )
        if metric and metric.duration_ms is not None and metric.duration_ms > self.slow_operation_ms:
            logger.warning(
                f"Slow response generation for conversation {context.conversation_id}: "
                f"{metric.duration_ms}ms"
            )
        if self.detailed:
            logger.debug(f"Performance report: {self.report(context.conversation_id)}")

    async def on_error(self, error: BaseException, context: ExecutionContext | None = None) -> None:
        if context is None:
            return
        for key, metric in list(self._active.items()):
            if metric.conversation_id == context.conversation_id:
                self._finish(key, error=str(error))

    # ── metrics ──

    def report(self, conversation_id: str) -> dict[str, Any]:
        return {
            "conversation_id": conversation_id,
            "intent_detection_ms": self.duration(f"intent_detection:{conversation_id}"),
            "function_execution_ms": {
                m.metadata["function_id"]: m.duration_ms
                for m in self.completed
                if m.conversation_id == conversation_id and "function_id" in m.metadata
            },
            "response_generation_ms": self.duration(f"response_generation:{conversation_id}"),
        }

    def duration(self, name: str) -> int | None:
        """Duration of the most recent completed metric called *name*."""
        for metric in reversed(self.completed):
            if metric.name == name:
                return metric.duration_ms
        return None

    @staticmethod
    def _key(context: ExecutionContext, stage: str, function_id: str | None) -> str:
        key = f"{stage}:{context.conversation_id}"
        return f"{key}:{function_id}" if function_id is not None else key

    def _start(
        self, context: ExecutionContext, stage: str, function_id: str | None = None, **metadata: Any
    ) -> None:
        if function_id is not None:
            metadata["function_id"] = function_id
        name = self._key(context, stage, function_id)
        self._active[name] = PerformanceMetric(
            name=name,
            conversation_id=context.conversation_id,
            start=time.perf_counter(),
            metadata=metadata,
        )

    def _end(
        self, context: ExecutionContext, stage: str, function_id: str | None = None, **metadata: Any
    ) -> PerformanceMetric | None:
        return self._finish(self._key(context, stage, function_id), **metadata)

    def _finish(self, name: str, **metadata: Any) -> PerformanceMetric | None:
        metric = self._active.pop(name, None)
        if metric is None:
            return None
        metric.duration_ms = elapsed_ms(metric.start, time.perf_counter())
        metric.metadata.update(metadata)
        self.completed.append(metric)
        return metric
