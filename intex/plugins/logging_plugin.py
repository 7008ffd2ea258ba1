"""Logs every lifecycle hook through loguru."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from intex.core.types import ExecutionContext, FrameworkResponse
from intex.logging import LEVELS
from intex.plugins.base import Hook, Plugin


class LoggingPlugin(Plugin):
    """
    Detailed per-hook logging.

    Records are emitted on a logger bound with ``plugin=<id>`` plus the
    conversation/user ids, so sinks can filter on them. With *log_file* set,
    an extra loguru file sink receives only this plugin's records between
    ``initialize`` and ``shutdown``.
    """

    id = "logging-plugin"
    name = "Logging Plugin"
    description = "Provides detailed logging of framework operations"
    priority = 100

    def __init__(
        self,
        level: str = "info",
        exclude_events: Iterable[Hook | str] = (),
        log_file: str | Path | None = None,
    ) -> None:
        super().__init__()
        self.level = LEVELS.get(level, "INFO")
        self.exclude_events = {Hook(e) if not isinstance(e, Hook) else e for e in exclude_events}
        self.log_file = Path(log_file) if log_file else None
        self._sink_id: int | None = None
        self._log = logger.bind(plugin=self.id)

    async def initialize(self) -> None:
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            plugin_id = self.id
            self._sink_id = logger.add(
                self.log_file,
                level=self.level,
                filter=lambda record: record["extra"].get("plugin") == plugin_id,
            )
            self._log.info(f"Logging to file: {self.log_file}")
        self._log.debug(f"Initializing {self.name}")

    async def shutdown(self) -> None:
        self._log.debug(f"Shutting down {self.name}")
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None

    def _emit(self, hook: Hook, context: ExecutionContext | None, message: str, **extra: Any) -> None:
        if hook in self.exclude_events:
            return
        if context is not None:
            extra.setdefault("conversation_id", context.conversation_id)
            extra.setdefault("user_id", context.user_id)
        level = "ERROR" if hook is Hook.ERROR else self.level
        self._log.bind(**extra).log(level, message)

    async def on_before_intent_detection(self, context: ExecutionContext) -> None:
        self._emit(Hook.BEFORE_INTENT_DETECTION, context, f'Processing user message: "{context.user_message}"')

    async def on_after_intent_detection(self, context: ExecutionContext) -> None:
        detected = context.detected_intent
        if detected is None:
            self._emit(Hook.AFTER_INTENT_DETECTION, context, "No intent detected")
            return
        self._emit(
            Hook.AFTER_INTENT_DETECTION,
            context,
            f'Detected intent "{detected.intent.name}" with confidence {detected.confidence}',
            intent_id=detected.intent.id,
            entities=detected.extracted_entities,
        )

    async def on_before_context_injection(self, context: ExecutionContext) -> None:
        self._emit(Hook.BEFORE_CONTEXT_INJECTION, context, "Injecting context")

    async def on_after_context_injection(self, context: ExecutionContext) -> None:
        injected = context.injected_context
        text = f"Context injected: {injected.id}" if injected else "No context injected"
        self._emit(Hook.AFTER_CONTEXT_INJECTION, context, text)

    async def on_before_function_execution(
        self, context: ExecutionContext, function_id: str, parameters: Any
    ) -> None:
        self._emit(
            Hook.BEFORE_FUNCTION_EXECUTION,
            context,
            f"Executing function {function_id}",
            parameters=parameters,
        )

    async def on_after_function_execution(
        self,
        context: ExecutionContext,
        function_id: str,
        result: Any,
        error: str | None = None,
    ) -> None:
        if error:
            self._emit(Hook.AFTER_FUNCTION_EXECUTION, context, f"Function {function_id} failed: {error}")
        else:
            self._emit(Hook.AFTER_FUNCTION_EXECUTION, context, f"Function {function_id} completed")

    async def on_before_response_generation(self, context: ExecutionContext) -> None:
        self._emit(
            Hook.BEFORE_RESPONSE_GENERATION,
            context,
            f"Generating response ({len(context.messages)} messages)",
        )

    async def on_after_response_generation(
        self, context: ExecutionContext, response: FrameworkResponse
    ) -> None:
        self._emit(
            Hook.AFTER_RESPONSE_GENERATION,
            context,
            f"Response generated in {response.metadata.total_execution_time}ms "
            f"({response.metadata.functions_executed} function(s))",
        )

    async def on_error(self, error: BaseException, context: ExecutionContext | None = None) -> None:
        self._emit(Hook.ERROR, context, f"Error processing message: {error}")
