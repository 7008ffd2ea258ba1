"""IntentFramework: the per-turn orchestrator."""

from __future__ import annotations

import time
from typing import Any, Iterable

from loguru import logger

from intex.config.loader import build_config
from intex.config.schema import FrameworkConfig
from intex.core.context import ContextRetention, provide_context
from intex.core.detection import IntentDetector
from intex.core.errors import ContractNotFoundError, ConversationLockTimeout
from intex.core.execution import execute_function_calls, prepare_function_tools
from intex.core.middleware import run_middleware_chain
from intex.core.types import (
    ExecutionContext,
    FrameworkResponse,
    Intent,
    IntentContext,
    IntentContract,
    IntentDetectionResult,
    Message,
    ResponseMetadata,
)
from intex.extensions.storage_manager import StorageManager
from intex.logging import setup_logging
from intex.plugins.base import Hook, Plugin
from intex.plugins.manager import PluginManager
from intex.providers.base import LLMProvider, LLMResponse
from intex.providers.litellm_provider import DEFAULT_MODEL, LiteLLMProvider
from intex.runtime.conversation_lock import ConversationLock
from intex.utils.aio import elapsed_ms

DEFAULT_TEMPERATURE = 0.7

FALLBACK_RESPONSE = "I'm not sure how to help with that. Could you please rephrase your request?"
MIDDLEWARE_STOPPED_RESPONSE = "Your request was processed but stopped by a validation rule."
ERROR_RESPONSE = "I encountered an error while processing your request. Please try again."
FUNCTION_DEFAULT_RESPONSE = "Function executed successfully."
EMPTY_RESPONSE = "No response generated."


class IntentFramework:
    """
    Routes each user message to an intent contract and drives the
    function-calling exchange with the completion provider.

    ``process`` never raises: every path (fallback, middleware halt, plain
    reply, function reply, error) returns a ``FrameworkResponse``.
    """

    def __init__(
        self,
        config: FrameworkConfig | dict[str, Any] | None = None,
        provider: LLMProvider | None = None,
        plugin_manager: PluginManager | None = None,
        conversation_lock: ConversationLock | None = None,
    ) -> None:
        self.config = build_config(config)
        setup_logging(self.config.logging)

        completion = self.config.completion_provider
        self.provider = provider or LiteLLMProvider(
            api_key=completion.api_key or None,
            api_base=completion.api_base,
            default_model=completion.model or DEFAULT_MODEL,
        )
        self.model = completion.model
        self.temperature = DEFAULT_TEMPERATURE if completion.temperature is None else completion.temperature
        self.max_tokens = completion.max_tokens

        self.plugin_manager = plugin_manager or PluginManager()
        storage = self.config.storage_extension
        self.storage_manager = StorageManager(storage.instance if storage else None)
        self.detector = IntentDetector(self.config.intent_detection, self.provider, self.model)
        self.context_retention = ContextRetention(self.config.context_retention)
        self.conversation_lock = conversation_lock

        self._contracts: dict[str, IntentContract] = {}
        self._initialized = False

        logger.info(
            f"IntentFramework created (strategy={self.config.intent_detection.strategy}, "
            f"storage={'stateless' if self.storage_manager.is_stateless else 'enabled'})"
        )

    # ── registration ──

    def register_contract(self, contract: IntentContract) -> None:
        """Register *contract* under its intent id; a re-used id replaces the old contract."""
        intent_id = contract.intent.id
        if intent_id in self._contracts:
            logger.warning(f"Overwriting contract for intent: {intent_id}")
        self._contracts[intent_id] = contract
        logger.info(f"Registered contract for intent: {intent_id}")

    def register_contracts(self, contracts: Iterable[IntentContract]) -> None:
        for contract in contracts:
            self.register_contract(contract)

    def get_contracts(self) -> list[IntentContract]:
        """Registered contracts in registration order (the objects themselves)."""
        return list(self._contracts.values())

    def get_contract(self, intent_id: str) -> IntentContract | None:
        return self._contracts.get(intent_id)

    def register_plugin(self, plugin: Plugin) -> None:
        self.plugin_manager.register_plugin(plugin)

    # ── lifecycle ──

    async def initialize(self) -> None:
        """Initialize storage and every plugin (in dependency order)."""
        await self.storage_manager.initialize()
        await self.plugin_manager.initialize()
        self._initialized = True
        logger.info("Framework initialized")

    async def shutdown(self) -> None:
        """Shut plugins down in reverse order, then storage."""
        await self.plugin_manager.shutdown()
        await self.storage_manager.shutdown()
        self._initialized = False
        logger.info("Framework shutdown complete")

    async def destroy(self) -> None:
        """Shut down and drop every registered contract and retained context."""
        await self.shutdown()
        self._contracts.clear()
        self.context_retention.clear_all()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def __aenter__(self) -> "IntentFramework":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # ── conversation state ──

    async def clear_conversation_history(self, conversation_id: str) -> None:
        await self.storage_manager.clear_conversation_history(conversation_id)
        self.context_retention.clear(conversation_id)

    def get_retained_contexts(self, conversation_id: str) -> list[IntentContext]:
        return self.context_retention.get(conversation_id)

    # ── processing ──

    async def process(
        self,
        user_message: str,
        conversation_id: str,
        user_id: str | None = None,
    ) -> FrameworkResponse:
        """Handle one user message for *conversation_id*."""
        if self.conversation_lock is None:
            return await self._process(user_message, conversation_id, user_id)

        start = time.perf_counter()
        try:
            async with self.conversation_lock.acquire(conversation_id):
                return await self._process(user_message, conversation_id, user_id)
        except ConversationLockTimeout as e:
            logger.error(f"Error processing message: {e}")
            context = ExecutionContext(conversation_id=conversation_id, user_message=user_message, user_id=user_id)
            await self._fire_error_hook(e, context)
            return self._error_response(context, start)

    async def _process(
        self,
        user_message: str,
        conversation_id: str,
        user_id: str | None,
    ) -> FrameworkResponse:
        start = time.perf_counter()
        history = await self.storage_manager.get_conversation_history(conversation_id)
        context = ExecutionContext(
            conversation_id=conversation_id,
            user_message=user_message,
            user_id=user_id,
            messages=list(history),
        )

        try:
            context.add_message({"role": "user", "content": user_message})

            await self.plugin_manager.execute_hook(Hook.BEFORE_INTENT_DETECTION, context)
            detection = await self.detect_intent(user_message)
            context.detected_intent = detection
            await self.plugin_manager.execute_hook(Hook.AFTER_INTENT_DETECTION, context)

            if detection is None:
                logger.debug(f"No intent detected for conversation {conversation_id}")
                return self._response(FALLBACK_RESPONSE, context, start, intent_detected=False)

            intent = detection.intent
            contract = self._contracts.get(intent.id)
            if contract is None:
                raise ContractNotFoundError(intent.id)

            if not await run_middleware_chain(contract.middleware, intent, context):
                return self._response(MIDDLEWARE_STOPPED_RESPONSE, context, start)

            await self.plugin_manager.execute_hook(Hook.BEFORE_CONTEXT_INJECTION, context)
            if contract.context_provider is not None and context.injected_context is None:
                context.injected_context = await provide_context(contract.context_provider, intent.id)
            if context.injected_context is not None:
                self.context_retention.retain(conversation_id, context.injected_context)
            await self.plugin_manager.execute_hook(Hook.AFTER_CONTEXT_INJECTION, context)

            tools = prepare_function_tools(contract.functions)
            reply = await self._complete(
                [self._system_message(intent), *context.messages],
                tools=tools or None,
            )

            if reply.has_tool_calls:
                return await self._respond_with_functions(reply, contract, context, start)
            return await self._respond_plain(reply, context, start)

        except Exception as e:
            logger.exception(f"Error processing message: {e}")
            await self._fire_error_hook(e, context)
            return self._error_response(context, start)

    async def detect_intent(self, user_message: str) -> IntentDetectionResult | None:
        intents = [contract.intent for contract in self._contracts.values()]
        return await self.detector.detect(user_message, intents)

    async def _respond_with_functions(
        self,
        reply: LLMResponse,
        contract: IntentContract,
        context: ExecutionContext,
        start: float,
    ) -> FrameworkResponse:
        tool_messages = await execute_function_calls(
            reply.tool_calls, contract.functions, context, self.plugin_manager
        )
        context.add_message(reply.to_message())
        for message in tool_messages:
            context.add_message(message)

        await self.plugin_manager.execute_hook(Hook.BEFORE_RESPONSE_GENERATION, context)
        final = await self._complete(context.messages)
        if final.has_tool_calls:
            logger.warning("Completion provider requested further tool calls after function results; ignoring")
        context.add_message({"role": "assistant", "content": final.content})

        await self.storage_manager.update_conversation_history(context.conversation_id, context.messages)
        response = self._response(final.content or FUNCTION_DEFAULT_RESPONSE, context, start)
        await self.plugin_manager.execute_hook(Hook.AFTER_RESPONSE_GENERATION, context, response)
        return response

    async def _respond_plain(
        self,
        reply: LLMResponse,
        context: ExecutionContext,
        start: float,
    ) -> FrameworkResponse:
        context.add_message(reply.to_message())
        await self.plugin_manager.execute_hook(Hook.BEFORE_RESPONSE_GENERATION, context)
        await self.storage_manager.update_conversation_history(context.conversation_id, context.messages)
        response = self._response(reply.content or EMPTY_RESPONSE, context, start)
        await self.plugin_manager.execute_hook(Hook.AFTER_RESPONSE_GENERATION, context, response)
        return response

    async def _complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        return await self.provider.chat(
            messages=messages,
            tools=tools,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    @staticmethod
    def _system_message(intent: Intent) -> Message:
        return {
            "role": "system",
            "content": (
                f'You are handling the "{intent.name}" intent. {intent.description}. '
                "Use the available functions when appropriate to fulfill the user's request."
            ),
        }

    async def _fire_error_hook(self, error: BaseException, context: ExecutionContext) -> None:
        try:
            await self.plugin_manager.execute_hook(Hook.ERROR, error, context)
        except Exception as hook_error:
            logger.error(f"Error hook failed: {hook_error}")

    def _error_response(self, context: ExecutionContext, start: float) -> FrameworkResponse:
        return self._response(
            ERROR_RESPONSE,
            context,
            start,
            intent_detected=context.detected_intent is not None,
        )

    @staticmethod
    def _response(
        text: str,
        context: ExecutionContext,
        start: float,
        intent_detected: bool = True,
    ) -> FrameworkResponse:
        detected = context.detected_intent
        return FrameworkResponse(
            response=text,
            execution_context=context,
            metadata=ResponseMetadata(
                intent_detected=intent_detected,
                functions_executed=len(context.function_calls),
                total_execution_time=elapsed_ms(start, time.perf_counter()),
                confidence=detected.confidence if detected else None,
            ),
        )
