import asyncio
import json
from typing import Any

import pytest

from intex.builders import create_function, create_intent
from intex.config.schema import FrameworkConfig, StorageExtensionConfig
from intex.core.framework import (
    ERROR_RESPONSE,
    FALLBACK_RESPONSE,
    FUNCTION_DEFAULT_RESPONSE,
    MIDDLEWARE_STOPPED_RESPONSE,
    IntentFramework,
)
from intex.core.types import IntentContext, IntentContract, MiddlewareResult
from intex.extensions.storage import InMemoryStorageExtension
from intex.middleware import create_middleware
from intex.plugins.base import Plugin
from intex.providers.base import LLMResponse
from intex.providers.mock_provider import MockProvider, tool_call_response
from intex.runtime.conversation_lock import ConversationLock


def weather_contract(handler=None, **builder_kwargs: Any) -> IntentContract:
    fn = create_function(
        name="get_weather",
        description="Get the weather",
        parameters={"type": "object", "properties": {"location": {"type": "string"}}},
        handler=handler or (lambda params: {"location": params.get("location"), "temperature": 20}),
        requires_context=builder_kwargs.pop("requires_context", False),
    )
    builder = (
        create_intent()
        .with_id("weather")
        .with_name("Weather")
        .with_description("Get weather information")
        .with_patterns(r"weather in (.*)")
        .with_functions(fn)
    )
    if "middleware" in builder_kwargs:
        builder = builder.with_middleware(*builder_kwargs["middleware"])
    if "context" in builder_kwargs:
        builder = builder.with_context(builder_kwargs["context"])
    return builder.build()


def make_framework(provider: MockProvider, *contracts: IntentContract, **config: Any) -> IntentFramework:
    framework = IntentFramework(FrameworkConfig(**config), provider=provider)
    framework.register_contracts(contracts)
    return framework


class HookRecorder(Plugin):
    id = "hook-recorder"

    def __init__(self) -> None:
        super().__init__()
        self.events: list[str] = []
        self.contexts: list[IntentContext | None] = []
        self.errors: list[BaseException] = []

    async def on_before_intent_detection(self, context) -> None:
        self.events.append("before_detection")

    async def on_after_intent_detection(self, context) -> None:
        self.events.append("after_detection")

    async def on_before_context_injection(self, context) -> None:
        self.events.append("before_context")

    async def on_after_context_injection(self, context) -> None:
        self.events.append("after_context")
        self.contexts.append(context.injected_context)

    async def on_before_function_execution(self, context, function_id, parameters) -> None:
        self.events.append("before_function")

    async def on_after_function_execution(self, context, function_id, result, error=None) -> None:
        self.events.append("after_function")

    async def on_before_response_generation(self, context) -> None:
        self.events.append("before_response")

    async def on_after_response_generation(self, context, response) -> None:
        self.events.append("after_response")

    async def on_error(self, error, context=None) -> None:
        self.errors.append(error)


# ── plain replies ──


@pytest.mark.asyncio
async def test_detected_intent_without_tool_calls_returns_provider_text(provider: MockProvider) -> None:
    framework = make_framework(provider, weather_contract())

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == "Mocked reply"
    assert response.metadata.intent_detected is True
    assert response.metadata.confidence == 1.0
    assert response.metadata.functions_executed == 0
    assert response.execution_context.detected_intent.intent.id == "weather"

    (call,) = provider.calls
    assert call["messages"][0]["role"] == "system"
    assert '"Weather" intent' in call["messages"][0]["content"]
    assert call["messages"][-1] == {"role": "user", "content": "weather in Paris"}
    assert call["tools"][0]["function"]["name"] == "get_weather"
    assert call["temperature"] == 0.7


@pytest.mark.asyncio
async def test_no_contracts_returns_fallback_without_calling_provider(provider: MockProvider) -> None:
    framework = make_framework(provider)

    response = await framework.process("hello", "conv-1")

    assert response.response == FALLBACK_RESPONSE
    assert response.metadata.intent_detected is False
    assert response.metadata.confidence is None
    assert provider.call_count == 0


@pytest.mark.asyncio
async def test_empty_reply_uses_placeholder_text() -> None:
    framework = make_framework(MockProvider([LLMResponse(content=None)]), weather_contract())

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == "No response generated."


@pytest.mark.asyncio
async def test_completion_settings_are_forwarded() -> None:
    provider = MockProvider()
    framework = make_framework(
        provider,
        weather_contract(),
        completion_provider={"model": "gpt-4o", "temperature": 0.2, "max_tokens": 256},
    )

    await framework.process("weather in Paris", "conv-1")

    call = provider.calls[0]
    assert (call["model"], call["temperature"], call["max_tokens"]) == ("gpt-4o", 0.2, 256)


# ── middleware ──


@pytest.mark.asyncio
async def test_middleware_halt_skips_provider(provider: MockProvider) -> None:
    deny = create_middleware("deny", lambda intent, message, ctx: MiddlewareResult(proceed=False))
    framework = make_framework(provider, weather_contract(middleware=[deny]))

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == MIDDLEWARE_STOPPED_RESPONSE
    assert response.metadata.intent_detected is True
    assert provider.call_count == 0


# ── function calling ──


@pytest.mark.asyncio
async def test_tool_calls_are_executed_and_followed_by_a_final_reply() -> None:
    provider = MockProvider([
        tool_call_response(("call_1", "get_weather", '{"location": "Paris"}')),
        LLMResponse(content="It is 20 degrees in Paris."),
    ])
    framework = make_framework(provider, weather_contract())

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == "It is 20 degrees in Paris."
    assert response.metadata.functions_executed == 1
    (call,) = response.execution_context.function_calls
    assert call.function_id == "call_1"
    assert call.result == {"location": "Paris", "temperature": 20}

    second = provider.calls[1]
    assert second["tools"] is None
    roles = [m["role"] for m in second["messages"]]
    assert roles == ["user", "assistant", "tool"]
    assert second["messages"][2]["tool_call_id"] == "call_1"
    assert json.loads(second["messages"][2]["content"])["location"] == "Paris"
    assert response.execution_context.messages[-1] == {
        "role": "assistant",
        "content": "It is 20 degrees in Paris.",
    }


@pytest.mark.asyncio
async def test_function_reply_defaults_when_final_text_is_empty() -> None:
    provider = MockProvider([
        tool_call_response(("call_1", "get_weather", "{}")),
        LLMResponse(content=""),
    ])
    framework = make_framework(provider, weather_contract())

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == FUNCTION_DEFAULT_RESPONSE


@pytest.mark.asyncio
async def test_handler_failure_is_reported_to_the_provider_not_the_caller() -> None:
    def broken(params):
        raise RuntimeError("service unavailable")

    provider = MockProvider([
        tool_call_response(("call_1", "get_weather", "{}")),
        LLMResponse(content="Sorry, the weather service is down."),
    ])
    framework = make_framework(provider, weather_contract(handler=broken))

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == "Sorry, the weather service is down."
    assert response.execution_context.function_calls[0].error == "service unavailable"
    assert json.loads(provider.calls[1]["messages"][-1]["content"]) == "service unavailable"


@pytest.mark.asyncio
async def test_further_tool_calls_in_the_final_reply_are_ignored() -> None:
    provider = MockProvider([
        tool_call_response(("call_1", "get_weather", "{}")),
        tool_call_response(("call_2", "get_weather", "{}"), content="Done."),
    ])
    framework = make_framework(provider, weather_contract())

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == "Done."
    assert response.metadata.functions_executed == 1
    assert provider.call_count == 2


# ── errors ──


@pytest.mark.asyncio
async def test_provider_failure_returns_error_envelope_and_fires_error_hook() -> None:
    recorder = HookRecorder()
    framework = make_framework(MockProvider([RuntimeError("rate limited")]), weather_contract())
    framework.register_plugin(recorder)

    response = await framework.process("weather in Paris", "conv-1")

    assert response.response == ERROR_RESPONSE
    assert response.metadata.intent_detected is True
    assert [str(e) for e in recorder.errors] == ["rate limited"]


@pytest.mark.asyncio
async def test_detected_intent_without_contract_is_an_error(provider: MockProvider) -> None:
    framework = make_framework(provider)

    async def fake_detection(message):
        from intex.core.types import Intent, IntentDetectionResult

        return IntentDetectionResult(intent=Intent(id="ghost", name="Ghost", description="?"), confidence=0.9)

    framework.detect_intent = fake_detection
    recorder = HookRecorder()
    framework.register_plugin(recorder)

    response = await framework.process("boo", "conv-1")

    assert response.response == ERROR_RESPONSE
    assert "No contract found for intent: ghost" in str(recorder.errors[0])


# ── context ──


@pytest.mark.asyncio
async def test_context_provider_feeds_hooks_and_handlers(provider: MockProvider) -> None:
    injected = IntentContext(id="user-prefs", data={"units": "celsius"})
    seen: list[Any] = []

    def handler(params, ctx):
        seen.append(ctx)
        return {"ok": True}

    provider.queue(tool_call_response(("call_1", "get_weather", "{}")))
    framework = make_framework(
        provider,
        weather_contract(handler=handler, requires_context=True, context=lambda: injected),
        context_retention={"enabled": True},
    )
    recorder = HookRecorder()
    framework.register_plugin(recorder)

    await framework.process("weather in Paris", "conv-1")

    assert recorder.contexts == [injected]
    assert seen == [injected]
    assert framework.get_retained_contexts("conv-1") == [injected]


@pytest.mark.asyncio
async def test_middleware_context_takes_precedence_over_provider(provider: MockProvider) -> None:
    from_middleware = IntentContext(id="from-middleware")
    calls: list[str] = []

    def context_provider():
        calls.append("called")
        return IntentContext(id="from-provider")

    setter = create_middleware(
        "setter", lambda intent, message, ctx: MiddlewareResult(proceed=True, modified_context=from_middleware)
    )
    framework = make_framework(provider, weather_contract(middleware=[setter], context=context_provider))

    response = await framework.process("weather in Paris", "conv-1")

    assert response.execution_context.injected_context is from_middleware
    assert calls == []


@pytest.mark.asyncio
async def test_hooks_fire_in_lifecycle_order() -> None:
    provider = MockProvider([tool_call_response(("call_1", "get_weather", "{}")), "done"])
    framework = make_framework(provider, weather_contract())
    recorder = HookRecorder()
    framework.register_plugin(recorder)

    await framework.process("weather in Paris", "conv-1")

    assert recorder.events == [
        "before_detection",
        "after_detection",
        "before_context",
        "after_context",
        "before_function",
        "after_function",
        "before_response",
        "after_response",
    ]


# ── registry ──


def test_get_contracts_returns_registered_objects_in_order(provider: MockProvider) -> None:
    weather = weather_contract()
    other = IntentContract(intent=create_intent().with_id("b").with_name("B").with_description("b").build())
    framework = make_framework(provider, weather, other)

    contracts = framework.get_contracts()

    assert contracts[0] is weather and contracts[1] is other
    assert framework.get_contract("b") is other
    assert framework.get_contract("missing") is None


def test_reregistering_an_intent_replaces_the_contract(provider: MockProvider, log_records) -> None:
    first, second = weather_contract(), weather_contract()
    framework = make_framework(provider, first)

    framework.register_contract(second)

    assert framework.get_contracts() == [second]
    assert framework.get_contract("weather") is second
    assert any("Overwriting contract for intent: weather" in r["message"] for r in log_records)


def test_dict_config_accepts_camel_case(provider: MockProvider) -> None:
    framework = IntentFramework(
        {"intentDetection": {"strategy": "hybrid", "confidenceThreshold": 0.4}}, provider=provider
    )

    assert framework.config.intent_detection.strategy == "hybrid"
    assert framework.config.intent_detection.confidence_threshold == 0.4


# ── persistence ──


@pytest.mark.asyncio
async def test_history_is_persisted_and_replayed(provider: MockProvider) -> None:
    storage = InMemoryStorageExtension()
    framework = make_framework(provider, weather_contract(), storage_extension=StorageExtensionConfig(instance=storage))

    async with framework:
        await framework.process("weather in Paris", "conv-1")
        await framework.process("weather in Rome", "conv-1")

    second_call = provider.calls[1]["messages"]
    assert [m["content"] for m in second_call[1:]] == [
        "weather in Paris",
        "Mocked reply",
        "weather in Rome",
    ]
    assert framework.initialized is False


@pytest.mark.asyncio
async def test_clear_conversation_history_forgets_the_transcript(provider: MockProvider) -> None:
    storage = InMemoryStorageExtension()
    framework = make_framework(provider, weather_contract(), storage_extension=StorageExtensionConfig(instance=storage))

    await framework.process("weather in Paris", "conv-1")
    assert storage.size == 1

    await framework.clear_conversation_history("conv-1")

    assert await storage.get_conversation_history("conv-1") == []


@pytest.mark.asyncio
async def test_fallback_is_not_persisted(provider: MockProvider) -> None:
    storage = InMemoryStorageExtension()
    framework = make_framework(provider, storage_extension=StorageExtensionConfig(instance=storage))

    await framework.process("hello", "conv-1")

    assert storage.size == 0


@pytest.mark.asyncio
async def test_destroy_drops_contracts(provider: MockProvider) -> None:
    framework = make_framework(provider, weather_contract())
    await framework.initialize()
    assert framework.initialized

    await framework.destroy()

    assert framework.get_contracts() == []
    assert framework.initialized is False


# ── conversation lock ──


@pytest.mark.asyncio
async def test_conversation_lock_serializes_turns() -> None:
    active = 0
    peak = 0

    async def slow_weather(params):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return {}

    provider = MockProvider([
        tool_call_response(("a", "get_weather", "{}")),
        "first",
        tool_call_response(("b", "get_weather", "{}")),
        "second",
    ])
    framework = IntentFramework(provider=provider, conversation_lock=ConversationLock())
    framework.register_contract(weather_contract(handler=slow_weather))

    responses = await asyncio.gather(
        framework.process("weather in Paris", "conv-1"),
        framework.process("weather in Rome", "conv-1"),
    )

    assert [r.response for r in responses] == ["first", "second"]
    assert peak == 1


@pytest.mark.asyncio
async def test_lock_timeout_returns_error_envelope(provider: MockProvider) -> None:
    lock = ConversationLock(timeout=0.01)
    framework = IntentFramework(provider=provider, conversation_lock=lock)
    framework.register_contract(weather_contract())

    async with lock.acquire("conv-1"):
        response = await framework.process("weather in Paris", "conv-1")

    assert response.response == ERROR_RESPONSE
    assert provider.call_count == 0
