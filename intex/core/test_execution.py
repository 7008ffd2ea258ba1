import json
from typing import Any

import pytest

from intex.conftest import error_messages
from intex.core.execution import execute_function_calls, prepare_function_tools
from intex.core.types import ExecutionContext, IntentContext, IntentFunction
from intex.plugins.base import Plugin
from intex.plugins.manager import PluginManager
from intex.providers.base import ToolCallRequest


def _function(name: str, handler, requires_context: bool = False) -> IntentFunction:
    return IntentFunction(
        name=name,
        description=f"{name} function",
        parameters={"type": "object", "properties": {}},
        handler=handler,
        requires_context=requires_context,
    )


def _context(**kwargs: Any) -> ExecutionContext:
    return ExecutionContext(conversation_id="conv-1", user_message="hi", **kwargs)


class RecordingPlugin(Plugin):
    id = "recorder"

    def __init__(self) -> None:
        super().__init__()
        self.seen: list[tuple] = []

    async def on_before_function_execution(self, context, function_id, parameters) -> None:
        self.seen.append(("before", function_id, parameters))

    async def on_after_function_execution(self, context, function_id, result, error=None) -> None:
        self.seen.append(("after", function_id, result, error))


def test_prepare_function_tools_preserves_order() -> None:
    tools = prepare_function_tools([_function("b", print), _function("a", print)])

    assert [t["function"]["name"] for t in tools] == ["b", "a"]
    assert tools[0]["type"] == "function"
    assert tools[0]["function"]["parameters"] == {"type": "object", "properties": {}}


@pytest.mark.asyncio
async def test_failing_call_does_not_block_later_calls(plugin_manager: PluginManager) -> None:
    def explode(params):
        raise ValueError("boom")

    functions = [_function("explode", explode), _function("echo", lambda params: params)]
    context = _context()

    messages = await execute_function_calls(
        [ToolCallRequest("c1", "explode", "{}"), ToolCallRequest("c2", "echo", '{"x": 1}')],
        functions,
        context,
        plugin_manager,
    )

    first, second = context.function_calls
    assert first.function_id == "c1" and first.error == "boom" and first.result is None
    assert second.function_id == "c2" and second.result == {"x": 1} and second.error is None
    assert [m["tool_call_id"] for m in messages] == ["c1", "c2"]
    assert json.loads(messages[0]["content"]) == "boom"
    assert json.loads(messages[1]["content"]) == {"x": 1}


@pytest.mark.asyncio
async def test_unknown_function_is_logged_once_and_not_recorded(
    plugin_manager: PluginManager, log_records
) -> None:
    context = _context()

    messages = await execute_function_calls(
        [ToolCallRequest("c1", "missing", "{}")], [_function("echo", lambda p: p)], context, plugin_manager
    )

    assert context.function_calls == []
    assert error_messages(log_records) == ["Function missing not found"]
    assert messages == [{"role": "tool", "tool_call_id": "c1", "content": '"Function missing not found"'}]


@pytest.mark.asyncio
async def test_malformed_arguments_are_recorded_without_running(plugin_manager: PluginManager) -> None:
    calls: list[Any] = []
    recorder = RecordingPlugin()
    plugin_manager.register_plugin(recorder)
    context = _context()

    await execute_function_calls(
        [ToolCallRequest("c1", "echo", "{not json")],
        [_function("echo", calls.append)],
        context,
        plugin_manager,
    )

    (call,) = context.function_calls
    assert call.error is not None and call.error.startswith("Invalid arguments for echo")
    assert call.parameters == "{not json"
    assert calls == []
    assert recorder.seen == []


@pytest.mark.asyncio
async def test_requires_context_passes_injected_context(plugin_manager: PluginManager) -> None:
    injected = IntentContext(id="ctx", data={"user": "ada"})
    received: list[Any] = []

    def with_ctx(params, ctx):
        received.append(ctx)
        return "ok"

    def without_ctx(*args):
        received.append(args)
        return "ok"

    await execute_function_calls(
        [ToolCallRequest("c1", "with_ctx"), ToolCallRequest("c2", "without_ctx")],
        [_function("with_ctx", with_ctx, requires_context=True), _function("without_ctx", without_ctx)],
        _context(injected_context=injected),
        plugin_manager,
    )

    assert received == [injected, ({},)]


@pytest.mark.asyncio
async def test_async_handlers_are_awaited(plugin_manager: PluginManager) -> None:
    async def fetch(params):
        return {"temperature": 21}

    context = _context()
    messages = await execute_function_calls(
        [ToolCallRequest("c1", "fetch", "{}")], [_function("fetch", fetch)], context, plugin_manager
    )

    assert context.function_calls[0].result == {"temperature": 21}
    assert json.loads(messages[0]["content"]) == {"temperature": 21}


@pytest.mark.asyncio
async def test_function_hooks_fire_around_each_call(plugin_manager: PluginManager) -> None:
    recorder = RecordingPlugin()
    plugin_manager.register_plugin(recorder)

    def explode(params):
        raise RuntimeError("nope")

    await execute_function_calls(
        [ToolCallRequest("c1", "echo", '{"a": 1}'), ToolCallRequest("c2", "explode", "{}")],
        [_function("echo", lambda p: p["a"]), _function("explode", explode)],
        _context(),
        plugin_manager,
    )

    assert recorder.seen == [
        ("before", "echo", {"a": 1}),
        ("after", "echo", 1, None),
        ("before", "explode", {}),
        ("after", "explode", None, "nope"),
    ]


@pytest.mark.asyncio
async def test_exception_without_message_records_type_name(plugin_manager: PluginManager) -> None:
    def explode(params):
        raise KeyError

    context = _context()
    await execute_function_calls([ToolCallRequest("c1", "explode")], [_function("explode", explode)], context, plugin_manager)

    assert context.function_calls[0].error == "KeyError"


@pytest.mark.asyncio
async def test_handler_returning_none_is_a_recorded_success() -> None:
    context = _context()
    messages = await execute_function_calls(
        [ToolCallRequest("call_1", "notify", "{}")],
        [_function("notify", lambda params: None)],
        context,
        PluginManager(),
    )

    call = context.function_calls[0]
    assert call.succeeded is True
    assert (call.result, call.error) == (None, None)
    assert messages[0]["content"] == "null"
